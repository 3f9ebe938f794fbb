from __future__ import annotations

from datetime import datetime, timedelta, timezone

from weigh8_journey.engine.timeline import TimelineKind, build_timeline
from weigh8_journey.models import Allocation, JourneyEvent

T0 = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def _ev(site: int, event_type: str, ts: datetime | None, alloc: int = 1) -> JourneyEvent:
    return JourneyEvent(
        allocation_id=alloc,
        site_id=site,
        event_type=event_type,
        status="arrived" if event_type == "arrival" else "departed",
        timestamp=ts,
    )


def test_events_are_sorted_ascending() -> None:
    t1, t2, t3 = (T0 + timedelta(hours=h) for h in (1, 2, 3))
    alloc = Allocation(id=1, vehicle_reg="X")
    events = [_ev(2, "arrival", t3), _ev(1, "arrival", t1), _ev(1, "departure", t2)]

    out = build_timeline(alloc, events)
    assert [e.timestamp for e in out] == [t1, t2, t3]
    assert [e.label for e in out] == [
        "Checked In at Lions Park",
        "Departed Lions Park",
        "Checked In at Bulk Connections",
    ]


def test_seed_entries_and_untimestamped_tail() -> None:
    created = T0 - timedelta(days=2)
    scheduled = T0 - timedelta(days=1)
    alloc = Allocation(id=1, vehicle_reg="X", created_at=created, scheduled_date=scheduled)
    events = [
        _ev(1, "arrival", None),
        _ev(1, "departure", T0),
        _ev(2, "arrival", None),
    ]
    out = build_timeline(alloc, events)

    assert [e.label for e in out] == [
        "Order Created",
        "Scheduled",
        "Departed Lions Park",
        "Checked In at Lions Park",
        "Checked In at Bulk Connections",
    ]
    assert [e.is_known_good for e in out] == [True, True, True, False, False]
    assert out[0].kind is TimelineKind.created


def test_created_falls_back_to_scheduled_and_both_are_emitted() -> None:
    alloc = Allocation(id=1, vehicle_reg="X", scheduled_date=T0)
    out = build_timeline(alloc, [])
    assert [(e.label, e.timestamp) for e in out] == [
        ("Order Created", T0),
        ("Scheduled", T0),
    ]


def test_empty_when_nothing_is_known() -> None:
    assert build_timeline(Allocation(id=1, vehicle_reg="X"), []) == []


def test_other_allocations_and_unknown_sites_and_types() -> None:
    alloc = Allocation(id=1, vehicle_reg="X")
    events = [
        _ev(9, "arrival", T0),
        _ev(1, "arrival", T0, alloc=2),
        _ev(1, "weighbridge_pass", T0 + timedelta(minutes=5)),
    ]
    out = build_timeline(alloc, events, site_names={1: "Lions Park"})
    assert [e.label for e in out] == ["Checked In at Site 9", "Weighbridge pass at Lions Park"]
    assert out[1].kind is TimelineKind.other


def test_check_in_and_check_out_event_types() -> None:
    alloc = Allocation(id=1, vehicle_reg="X")
    out = build_timeline(
        alloc, [_ev(2, "check_in", T0), _ev(2, "check_out", T0 + timedelta(hours=1))]
    )
    assert [e.label for e in out] == ["Checked In at Bulk Connections", "Departed Bulk Connections"]


class _Recorder:
    def __init__(self) -> None:
        self.warnings: list[tuple[str, dict]] = []

    def warning(self, event: str, **kw) -> None:
        self.warnings.append((event, kw))


def test_untimestamped_event_is_reported(monkeypatch) -> None:
    from weigh8_journey.engine import timeline

    rec = _Recorder()
    monkeypatch.setattr(timeline, "log", rec)

    out = build_timeline(Allocation(id=1, vehicle_reg="X"), [_ev(2, "arrival", None)])
    assert [e.is_known_good for e in out] == [False]
    assert rec.warnings == [
        (
            "data_quality.warning",
            {
                "code": "MISSING_TIMESTAMP",
                "allocation_id": 1,
                "site_id": 2,
                "value": "Checked In at Bulk Connections",
            },
        )
    ]
