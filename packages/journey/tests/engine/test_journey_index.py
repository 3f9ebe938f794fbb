from __future__ import annotations

from datetime import datetime, timedelta, timezone

from weigh8_journey.core.errors import PartialData
from weigh8_journey.engine.journey import (
    JourneyIndex,
    active_at_site,
    latest_by_allocation,
    latest_event,
)
from weigh8_journey.models import JourneyEvent

T0 = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def _ev(alloc: int, site: int, status: str, minutes: int | None) -> JourneyEvent:
    return JourneyEvent(
        allocation_id=alloc,
        site_id=site,
        event_type="arrival" if status == "arrived" else "departure",
        status=status,
        timestamp=None if minutes is None else T0 + timedelta(minutes=minutes),
    )


def test_latest_event_picks_greatest_timestamp_regardless_of_order() -> None:
    evs = [_ev(1, 1, "departed", 30), _ev(1, 1, "arrived", 10), _ev(1, 1, "arrived", 20)]
    best = latest_event(evs)
    assert best is not None
    assert best.status == "departed"
    assert latest_event([]) is None
    assert latest_event(None) is None


def test_latest_event_ignores_missing_timestamps_unless_alone() -> None:
    evs = [_ev(1, 1, "departed", None), _ev(1, 1, "arrived", 5)]
    assert latest_event(evs).status == "arrived"  # type: ignore[union-attr]

    only_untimed = [_ev(1, 1, "arrived", None), _ev(1, 1, "departed", None)]
    assert latest_event(only_untimed).status == "departed"  # type: ignore[union-attr]


def test_latest_by_allocation_and_active_at_site() -> None:
    history = [
        _ev(1, 1, "arrived", 0),
        _ev(1, 1, "departed", 40),
        _ev(2, 1, "arrived", 15),
        _ev(2, 2, "arrived", 50),
        _ev(3, 2, "arrived", 5),
    ]
    latest = latest_by_allocation(history, site_id=1)
    assert set(latest) == {1, 2}
    assert latest[1].status == "departed"

    active = active_at_site(history, 1)
    assert [e.allocation_id for e in active] == [2]


def test_index_treats_failed_site_as_no_events() -> None:
    per_site = {1: [_ev(7, 1, "arrived", 0)], 2: [_ev(7, 2, "arrived", 10)]}
    idx = JourneyIndex.build(per_site, failures=[PartialData(site_id=2, error="boom")])

    assert idx.has_events(1, 7)
    assert not idx.has_events(2, 7)
    assert idx.latest(2, 7) is None
    assert [p.site_id for p in idx.missing_sites] == [2]


def test_index_from_events_groups_by_event_site() -> None:
    idx = JourneyIndex.from_events(
        [_ev(4, 1, "arrived", 0), _ev(4, 1, "departed", 5), _ev(4, 2, "arrived", 9)]
    )
    assert len(idx.events(1, 4)) == 2
    assert idx.latest(1, 4).status == "departed"  # type: ignore[union-attr]
    assert idx.latest(2, 4).status == "arrived"  # type: ignore[union-attr]
    assert idx.events(3, 4) == ()
