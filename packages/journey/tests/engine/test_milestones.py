from __future__ import annotations

from datetime import datetime, timedelta, timezone

from weigh8_journey.core.errors import PartialData
from weigh8_journey.engine.journey import JourneyIndex
from weigh8_journey.engine.milestones import MILESTONES, journey_milestones
from weigh8_journey.models import Allocation, JourneyEvent

T0 = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def _alloc(id: int, status: str = "in_transit") -> Allocation:
    return Allocation(id=id, vehicle_reg=f"TRK{id:03d}GP", status=status)


def _ev(alloc: int, site: int, status: str, minutes: int = 0) -> JourneyEvent:
    return JourneyEvent(
        allocation_id=alloc,
        site_id=site,
        event_type="departure" if status == "departed" else "arrival",
        status=status,
        timestamp=T0 + timedelta(minutes=minutes),
    )


ALLOCATIONS = [_alloc(1, "scheduled")] + [_alloc(i) for i in range(2, 7)]
EVENTS = [
    _ev(2, 1, "arrived"),
    _ev(3, 1, "arrived"),
    _ev(3, 1, "departed", 30),
    _ev(4, 1, "departed"),
    _ev(4, 2, "arrived", 60),
    _ev(5, 2, "departed", 90),
    _ev(6, 1, "completed"),
]


def test_milestone_counts() -> None:
    counts = journey_milestones(ALLOCATIONS, JourneyIndex.from_events(EVENTS))
    assert list(counts) == list(MILESTONES)
    assert counts == {
        "in_transit_to_lions": 1,
        "lions_checked_in": 2,
        "lions_departed": 3,
        "in_transit_to_bulk": 1,
        "bulk_checked_in": 1,
        "bulk_departed": 1,
    }


def test_milestones_without_events_or_allocations() -> None:
    assert journey_milestones([], JourneyIndex()) == dict.fromkeys(MILESTONES, 0)
    counts = journey_milestones(ALLOCATIONS, JourneyIndex())
    assert counts["in_transit_to_lions"] == 1
    assert sum(counts.values()) == 1


def test_failed_site_counts_as_no_events() -> None:
    per_site = {
        1: [e for e in EVENTS if e.site_id == 1],
        2: [e for e in EVENTS if e.site_id == 2],
    }
    idx = JourneyIndex.build(per_site, failures=[PartialData(site_id=1, error="timeout")])
    counts = journey_milestones(ALLOCATIONS, idx)
    assert counts["lions_checked_in"] == 0
    assert counts["lions_departed"] == 0
    assert counts["in_transit_to_bulk"] == 0
    assert counts["bulk_checked_in"] == 1
    assert counts["bulk_departed"] == 1
