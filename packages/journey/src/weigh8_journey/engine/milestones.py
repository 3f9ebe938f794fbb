from __future__ import annotations

from typing import Iterable

from weigh8_journey.core.config import BULK_CONNECTIONS_SITE_ID, LIONS_PARK_SITE_ID
from weigh8_journey.models import Allocation, AllocationStatus, JourneyStatus

from .journey import JourneyIndex

MILESTONES: tuple[str, ...] = (
    "in_transit_to_lions",
    "lions_checked_in",
    "lions_departed",
    "in_transit_to_bulk",
    "bulk_checked_in",
    "bulk_departed",
)

# a site journey closed out by the backend reads as both checked in and departed
_CHECKED_IN = frozenset({JourneyStatus.arrived.value, AllocationStatus.completed.value})
_DEPARTED = frozenset({JourneyStatus.departed.value, AllocationStatus.completed.value})


def journey_milestones(
    allocations: Iterable[Allocation],
    journeys: JourneyIndex,
    *,
    lions_site_id: int = LIONS_PARK_SITE_ID,
    bulk_site_id: int = BULK_CONNECTIONS_SITE_ID,
) -> dict[str, int]:
    """
    Count allocations at each step of the mine -> Lions Park -> Bulk port
    journey, from the latest event per site.

    Counts overlap: a truck that left Lions counts as checked in there too.
    "in_transit_to_lions" is read from the allocation status alone, and
    "in_transit_to_bulk" means departed Lions with no Bulk event yet.
    """
    counts = dict.fromkeys(MILESTONES, 0)
    for alloc in allocations:
        if alloc.status == AllocationStatus.scheduled.value:
            counts["in_transit_to_lions"] += 1

        lions = journeys.latest(lions_site_id, alloc.id)
        bulk = journeys.latest(bulk_site_id, alloc.id)

        if lions is not None:
            if lions.status in _CHECKED_IN:
                counts["lions_checked_in"] += 1
            if lions.status in _DEPARTED:
                counts["lions_departed"] += 1

        if bulk is not None:
            if bulk.status in _CHECKED_IN:
                counts["bulk_checked_in"] += 1
            if bulk.status in _DEPARTED:
                counts["bulk_departed"] += 1
        elif lions is not None and lions.status == JourneyStatus.departed.value:
            counts["in_transit_to_bulk"] += 1
    return counts
