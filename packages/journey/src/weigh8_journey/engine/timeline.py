from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Iterable, Mapping, Optional

import structlog

from weigh8_journey.core.config import SITE_NAMES
from weigh8_journey.core.errors import IssueCode
from weigh8_journey.models import Allocation, JourneyEvent

log = structlog.get_logger(__name__)


class TimelineKind(StrEnum):
    created = "created"
    scheduled = "scheduled"
    arrival = "arrival"
    departure = "departure"
    other = "other"


@dataclass(frozen=True, slots=True)
class TimelineEntry:
    label: str
    timestamp: Optional[datetime]
    is_known_good: bool
    kind: TimelineKind
    site_id: Optional[int] = None


def _site_name(site_id: int, site_names: Mapping[int, str]) -> str:
    return site_names.get(site_id, f"Site {site_id}")


def _event_entry(ev: JourneyEvent, site_names: Mapping[int, str]) -> TimelineEntry:
    site = _site_name(ev.site_id, site_names)
    if ev.is_arrival:
        label, kind = f"Checked In at {site}", TimelineKind.arrival
    elif ev.is_departure:
        label, kind = f"Departed {site}", TimelineKind.departure
    else:
        log.warning(
            "data_quality.warning",
            code=IssueCode.UNKNOWN_EVENT_TYPE.value,
            allocation_id=ev.allocation_id,
            site_id=ev.site_id,
            value=ev.event_type,
        )
        pretty = ev.event_type.replace("_", " ").capitalize() or "Event"
        label, kind = f"{pretty} at {site}", TimelineKind.other
    if ev.timestamp is None:
        log.warning(
            "data_quality.warning",
            code=IssueCode.MISSING_TIMESTAMP.value,
            allocation_id=ev.allocation_id,
            site_id=ev.site_id,
            value=label,
        )
    return TimelineEntry(
        label=label,
        timestamp=ev.timestamp,
        is_known_good=ev.timestamp is not None,
        kind=kind,
        site_id=ev.site_id,
    )


def build_timeline(
    allocation: Allocation,
    events: Iterable[JourneyEvent],
    *,
    site_names: Mapping[int, str] = SITE_NAMES,
) -> list[TimelineEntry]:
    """
    Ordered milestones for one allocation: "Order Created", "Scheduled" and
    every journey event across all sites (full history, not just the latest).

    Sorted ascending by timestamp; entries without a timestamp go last in
    insertion order. Pure, safe to recompute on every render.
    """
    entries: list[TimelineEntry] = []

    created = allocation.created_at or allocation.scheduled_date
    if created is not None:
        entries.append(
            TimelineEntry(
                label="Order Created",
                timestamp=created,
                is_known_good=True,
                kind=TimelineKind.created,
            )
        )
    if allocation.scheduled_date is not None:
        entries.append(
            TimelineEntry(
                label="Scheduled",
                timestamp=allocation.scheduled_date,
                is_known_good=True,
                kind=TimelineKind.scheduled,
            )
        )

    for ev in events:
        if ev.allocation_id != allocation.id:
            continue
        entries.append(_event_entry(ev, site_names))

    # sorted() is stable: equal timestamps and the untimestamped tail keep insertion order
    return sorted(
        entries,
        key=lambda e: (e.timestamp is None, e.timestamp or datetime.min),
    )
