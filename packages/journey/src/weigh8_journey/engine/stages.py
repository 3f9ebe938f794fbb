from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Iterable, Optional

from weigh8_journey.core.config import BULK_CONNECTIONS_SITE_ID, LIONS_PARK_SITE_ID
from weigh8_journey.core.errors import DataQualityIssue, IssueCode
from weigh8_journey.models import (
    Allocation,
    AllocationStatus,
    JourneyEvent,
    JourneyStatus,
)

from .journey import JourneyIndex, latest_event


class Stage(StrEnum):
    staging = "staging"
    pending_arrival = "pending_arrival"
    checked_in = "checked_in"
    departed = "departed"
    # terminal, shown outside the active columns
    cancelled = "cancelled"


ACTIVE_STAGES: tuple[Stage, ...] = (
    Stage.staging,
    Stage.pending_arrival,
    Stage.checked_in,
    Stage.departed,
)


class LionsStage(StrEnum):
    pending_arrival = "pending_arrival"
    checked_in = "checked_in"
    departed = "departed"


LIONS_STAGES: tuple[LionsStage, ...] = tuple(LionsStage)


class StageBasis(StrEnum):
    bulk_event = "bulk_event"
    lions_event = "lions_event"
    allocation_status = "allocation_status"


_KNOWN_ALLOCATION_STATUSES = frozenset(s.value for s in AllocationStatus)

_BULK_STAGE = {
    JourneyStatus.arrived.value: Stage.checked_in,
    JourneyStatus.departed.value: Stage.departed,
}
_LIONS_STAGE = {
    JourneyStatus.arrived.value: Stage.staging,
    JourneyStatus.departed.value: Stage.pending_arrival,
}
_STATUS_STAGE = {
    AllocationStatus.scheduled.value: Stage.pending_arrival,
    AllocationStatus.in_transit.value: Stage.pending_arrival,
    AllocationStatus.completed.value: Stage.departed,
    AllocationStatus.cancelled.value: Stage.cancelled,
}

_LIONS_CHECKED_IN_STATUSES = frozenset(
    {AllocationStatus.arrived.value, AllocationStatus.weighing.value}
)
_LIONS_DEPARTED_STATUSES = frozenset(
    {
        AllocationStatus.completed.value,
        AllocationStatus.cancelled.value,
        JourneyStatus.departed.value,
    }
)


@dataclass(frozen=True, slots=True)
class DerivedStage:
    stage: Stage
    display_status: str
    display_timestamp: Optional[datetime]
    basis: StageBasis
    lions_status: Optional[str] = None
    bulk_status: Optional[str] = None
    issues: tuple[DataQualityIssue, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.stage in ACTIVE_STAGES


def _pick(event: JourneyEvent | Iterable[JourneyEvent] | None) -> Optional[JourneyEvent]:
    if event is None or isinstance(event, JourneyEvent):
        return event
    return latest_event(event)


def _event_issues(
    event: JourneyEvent, table: dict[str, Stage], allocation_id: int | None
) -> list[DataQualityIssue]:
    issues: list[DataQualityIssue] = []
    if event.status not in table:
        issues.append(
            DataQualityIssue(
                code=IssueCode.UNKNOWN_JOURNEY_STATUS,
                message=f"journey event at site {event.site_id} has status {event.status!r}",
                allocation_id=allocation_id,
                value=event.status,
            )
        )
    if event.timestamp is None:
        issues.append(
            DataQualityIssue(
                code=IssueCode.MISSING_TIMESTAMP,
                message=f"journey event at site {event.site_id} has no timestamp",
                allocation_id=allocation_id,
            )
        )
    return issues


def resolve_stage(
    status: str,
    *,
    scheduled_date: datetime | None = None,
    lions: JourneyEvent | Iterable[JourneyEvent] | None = None,
    bulk: JourneyEvent | Iterable[JourneyEvent] | None = None,
    allocation_id: int | None = None,
) -> DerivedStage:
    """
    Canonical stage for one allocation. Strict priority:

      1. Bulk event: arrived -> checked_in, departed -> departed
      2. Lions event: arrived -> staging, departed -> pending_arrival
      3. allocation status: scheduled/in_transit -> pending_arrival,
         completed -> departed, cancelled -> cancelled (terminal),
         anything else -> pending_arrival

    Bulk dominates Lions regardless of timestamps. When several events are
    given for a site the latest one is used. Never raises; unrecognised
    values are reported in `issues` for the caller to log.
    """
    lions_ev = _pick(lions)
    bulk_ev = _pick(bulk)
    lions_status = lions_ev.status if lions_ev else None
    bulk_status = bulk_ev.status if bulk_ev else None

    winner: Optional[JourneyEvent] = None
    if bulk_ev is not None:
        winner, table, basis = bulk_ev, _BULK_STAGE, StageBasis.bulk_event
    elif lions_ev is not None:
        winner, table, basis = lions_ev, _LIONS_STAGE, StageBasis.lions_event

    if winner is not None:
        return DerivedStage(
            stage=table.get(winner.status, Stage.pending_arrival),
            display_status=winner.status,
            display_timestamp=winner.timestamp or scheduled_date,
            basis=basis,
            lions_status=lions_status,
            bulk_status=bulk_status,
            issues=tuple(_event_issues(winner, table, allocation_id)),
        )

    issues: tuple[DataQualityIssue, ...] = ()
    if status not in _KNOWN_ALLOCATION_STATUSES:
        issues = (
            DataQualityIssue(
                code=IssueCode.UNKNOWN_ALLOCATION_STATUS,
                message=f"unrecognised allocation status {status!r}",
                allocation_id=allocation_id,
                value=status,
            ),
        )
    return DerivedStage(
        stage=_STATUS_STAGE.get(status, Stage.pending_arrival),
        display_status=status,
        display_timestamp=scheduled_date,
        basis=StageBasis.allocation_status,
        issues=issues,
    )


def resolve_allocation_stage(
    allocation: Allocation,
    journeys: JourneyIndex,
    *,
    lions_site_id: int = LIONS_PARK_SITE_ID,
    bulk_site_id: int = BULK_CONNECTIONS_SITE_ID,
) -> DerivedStage:
    return resolve_stage(
        allocation.status,
        scheduled_date=allocation.scheduled_date,
        lions=journeys.events(lions_site_id, allocation.id),
        bulk=journeys.events(bulk_site_id, allocation.id),
        allocation_id=allocation.id,
    )


def lions_stage(derived: DerivedStage) -> LionsStage:
    """
    Re-map the four-stage result onto the single-site Lions Park board.

    Lions "Checked In" is the two-site "Staging", Lions "Departed" covers
    everything after leaving Lions. Unlike the two-site board, cancelled
    allocations show as Departed here.
    """
    if derived.basis is StageBasis.bulk_event:
        return LionsStage.departed
    if derived.basis is StageBasis.lions_event:
        if derived.stage is Stage.staging:
            return LionsStage.checked_in
        if derived.display_status == JourneyStatus.departed.value:
            return LionsStage.departed
        return LionsStage.pending_arrival

    status = derived.display_status
    if status in _LIONS_CHECKED_IN_STATUSES:
        return LionsStage.checked_in
    if status in _LIONS_DEPARTED_STATUSES:
        return LionsStage.departed
    return LionsStage.pending_arrival
