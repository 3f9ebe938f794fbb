from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Sequence

import structlog

from weigh8_journey.core.errors import AllocationNotFound
from weigh8_journey.core.time import as_utc, utc_now
from weigh8_journey.models import (
    Allocation,
    AllocationStatus,
    DriverValidationStatus,
)

from .text import normalize_plate

log = structlog.get_logger(__name__)


class GateAction(StrEnum):
    entry = "entry"
    exit = "exit"


_ENTRY_ACTIVE = frozenset(
    {AllocationStatus.scheduled.value, AllocationStatus.in_transit.value}
)
_EXIT_ON_SITE = frozenset(
    {AllocationStatus.arrived.value, AllocationStatus.weighing.value}
)


@dataclass(frozen=True, slots=True)
class Resolution:
    allocation: Allocation
    candidate_count: int
    pool_size: int
    used_fallback: bool = False

    @property
    def is_ambiguous(self) -> bool:
        return self.candidate_count > 1

    def summary(self) -> str:
        if not self.is_ambiguous:
            return f"1 match, selected {self.allocation.id}"
        return (
            f"{self.candidate_count} possible matches, selected {self.allocation.id}"
        )


def candidates_for_plate(
    plate: str | None, allocations: Sequence[Allocation]
) -> list[Allocation]:
    key = normalize_plate(plate)
    if not key:
        return []
    return [a for a in allocations if normalize_plate(a.vehicle_reg) == key]


def is_active_for(allocation: Allocation, action: GateAction) -> bool:
    if action is GateAction.entry:
        return allocation.status in _ENTRY_ACTIVE
    if allocation.status == AllocationStatus.completed.value:
        return False
    return (
        allocation.driver_validation_status
        == DriverValidationStatus.ready_for_dispatch.value
        or allocation.status in _EXIT_ON_SITE
    )


def _distance_s(allocation: Allocation, now: datetime) -> float:
    if allocation.scheduled_date is None:
        return math.inf
    return abs((allocation.scheduled_date - now).total_seconds())


def resolve_plate(
    plate: str | None,
    allocations: Sequence[Allocation],
    action: GateAction | str,
    *,
    now: datetime | None = None,
) -> Resolution:
    """
    Pick the one allocation a manual gate action refers to.

    Plates match exactly once whitespace and case are stripped. With several
    candidates (the same truck booked on different days) the pool is narrowed
    to allocations active for the action, or left whole when none are, and
    the scheduled date nearest to `now` wins; undated allocations are never
    preferred and ties keep list order.

    Raises AllocationNotFound when no allocation carries the plate.
    """
    action = GateAction(action)
    candidates = candidates_for_plate(plate, allocations)
    if not candidates:
        log.info("gate.resolve.not_found", plate=plate, action=action.value)
        raise AllocationNotFound(plate or "")

    if len(candidates) == 1:
        return Resolution(allocation=candidates[0], candidate_count=1, pool_size=1)

    ref = as_utc(now) if now is not None else utc_now()
    active = [a for a in candidates if is_active_for(a, action)]
    pool = active or candidates
    # min() returns the first of equal keys, so ties keep list order
    best = min(pool, key=lambda a: _distance_s(a, ref))

    res = Resolution(
        allocation=best,
        candidate_count=len(candidates),
        pool_size=len(pool),
        used_fallback=not active,
    )
    log.info(
        "gate.resolve.ambiguous",
        plate=plate,
        action=action.value,
        candidates=res.candidate_count,
        pool=res.pool_size,
        fallback=res.used_fallback,
        chosen_id=best.id,
        chosen_status=best.status,
    )
    return res
