from __future__ import annotations

from typing import Any, Optional

from weigh8_journey.models import (
    Allocation,
    AllocationStatus,
    DetectionMethod,
    DriverValidationStatus,
    JourneyEventType,
    JourneyStatus,
)

from .resolver import GateAction

_ON_SITE = frozenset({AllocationStatus.arrived.value, AllocationStatus.weighing.value})
_CHECKED_IN = _ON_SITE | {AllocationStatus.completed.value}


def gate_advisory(allocation: Allocation, action: GateAction | str) -> Optional[str]:
    """Warning shown to the gate operator for a resolved allocation, if any."""
    action = GateAction(action)
    status = allocation.status
    validation = allocation.driver_validation_status

    if action is GateAction.entry:
        if status in _CHECKED_IN:
            return "This truck has already been checked in"
        return None

    if status == AllocationStatus.completed.value:
        return "This truck has already departed"
    if validation == DriverValidationStatus.ready_for_dispatch.value:
        return None
    if status in _ON_SITE:
        if validation == DriverValidationStatus.verified.value:
            return (
                "Pending Permit Board - Driver is verified but permit has not "
                "been issued yet"
            )
        return "This driver is still pending verification"
    return "This truck is not ready for dispatch"


def gate_journey_payload(
    allocation: Allocation,
    action: GateAction | str,
    *,
    site_id: int,
    source: str = "Manual Gate Entry",
) -> dict[str, Any]:
    """
    Journey entry a confirmed manual gate action records, in API field names.
    Built here, posted by the caller.
    """
    action = GateAction(action)
    entering = action is GateAction.entry
    return {
        "allocationId": allocation.id,
        "siteId": site_id,
        "eventType": (
            JourneyEventType.arrival.value
            if entering
            else JourneyEventType.departure.value
        ),
        "status": (
            JourneyStatus.arrived.value if entering else JourneyStatus.departed.value
        ),
        "detectionMethod": DetectionMethod.manual_entry.value,
        "detectionSource": source,
        "notes": f"Manual {action.value} gate action for {allocation.vehicle_reg}",
    }
