from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from weigh8_journey.core.errors import IssueCode
from weigh8_journey.core.time import parse_timestamp

log = structlog.get_logger(__name__)


class AllocationStatus(StrEnum):
    scheduled = "scheduled"
    in_transit = "in_transit"
    arrived = "arrived"
    weighing = "weighing"
    ready_for_dispatch = "ready_for_dispatch"
    completed = "completed"
    cancelled = "cancelled"


class DriverValidationStatus(StrEnum):
    pending_verification = "pending_verification"
    verified = "verified"
    ready_for_dispatch = "ready_for_dispatch"
    rejected = "rejected"
    non_matched = "non_matched"


class JourneyEventType(StrEnum):
    arrival = "arrival"
    departure = "departure"
    check_in = "check_in"
    check_out = "check_out"


class JourneyStatus(StrEnum):
    arrived = "arrived"
    departed = "departed"


class DetectionMethod(StrEnum):
    anpr_auto = "anpr_auto"
    manual_upload = "manual_upload"
    manual_entry = "manual_entry"
    system = "system"


ARRIVAL_EVENT_TYPES = frozenset(
    {JourneyEventType.arrival.value, JourneyEventType.check_in.value}
)
DEPARTURE_EVENT_TYPES = frozenset(
    {JourneyEventType.departure.value, JourneyEventType.check_out.value}
)


def _lenient_timestamp(value: object, *, field: str) -> Optional[datetime]:
    try:
        return parse_timestamp(value)
    except ValueError:
        log.warning(
            "data_quality.warning",
            code=IssueCode.UNPARSEABLE_TIMESTAMP.value,
            field=field,
            value=repr(value),
        )
        return None


class _ApiModel(BaseModel):
    """
    Dashboard API records: camelCase on the wire, snake_case in Python,
    unknown keys ignored.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class Allocation(_ApiModel):
    id: int
    vehicle_reg: str = ""
    transporter: Optional[str] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    driver_id: Optional[str] = None
    order_number: Optional[str] = None
    ticket_no: Optional[str] = None

    # statuses stay plain strings: unknown values are data-quality findings, not errors
    status: str = AllocationStatus.scheduled.value
    driver_validation_status: Optional[str] = None

    scheduled_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    gross_weight: Optional[Decimal] = None
    tare_weight: Optional[Decimal] = None
    net_weight: Optional[Decimal] = None

    site_id: Optional[int] = None

    @field_validator("scheduled_date", "created_at", mode="before")
    @classmethod
    def _parse_dates(cls, v: object, info: ValidationInfo) -> Optional[datetime]:
        return _lenient_timestamp(v, field=info.field_name)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: object) -> str:
        # blank stays blank so stage resolution reports it
        return str(v or "").strip().lower()

    @field_validator("vehicle_reg", mode="before")
    @classmethod
    def _plate(cls, v: object) -> str:
        return "" if v is None else str(v)


class JourneyEvent(_ApiModel):
    """
    An arrival at or departure from one site. Immutable, append-only upstream.
    """

    allocation_id: int
    site_id: int
    event_type: str
    status: str
    timestamp: Optional[datetime] = None
    detection_method: Optional[str] = None
    detection_source: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_ts(cls, v: object) -> Optional[datetime]:
        return _lenient_timestamp(v, field="timestamp")

    @field_validator("event_type", "status", mode="before")
    @classmethod
    def _lower(cls, v: object) -> str:
        return str(v or "").strip().lower()

    @property
    def is_arrival(self) -> bool:
        return self.event_type in ARRIVAL_EVENT_TYPES

    @property
    def is_departure(self) -> bool:
        return self.event_type in DEPARTURE_EVENT_TYPES


class CanonicalEntity(_ApiModel):
    """Master-data record: transporter, client, freight company or driver."""

    id: int
    name: str
    code: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = Field(default=True)
