from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class JourneyError(RuntimeError):
    """Base error"""


class AllocationNotFound(JourneyError, LookupError):
    """
    No allocation carries the requested plate. The only hard failure of the
    engine: a gate operator has to fall back to a manual process.
    """

    def __init__(self, plate: str) -> None:
        super().__init__(f"No allocation found for plate: {plate}")
        self.plate = plate


class TransientError(JourneyError):
    """
    Retryable failures such as network timeouts, temporary upstream 5xx
    """


class ExternalServiceError(TransientError):
    """Upstream service failure"""


class InputDataError(JourneyError):
    """
    Non-retryable: upstream content is present but invalid w.r.t. expectations
    (envelope shape, success=false, payload that is not a list)
    """


class IssueCode(StrEnum):
    UNKNOWN_ALLOCATION_STATUS = "UNKNOWN_ALLOCATION_STATUS"
    UNKNOWN_JOURNEY_STATUS = "UNKNOWN_JOURNEY_STATUS"
    UNKNOWN_EVENT_TYPE = "UNKNOWN_EVENT_TYPE"
    MISSING_TIMESTAMP = "MISSING_TIMESTAMP"
    UNPARSEABLE_TIMESTAMP = "UNPARSEABLE_TIMESTAMP"


@dataclass(frozen=True, slots=True)
class DataQualityIssue:
    """
    A data-quality finding. Logged by callers, never raised.
    """

    code: IssueCode
    message: str
    allocation_id: int | None = None
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "allocation_id": self.allocation_id,
            "value": self.value,
        }


@dataclass(frozen=True, slots=True)
class PartialData:
    """
    An upstream fetch that failed; the site is treated as having no events.
    """

    site_id: int
    error: str

    @classmethod
    def from_exc(cls, site_id: int, exc: BaseException) -> "PartialData":
        return cls(site_id=site_id, error=f"{type(exc).__name__}: {exc}")
