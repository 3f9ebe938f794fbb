from .config import (
    BULK_CONNECTIONS_SITE_ID,
    LIONS_PARK_SITE_ID,
    SITE_NAMES,
    Settings,
    load_settings,
)
from .errors import (
    AllocationNotFound,
    DataQualityIssue,
    ExternalServiceError,
    InputDataError,
    IssueCode,
    JourneyError,
    PartialData,
    TransientError,
)
from .json import read_json, stable_json_dumps
from .logging import bind, clear_bindings, configure_logging, get_logger
from .time import (
    SAST_TZ,
    as_utc,
    format_local,
    monotonic_ms,
    parse_timestamp,
    utc_now,
    utc_now_iso,
)

__all__ = [
    "BULK_CONNECTIONS_SITE_ID",
    "LIONS_PARK_SITE_ID",
    "SITE_NAMES",
    "Settings",
    "load_settings",
    "AllocationNotFound",
    "DataQualityIssue",
    "ExternalServiceError",
    "InputDataError",
    "IssueCode",
    "JourneyError",
    "PartialData",
    "TransientError",
    "read_json",
    "stable_json_dumps",
    "bind",
    "clear_bindings",
    "configure_logging",
    "get_logger",
    "SAST_TZ",
    "as_utc",
    "format_local",
    "monotonic_ms",
    "parse_timestamp",
    "utc_now",
    "utc_now_iso",
]
