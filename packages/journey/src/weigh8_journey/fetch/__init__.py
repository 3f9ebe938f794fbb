from .client import DashboardClient, parse_records, unwrap_envelope
from .http import (
    HttpFetchError,
    HttpRetriesExceeded,
    HttpStatusError,
    make_http_client,
    request_with_retries,
)
from .poller import BoardPoller, Snapshot, fetch_snapshot

__all__ = [
    "DashboardClient",
    "parse_records",
    "unwrap_envelope",
    "HttpFetchError",
    "HttpRetriesExceeded",
    "HttpStatusError",
    "make_http_client",
    "request_with_retries",
    "BoardPoller",
    "Snapshot",
    "fetch_snapshot",
]
