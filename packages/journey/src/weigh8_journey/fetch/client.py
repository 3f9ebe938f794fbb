from __future__ import annotations

from typing import Any, Optional, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from weigh8_journey.core.config import Settings
from weigh8_journey.core.errors import InputDataError
from weigh8_journey.models import Allocation, CanonicalEntity, JourneyEvent

from .http import make_http_client, request_with_retries

log = structlog.get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def unwrap_envelope(payload: Any, *, path: str) -> list[Any]:
    """
    The dashboard API wraps every list in {"success": true, "data": [...]}.
    """
    if not isinstance(payload, dict):
        raise InputDataError(f"{path}: expected a JSON object, got {type(payload).__name__}")
    if not payload.get("success", False):
        err = payload.get("error") or payload.get("message") or "success=false"
        raise InputDataError(f"{path}: {err}")
    data = payload.get("data")
    if data is None:
        return []
    if not isinstance(data, list):
        raise InputDataError(f"{path}: expected data to be a list")
    return data


def parse_records(rows: list[Any], model: type[M], *, path: str) -> list[M]:
    """
    Validate rows one by one; a malformed row is logged and skipped so one bad
    record cannot blank a whole board.
    """
    out: list[M] = []
    for i, row in enumerate(rows):
        try:
            out.append(model.model_validate(row))
        except ValidationError as e:
            log.warning(
                "api.record.invalid",
                path=path,
                index=i,
                model=model.__name__,
                errors=e.error_count(),
            )
    return out


class DashboardClient:
    """
    Read-only client for the dashboard API endpoints the engine consumes.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        http: httpx.Client | None = None,
    ) -> None:
        self.settings = settings
        self._owns_http = http is None
        self.http = http or make_http_client(
            base_url=settings.api_base_url.rstrip("/") + "/",
            timeout=settings.http_timeout_s,
        )

    def __enter__(self) -> "DashboardClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def _get_list(self, path: str, params: dict[str, Any] | None = None) -> list[Any]:
        resp = request_with_retries(
            self.http,
            method="GET",
            url=path,
            params=params,
            max_attempts=self.settings.http_max_attempts,
        )
        try:
            payload = resp.json()
        except ValueError as e:
            raise InputDataError(f"{path}: response is not JSON") from e
        return unwrap_envelope(payload, path=path)

    def list_allocations(
        self, *, site_id: Optional[int] = None, vehicle_reg: Optional[str] = None
    ) -> list[Allocation]:
        params: dict[str, Any] = {"limit": self.settings.allocation_limit}
        if site_id is not None:
            params["siteId"] = site_id
        if vehicle_reg:
            params["vehicleReg"] = vehicle_reg
        rows = self._get_list("truck-allocations", params)
        return parse_records(rows, Allocation, path="truck-allocations")

    def latest_journey(self, site_id: int) -> list[JourneyEvent]:
        path = f"site-journey/site/{site_id}/latest"
        return parse_records(self._get_list(path), JourneyEvent, path=path)

    def journey_history(self, allocation_id: int) -> list[JourneyEvent]:
        path = f"site-journey/allocation/{allocation_id}"
        return parse_records(self._get_list(path), JourneyEvent, path=path)

    def list_transporters(self) -> list[CanonicalEntity]:
        return parse_records(
            self._get_list("transporters"), CanonicalEntity, path="transporters"
        )
