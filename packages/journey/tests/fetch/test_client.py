from __future__ import annotations

import httpx
import pytest

from weigh8_journey.core.config import Settings
from weigh8_journey.core.errors import InputDataError
from weigh8_journey.fetch.client import DashboardClient, unwrap_envelope
from weigh8_journey.fetch.http import (
    HttpRetriesExceeded,
    HttpStatusError,
    make_http_client,
    request_with_retries,
)

BASE = "http://dash.test/api/"


def _client(handler, **settings) -> DashboardClient:
    s = Settings(api_base_url=BASE, http_max_attempts=3, **settings)
    http = make_http_client(base_url=BASE, transport=httpx.MockTransport(handler))
    return DashboardClient(s, http=http)


def test_list_allocations_parses_camel_case_and_sends_params() -> None:
    seen: list[httpx.Request] = []

    def handler(req: httpx.Request) -> httpx.Response:
        seen.append(req)
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": [
                    {
                        "id": 12,
                        "vehicleReg": "ABC 123 GP",
                        "transporter": "Acme Transport",
                        "status": "IN_TRANSIT",
                        "scheduledDate": "2026-03-02T06:00:00.000Z",
                        "createdAt": "2026-03-01",
                        "driverValidationStatus": "verified",
                        "siteId": 2,
                        "netWeight": "34.50",
                        "product": "Chrome ore",
                    },
                    {"vehicleReg": "NO-ID"},
                ],
            },
        )

    with _client(handler, allocation_limit=250) as c:
        allocs = c.list_allocations(site_id=1)

    assert seen[0].url.path == "/api/truck-allocations"
    assert seen[0].url.params["limit"] == "250"
    assert seen[0].url.params["siteId"] == "1"

    assert len(allocs) == 1
    a = allocs[0]
    assert a.vehicle_reg == "ABC 123 GP"
    assert a.status == "in_transit"
    assert a.site_id == 2
    assert a.scheduled_date is not None and a.scheduled_date.tzinfo is not None
    assert a.created_at is not None and a.created_at.day == 1
    assert str(a.net_weight) == "34.50"


def test_latest_journey_and_history_paths() -> None:
    def handler(req: httpx.Request) -> httpx.Response:
        assert req.method == "GET"
        row = {
            "id": 1,
            "allocationId": 12,
            "siteId": 1,
            "eventType": "arrival",
            "status": "arrived",
            "timestamp": "not a time",
            "detectionMethod": "anpr_auto",
        }
        return httpx.Response(200, json={"success": True, "data": [row], "total": 1})

    with _client(handler) as c:
        latest = c.latest_journey(1)
        history = c.journey_history(12)

    assert latest[0].allocation_id == 12
    # unparseable timestamps degrade to None instead of dropping the event
    assert latest[0].timestamp is None
    assert history[0].is_arrival


def test_envelope_errors() -> None:
    with pytest.raises(InputDataError):
        unwrap_envelope({"success": False, "error": "nope"}, path="x")
    with pytest.raises(InputDataError):
        unwrap_envelope([], path="x")
    with pytest.raises(InputDataError):
        unwrap_envelope({"success": True, "data": {"id": 1}}, path="x")
    assert unwrap_envelope({"success": True}, path="x") == []


def test_non_json_body_is_input_error() -> None:
    def handler(req: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>")

    with _client(handler) as c, pytest.raises(InputDataError):
        c.list_transporters()


def test_retry_then_success() -> None:
    calls = {"n": 0}

    def handler(req: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            return httpx.Response(503, text="busy")
        return httpx.Response(200, json={"ok": True})

    http = make_http_client(base_url=BASE, transport=httpx.MockTransport(handler))
    resp = request_with_retries(http, method="GET", url="ping", backoff_base=0.0)
    assert resp.json() == {"ok": True}
    assert calls["n"] == 2


def test_retries_exhausted_and_non_retryable_status() -> None:
    def busy(req: httpx.Request) -> httpx.Response:
        return httpx.Response(502)

    http = make_http_client(base_url=BASE, transport=httpx.MockTransport(busy))
    with pytest.raises(HttpRetriesExceeded) as ei:
        request_with_retries(
            http, method="GET", url="ping", max_attempts=2, backoff_base=0.0
        )
    assert ei.value.attempts == 2

    def missing(req: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="no such route")

    http = make_http_client(base_url=BASE, transport=httpx.MockTransport(missing))
    with pytest.raises(HttpStatusError) as es:
        request_with_retries(http, method="GET", url="ping")
    assert es.value.status_code == 404
    assert isinstance(es.value, InputDataError)


def test_transport_error_is_retried() -> None:
    calls = {"n": 0}

    def flaky(req: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] < 3:
            raise httpx.ConnectError("refused", request=req)
        return httpx.Response(200, json={"success": True, "data": []})

    with _client(flaky) as c:
        # http_max_attempts=3 in _client; backoff base 0.5 -> waits 0.0 then 0.5s
        assert c.list_transporters() == []
    assert calls["n"] == 3


def test_only_200_is_accepted() -> None:
    calls = {"n": 0}

    def empty(req: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        return httpx.Response(204)

    http = make_http_client(base_url=BASE, transport=httpx.MockTransport(empty))
    with pytest.raises(HttpStatusError) as es:
        request_with_retries(http, method="GET", url="ping", backoff_base=0.0)
    assert es.value.status_code == 204
    assert calls["n"] == 1
