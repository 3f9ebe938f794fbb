from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

import httpx
import structlog
from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt
from tenacity.wait import wait_base

from weigh8_journey.core.errors import ExternalServiceError, InputDataError

_RETRYABLE_STATUSES: set[int] = {408, 429, 500, 502, 503, 504}

log = structlog.get_logger(__name__)


class HttpFetchError(RuntimeError):
    """Base HTTP fetch error."""


class HttpStatusError(HttpFetchError, InputDataError):
    """
    Non-retryable HTTP status (e.g., 400/401/403/404).
    """

    def __init__(
        self,
        *,
        method: str,
        url: str,
        status_code: int,
        body_snippet: str | None,
    ) -> None:
        msg = f"HTTP {status_code} for {method} {url}"
        if body_snippet:
            msg += f" (body: {body_snippet})"
        super().__init__(msg)
        self.method = method
        self.url = url
        self.status_code = status_code


class HttpRetriesExceeded(HttpFetchError, ExternalServiceError):
    def __init__(
        self, *, method: str, url: str, attempts: int, last_error: BaseException
    ) -> None:
        super().__init__(
            f"HTTP retries exceeded for {method} {url} (attempts={attempts}): {last_error}"
        )
        self.method = method
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


def make_http_client(
    *,
    base_url: str = "",
    timeout: httpx.Timeout | float | None = None,
    user_agent: str = "weigh8-journey/0.1",
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    if timeout is None or isinstance(timeout, (int, float)):
        read = float(timeout) if timeout is not None else 30.0
        timeout = httpx.Timeout(connect=5.0, read=read, write=read, pool=5.0)
    return httpx.Client(
        base_url=base_url,
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": user_agent, "Accept": "application/json"},
        transport=transport,
    )


def is_retryable_status(code: int) -> bool:
    return code in _RETRYABLE_STATUSES


class DeterministicExponentialBackoff(wait_base):
    def __init__(self, *, base: float = 0.5, cap: float = 4.0) -> None:
        self._base = float(base)
        self._cap = float(cap)

    def __call__(self, retry_state) -> float:
        n = retry_state.attempt_number
        if n <= 1:
            return 0.0
        return min(self._cap, self._base * (2 ** (n - 2)))


@dataclass(frozen=True, slots=True)
class RetryableHttpStatus(Exception):
    method: str
    url: str
    status_code: int


def _retrying(
    *,
    method: str,
    url: str,
    max_attempts: int,
    base: float,
    cap: float,
) -> Retrying:
    def _before_sleep(retry_state) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        sleep = retry_state.next_action.sleep if retry_state.next_action else None
        log.warning(
            "http.retry",
            method=method,
            url=url,
            attempt=retry_state.attempt_number,
            sleep_s=sleep,
            error=repr(exc) if exc else None,
        )

    return Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=DeterministicExponentialBackoff(base=base, cap=cap),
        retry=retry_if_exception_type(
            (httpx.TimeoutException, httpx.TransportError, RetryableHttpStatus)
        ),
        reraise=False,
        before_sleep=_before_sleep,
    )


def _body_snippet(resp: httpx.Response, *, limit: int = 200) -> str | None:
    try:
        s = (resp.text or "")[:limit].strip()
    except httpx.ResponseNotRead:
        return None
    return s or None


def request_with_retries(
    client: httpx.Client,
    *,
    method: str,
    url: str,
    params: Mapping[str, Any] | None = None,
    max_attempts: int = 3,
    backoff_base: float = 0.5,
    backoff_cap: float = 4.0,
) -> httpx.Response:
    def _do() -> httpx.Response:
        resp = client.request(method, url, params=params)

        if resp.status_code == 200:
            return resp

        snippet = _body_snippet(resp)
        resp.close()

        if is_retryable_status(resp.status_code):
            raise RetryableHttpStatus(
                method=method, url=url, status_code=resp.status_code
            )

        raise HttpStatusError(
            method=method,
            url=url,
            status_code=resp.status_code,
            body_snippet=snippet,
        )

    return _run_with_retries(
        method=method,
        url=url,
        max_attempts=max_attempts,
        backoff_base=backoff_base,
        backoff_cap=backoff_cap,
        fn=_do,
    )


def _run_with_retries(
    *,
    method: str,
    url: str,
    max_attempts: int,
    backoff_base: float,
    backoff_cap: float,
    fn: Callable[[], httpx.Response],
) -> httpx.Response:
    retrying = _retrying(
        method=method,
        url=url,
        max_attempts=max_attempts,
        base=backoff_base,
        cap=backoff_cap,
    )

    attempt_no = 0

    try:
        for attempt in retrying:
            attempt_no = attempt.retry_state.attempt_number
            with attempt:
                return fn()

    except RetryError as re:
        last = re.last_attempt.exception()
        raise HttpRetriesExceeded(
            method=method,
            url=url,
            attempts=re.last_attempt.attempt_number,
            last_error=last or Exception("unknown"),
        ) from last

    except HttpFetchError:
        raise

    except httpx.HTTPError as e:
        raise HttpRetriesExceeded(
            method=method,
            url=url,
            attempts=max(attempt_no, 1),
            last_error=e,
        ) from e

    raise RuntimeError("unreachable")
