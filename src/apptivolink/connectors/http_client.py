"""Blocking HTTP transport for connectors.

HTTPClient applies a RequestPolicy to every call:
- Requests are paced by ``request_interval``
- Retryable statuses and transport errors are retried with backoff
- Failed responses become ConnectorError subclasses

Tests pass an ``httpx.MockTransport`` instead of hitting the network.
"""

import json
import logging
import time
from typing import Any, Dict, Optional

import httpx

from .base import (
    AuthenticationError,
    AuthStrategy,
    ConnectionError,
    ConnectorError,
    InvalidResponseError,
    RateLimitError,
    RequestPolicy,
    ResourceNotFoundError,
    ServiceUnavailableError,
    TimeoutError,
)

logger = logging.getLogger(__name__)

# Statuses with a dedicated error class and message prefix
STATUS_ERRORS = {
    401: (AuthenticationError, "Authentication failed"),
    403: (AuthenticationError, "Permission denied"),
    404: (ResourceNotFoundError, "Resource not found"),
}


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class HTTPResponse:
    """Status, headers and body of one completed request."""

    def __init__(self, response: httpx.Response, elapsed_seconds: float = 0.0):
        self.status_code = response.status_code
        self.headers = dict(response.headers)
        self.body = response.content
        self.retry_after = _parse_retry_after(response.headers.get("retry-after"))
        self.elapsed_seconds = elapsed_seconds
        self._parsed: Any = None
        self._is_parsed = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Parsed body; None when the body is empty.

        Raises:
            InvalidResponseError: If the body is not JSON
        """
        if not self._is_parsed:
            if self.body.strip():
                try:
                    self._parsed = json.loads(self.body)
                except ValueError as e:
                    raise InvalidResponseError(
                        f"Response body is not JSON: {self.text[:200]}", status_code=self.status_code
                    ) from e
            self._is_parsed = True
        return self._parsed


class HTTPClient:
    """Paced, retrying client bound to one API host.

    The auth strategy's parameters go into the query string unless a call
    passes ``with_auth=False`` (endpoints that read credentials from the form
    body, and the login endpoint).
    """

    def __init__(
        self,
        auth: Optional[AuthStrategy] = None,
        policy: Optional[RequestPolicy] = None,
        base_url: str = "",
        transport: Optional[httpx.BaseTransport] = None,
        connector_name: str = "http_client",
    ):
        """Initialize HTTP client.

        Args:
            auth: Credentials merged into each query string
            policy: Timeouts, retries and pacing
            base_url: Host prefix for relative paths
            transport: httpx transport override (MockTransport in tests)
            connector_name: Name carried by raised ConnectorErrors
        """
        self.auth = auth
        self.policy = policy or RequestPolicy()
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.connector_name = connector_name
        self.request_count = 0
        self._last_sent = 0.0

    def url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def error_for(self, response: HTTPResponse) -> ConnectorError:
        """ConnectorError describing a non-2xx response."""
        status, body, name = response.status_code, response.text, self.connector_name
        if status in STATUS_ERRORS:
            error_class, prefix = STATUS_ERRORS[status]
            return error_class(f"{prefix}: {body}", connector_name=name, status_code=status)
        if status == 429:
            return RateLimitError(
                f"Rate limit exceeded: {body}", connector_name=name, retry_after=response.retry_after
            )
        if status >= 500:
            return ServiceUnavailableError(
                f"Service error ({status}): {body}", connector_name=name, status_code=status
            )
        return ConnectorError(f"HTTP error {status}: {body}", connector_name=name, status_code=status)

    def _transport_error(self, error: httpx.HTTPError, url: str) -> ConnectorError:
        name = self.connector_name
        if isinstance(error, httpx.TimeoutException):
            return TimeoutError(
                f"Request to {url} timed out after {self.policy.read_timeout}s",
                connector_name=name,
                timeout_seconds=self.policy.read_timeout,
            )
        if isinstance(error, httpx.ConnectError):
            return ConnectionError(f"Failed to connect to {url}: {error}", connector_name=name)
        return ConnectorError(f"HTTP error from {url}: {error}", connector_name=name)

    def _pace(self) -> None:
        """Hold the request until ``request_interval`` has passed since the last one."""
        if self._last_sent:
            wait = self._last_sent + self.policy.request_interval - time.monotonic()
            if wait > 0:
                time.sleep(wait)
        self._last_sent = time.monotonic()

    def _back_off(self, attempt: int, reason: str, retry_after: Optional[float] = None) -> None:
        if retry_after is None:
            delay = self.policy.retry_delay * (self.policy.retry_backoff**attempt)
        else:
            delay = retry_after
        logger.warning(f"{reason}; retry {attempt + 1}/{self.policy.max_retries} in {delay:.1f}s")
        time.sleep(delay)

    def _send(
        self,
        method: str,
        url: str,
        query: Dict[str, Any],
        data: Optional[Dict[str, Any]],
        headers: Optional[Dict[str, str]],
    ) -> HTTPResponse:
        self._pace()
        request_headers = {"User-Agent": self.policy.user_agent, "Accept": "application/json"}
        request_headers.update(self.policy.default_headers)
        request_headers.update(headers or {})
        timeout = httpx.Timeout(
            self.policy.read_timeout,
            connect=self.policy.connect_timeout,
            pool=self.policy.total_timeout,
        )

        started = time.monotonic()
        with httpx.Client(timeout=timeout, transport=self.transport) as client:
            raw = client.request(method, url, params=query, data=data, headers=request_headers)
        self.request_count += 1
        elapsed = time.monotonic() - started
        logger.debug(f"{method} {url} -> {raw.status_code} ({elapsed:.2f}s)")
        return HTTPResponse(raw, elapsed)

    def request(
        self,
        method: str,
        path: str,
        *,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        with_auth: bool = True,
        raise_for_status: bool = True,
    ) -> HTTPResponse:
        """Send a request, retrying as the policy allows.

        Args:
            method: GET or POST
            path: Path relative to base_url, or an absolute URL
            data: Form fields
            params: Query parameters
            headers: Extra headers
            with_auth: Merge the auth strategy's parameters into the query
            raise_for_status: Raise for a final non-2xx response

        Returns:
            HTTPResponse of the last attempt

        Raises:
            ConnectorError: Subclass matching the final failure
        """
        url = self.url_for(path)
        query: Dict[str, Any] = dict(params or {})
        if with_auth and self.auth:
            query.update(self.auth.get_params())

        attempts = self.policy.max_retries + 1
        for attempt in range(attempts):
            can_retry = attempt + 1 < attempts
            try:
                response = self._send(method, url, query, data, headers)
            except httpx.HTTPError as e:
                error = self._transport_error(e, url)
                if not can_retry:
                    raise error from e
                self._back_off(attempt, str(error))
                continue

            if not response.ok and can_retry and response.status_code in self.policy.retry_on_status:
                self._back_off(attempt, f"HTTP {response.status_code} from {url}", response.retry_after)
                continue
            if raise_for_status and not response.ok:
                raise self.error_for(response)
            return response

        raise ConnectorError(f"No attempts made for {url}", connector_name=self.connector_name)

    def get(self, path: str, **kwargs) -> HTTPResponse:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> HTTPResponse:
        return self.request("POST", path, **kwargs)
