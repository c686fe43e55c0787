"""Core connector abstractions.

Defines the transport side of the package:
- RemoteObjectStore Protocol: the operations the resolution engine and the
  record helpers need from the platform
- AuthStrategy: how credentials are attached to requests
- RequestPolicy: retries, timeouts, request pacing
- ConnectorError hierarchy: typed transport exceptions

Connector implementations raise ConnectorError internally (HTTP layer) and
convert it to failed ResolutionResults at their public boundary.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from apptivolink.apps import AppDescriptor
from apptivolink.result import ResolutionResult

# =============================================================================
# Credentials
# =============================================================================


class AuthType(str, Enum):
    """Kind of credentials a strategy carries."""

    NONE = "none"
    API_KEY = "api_key"
    SESSION = "session"


@dataclass
class AuthStrategy:
    """Credentials contributed as request parameters.

    The platform reads credentials from the query string or the form body,
    never from headers, so a strategy only has to produce parameters.
    """

    auth_type: AuthType = AuthType.NONE

    def is_configured(self) -> bool:
        return True

    def get_params(self) -> Dict[str, str]:
        """Parameters to merge into a request."""
        return {}


@dataclass
class NoAuth(AuthStrategy):
    """Anonymous requests (tests, the login endpoint)."""

    auth_type: AuthType = field(default=AuthType.NONE, init=False)


@dataclass
class ApiKeyAuth(AuthStrategy):
    """Firm API key and access key, optionally acting as a named user."""

    auth_type: AuthType = field(default=AuthType.API_KEY, init=False)
    api_key: str = ""
    access_key: str = ""
    user_email: str = ""

    def is_configured(self) -> bool:
        """Both keys are required; the user email is optional."""
        return bool(self.api_key and self.access_key)

    def get_params(self) -> Dict[str, str]:
        """``apiKey``/``accessKey`` plus ``userName`` when a user is set."""
        if not self.is_configured():
            return {}
        params = {"apiKey": self.api_key, "accessKey": self.access_key}
        if self.user_email:
            params["userName"] = self.user_email
        return params


@dataclass
class SessionAuth(AuthStrategy):
    """Session key obtained from the login endpoint.

    Required by the bulk data-management endpoint.
    """

    auth_type: AuthType = field(default=AuthType.SESSION, init=False)
    session_key: str = ""

    def is_configured(self) -> bool:
        return bool(self.session_key)

    def get_params(self) -> Dict[str, str]:
        return {"sessionKey": self.session_key} if self.session_key else {}


# =============================================================================
# Request Policy
# =============================================================================


@dataclass
class RequestPolicy:
    """How HTTPClient paces, times out and retries requests."""

    # Seconds
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    total_timeout: float = 60.0

    # Attempt n (0-based) waits retry_delay * retry_backoff**n before retrying
    max_retries: int = 3
    retry_delay: float = 1.0
    retry_backoff: float = 2.0
    retry_on_status: List[int] = field(default_factory=lambda: [429, 500, 502, 503, 504])

    # Minimum seconds between consecutive requests; 0 disables pacing
    request_interval: float = 0.0

    user_agent: str = "apptivolink/0.1"
    default_headers: Dict[str, str] = field(default_factory=dict)


DEFAULT_POLICY = RequestPolicy()


# =============================================================================
# Transport Errors
# =============================================================================


class ConnectorError(Exception):
    """A request to the platform did not produce a usable answer.

    Attributes:
        connector_name: Connector that raised the error
        status_code: HTTP status, when the platform answered at all
    """

    def __init__(self, message: str, connector_name: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.connector_name = connector_name
        self.status_code = status_code


class ConnectionError(ConnectorError):
    """The host could not be reached."""


class TimeoutError(ConnectorError):
    """No answer within the read timeout."""

    def __init__(
        self,
        message: str = "Request timed out",
        connector_name: str = "",
        timeout_seconds: Optional[float] = None,
    ):
        super().__init__(message, connector_name)
        self.timeout_seconds = timeout_seconds


class AuthenticationError(ConnectorError):
    """Keys rejected, session expired, or the user lacks permission."""


class RateLimitError(ConnectorError):
    """HTTP 429; ``retry_after`` carries the server's hint in seconds."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        connector_name: str = "",
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, connector_name, status_code=429)
        self.retry_after = retry_after


class ResourceNotFoundError(ConnectorError):
    """HTTP 404 for an endpoint or record."""


class ServiceUnavailableError(ConnectorError):
    """HTTP 5xx."""


class InvalidResponseError(ConnectorError):
    """The platform answered, but not with a usable payload."""


# =============================================================================
# Remote Object Store
# =============================================================================


@dataclass
class PagingParams:
    """Paging and sorting for search endpoints."""

    start_index: int = 0
    num_records: int = 50
    sort_column: Optional[str] = None
    sort_dir: str = "asc"

    def to_params(self) -> Dict[str, str]:
        params = {"startIndex": str(self.start_index), "numRecords": str(self.num_records)}
        if self.sort_column:
            params["sortColumn"] = self.sort_column
            params["sortDir"] = self.sort_dir
        return params


@dataclass
class SearchPage:
    """One page of search results."""

    records: List[Dict[str, Any]] = field(default_factory=list)
    total_count: int = 0


@runtime_checkable
class RemoteObjectStore(Protocol):
    """Operations the client needs from the platform.

    Every method is a blocking call returning a ResolutionResult; transport
    errors never escape as exceptions.
    """

    def fetch_config(self, app: AppDescriptor) -> ResolutionResult[Any]:
        """Fetch the raw configuration document for an app."""
        ...

    def fetch_record(self, app: AppDescriptor, record_id: str) -> ResolutionResult[Dict[str, Any]]:
        """Fetch one record by id."""
        ...

    def submit_record(
        self,
        app: AppDescriptor,
        record: Dict[str, Any],
        is_create: bool,
        changed_attribute_ids: List[str],
        changed_attribute_names: List[str],
    ) -> ResolutionResult[Dict[str, Any]]:
        """Create or update a record, returning the stored record."""
        ...

    def search_by_text(
        self, app: AppDescriptor, text: str, paging: Optional[PagingParams] = None
    ) -> ResolutionResult[SearchPage]:
        """Keyword search within an app."""
        ...


class BaseConnector(ABC):
    """Shared state of the concrete stores.

    Holds the credentials, the request policy and the login session;
    subclasses implement the RemoteObjectStore methods plus the session,
    bulk and email operations.
    """

    _name: str = "base"

    def __init__(
        self,
        auth: Optional[AuthStrategy] = None,
        policy: Optional[RequestPolicy] = None,
    ):
        self.auth = auth or NoAuth()
        self.policy = policy or DEFAULT_POLICY
        self.session: Optional[SessionAuth] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def has_session(self) -> bool:
        return self.session is not None and self.session.is_configured()

    @abstractmethod
    def fetch_config(self, app: AppDescriptor) -> ResolutionResult[Any]:
        pass

    @abstractmethod
    def fetch_record(self, app: AppDescriptor, record_id: str) -> ResolutionResult[Dict[str, Any]]:
        pass

    @abstractmethod
    def submit_record(
        self,
        app: AppDescriptor,
        record: Dict[str, Any],
        is_create: bool,
        changed_attribute_ids: List[str],
        changed_attribute_names: List[str],
    ) -> ResolutionResult[Dict[str, Any]]:
        pass

    @abstractmethod
    def search_by_text(
        self, app: AppDescriptor, text: str, paging: Optional[PagingParams] = None
    ) -> ResolutionResult[SearchPage]:
        pass

    @abstractmethod
    def login(self, email: str, password: str, firm_id: str) -> ResolutionResult[str]:
        """Obtain and keep a session key."""
        pass

    @abstractmethod
    def data_management_get_all(
        self, app: AppDescriptor, start_index: int = 0, num_records: int = 2000
    ) -> ResolutionResult[SearchPage]:
        """Bulk retrieval endpoint (requires a session)."""
        pass

    @abstractmethod
    def send_email(self, email_data: Dict[str, Any]) -> ResolutionResult[Dict[str, Any]]:
        pass


# =============================================================================
# Connector Registry
# =============================================================================


def _registry_key(name: str) -> str:
    return name.strip().lower()


class ConnectorRegistry:
    """Store classes selectable by name through ``APPTIVO_CONNECTOR``.

    Modules register their class at import time.
    """

    _classes: Dict[str, type] = {}

    @classmethod
    def register(cls, name: str, connector_class: type) -> None:
        """Make a store class selectable.

        Args:
            name: Selection name (e.g., "apptivo", "memory")
            connector_class: BaseConnector subclass
        """
        cls._classes[_registry_key(name)] = connector_class

    @classmethod
    def unregister(cls, name: str) -> None:
        cls._classes.pop(_registry_key(name), None)

    @classmethod
    def get(cls, name: str) -> Optional[type]:
        """Class registered under ``name``, or None."""
        return cls._classes.get(_registry_key(name))

    @classmethod
    def list_connectors(cls) -> List[str]:
        return sorted(cls._classes)

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return _registry_key(name) in cls._classes
