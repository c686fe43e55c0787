"""Connector layer between the resolution engine and the platform.

Key components:
- RemoteObjectStore Protocol: fetch config/records, submit, search
- AuthStrategy: ApiKeyAuth (business keys) and SessionAuth (login session)
- RequestPolicy: retries, timeouts, request pacing
- HTTPClient: httpx wrapper with policy enforcement
- ApptivoConnector: the platform's HTTP API
- InMemoryObjectStore: test store without network calls
"""

from .apptivo import DEFAULT_BASE_URL, ApptivoConnector, unwrap_record
from .base import (
    DEFAULT_POLICY,
    ApiKeyAuth,
    AuthenticationError,
    AuthStrategy,
    AuthType,
    BaseConnector,
    ConnectionError,
    ConnectorError,
    ConnectorRegistry,
    InvalidResponseError,
    NoAuth,
    PagingParams,
    RateLimitError,
    RemoteObjectStore,
    RequestPolicy,
    ResourceNotFoundError,
    SearchPage,
    ServiceUnavailableError,
    SessionAuth,
    TimeoutError,
)
from .http_client import HTTPClient, HTTPResponse
from .memory import InMemoryObjectStore

__all__ = [
    # Protocol and base class
    "RemoteObjectStore",
    "BaseConnector",
    "ConnectorRegistry",
    "PagingParams",
    "SearchPage",
    # Authentication
    "AuthType",
    "AuthStrategy",
    "NoAuth",
    "ApiKeyAuth",
    "SessionAuth",
    # Request policy
    "RequestPolicy",
    "DEFAULT_POLICY",
    # Error hierarchy
    "ConnectorError",
    "ConnectionError",
    "TimeoutError",
    "AuthenticationError",
    "RateLimitError",
    "ResourceNotFoundError",
    "ServiceUnavailableError",
    "InvalidResponseError",
    # HTTP
    "HTTPClient",
    "HTTPResponse",
    # Implementations
    "ApptivoConnector",
    "DEFAULT_BASE_URL",
    "unwrap_record",
    "InMemoryObjectStore",
]
