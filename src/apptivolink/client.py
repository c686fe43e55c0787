"""Client session: one object store plus one configuration cache.

ApptivoClient is the entry point application code works with. It resolves
app names, fetches each app's configuration at most once per session, and
exposes the resolution engine (find/get/build by label, tables) together
with record read/create/update and search.

Usage:
    client = ApptivoClient.from_env()
    record = client.read("cases", "12345").unwrap()
    status = client.get_value(["Case Status"], record, "cases")
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from apptivolink.apps import AppDescriptor, resolve_app
from apptivolink.config import Config, config
from apptivolink.connectors.base import (
    ApiKeyAuth,
    ConnectorRegistry,
    PagingParams,
    RemoteObjectStore,
    RequestPolicy,
    SearchPage,
)
from apptivolink.labels import LabelInput
from apptivolink.result import ErrorKind, ResolutionResult
from apptivolink.schema import tables
from apptivolink.schema.cache import ConfigCache
from apptivolink.schema.extractor import AttributeDetails, details_for
from apptivolink.schema.models import ConfigDocument, DataRecord, ResolvedAttribute, TableRow
from apptivolink.schema.synthesizer import BuiltAttribute, build_for
from apptivolink.schema.walker import find_attribute

logger = logging.getLogger(__name__)

RecordInput = Union[DataRecord, Dict[str, Any]]


class ApptivoClient:
    """Session over a RemoteObjectStore with a fetch-once config cache."""

    def __init__(
        self,
        store: RemoteObjectStore,
        cache: Optional[ConfigCache] = None,
        cfg: Optional[Config] = None,
    ):
        """Initialize client.

        Args:
            store: Object store (ApptivoConnector, InMemoryObjectStore, ...)
            cache: Config cache to share; a fresh one is created by default
            cfg: Settings for session login (defaults to the module-level config)
        """
        self.store = store
        self.cache = cache if cache is not None else ConfigCache()
        self.config = cfg or config

    @classmethod
    def from_env(cls, cfg: Optional[Config] = None) -> "ApptivoClient":
        """Build a client from environment configuration.

        Args:
            cfg: Config to use (defaults to the module-level config)

        Raises:
            ValueError: If the configured connector is not registered
        """
        cfg = cfg or config
        connector_class = ConnectorRegistry.get(cfg.connector)
        if connector_class is None:
            raise ValueError(
                f"Unknown connector: {cfg.connector}. "
                f"Available: {', '.join(ConnectorRegistry.list_connectors())}"
            )

        auth = ApiKeyAuth(api_key=cfg.api_key, access_key=cfg.access_key, user_email=cfg.user_email)
        policy = RequestPolicy(
            max_retries=cfg.max_retries,
            retry_delay=cfg.retry_delay,
            request_interval=cfg.request_interval,
            read_timeout=cfg.timeout_s,
        )
        kwargs: Dict[str, Any] = {"auth": auth, "policy": policy}
        if cfg.connector.lower() == "apptivo":
            kwargs["base_url"] = cfg.base_url
        if not auth.is_configured():
            logger.warning("APPTIVO_API_KEY / APPTIVO_ACCESS_KEY not set; requests will be unauthenticated")
        return cls(connector_class(**kwargs), cfg=cfg)

    # =========================================================================
    # Apps and configuration
    # =========================================================================

    @staticmethod
    def resolve_app(app: str) -> ResolutionResult[AppDescriptor]:
        """Resolve an app name, id or compound string."""
        return resolve_app(app)

    def get_config(self, app: str) -> ResolutionResult[ConfigDocument]:
        """Configuration document for an app, fetched at most once per session."""
        return self.cache.get(app, self.store.fetch_config)

    def _with_config(self, app: str, fn) -> ResolutionResult[Any]:
        config_result = self.get_config(app)
        if not config_result:
            return ResolutionResult.from_failure(config_result.error)
        return fn(config_result.payload)

    # =========================================================================
    # Label resolution
    # =========================================================================

    def find_attribute(self, label: LabelInput, app: str) -> ResolutionResult[ResolvedAttribute]:
        return self._with_config(app, lambda cfg: find_attribute(label, cfg))

    def get_value(
        self, label: LabelInput, record: RecordInput, app: str
    ) -> ResolutionResult[AttributeDetails]:
        """Read a labelled value from a record of ``app``."""
        resolved = self.find_attribute(label, app)
        if not resolved:
            return ResolutionResult.from_failure(resolved.error)
        return details_for(resolved.payload, record, label)

    def build_attribute(
        self, label: LabelInput, new_values: Sequence[Any], app: str
    ) -> ResolutionResult[BuiltAttribute]:
        """Build a new attribute value for a label of ``app``."""
        resolved = self.find_attribute(label, app)
        if not resolved:
            return ResolutionResult.from_failure(resolved.error)
        return build_for(resolved.payload, new_values)

    # =========================================================================
    # Tables
    # =========================================================================

    def get_table_rows(
        self, section_label: str, record: RecordInput, app: str
    ) -> ResolutionResult[List[TableRow]]:
        return self._with_config(
            app, lambda cfg: tables.get_rows_by_label(section_label, record, cfg)
        )

    def get_cell_value(
        self, label: LabelInput, row: Any, app: str
    ) -> ResolutionResult[AttributeDetails]:
        return self._with_config(app, lambda cfg: tables.get_cell_value(label, row, cfg))

    def build_table_row(
        self, section_label: str, values_by_column: Mapping[str, Sequence[Any]], app: str
    ) -> ResolutionResult[Dict[str, Any]]:
        return self._with_config(
            app, lambda cfg: tables.build_row(section_label, values_by_column, cfg)
        )

    def append_table_row(
        self, section_label: str, row: Dict[str, Any], record: RecordInput, app: str
    ) -> ResolutionResult[int]:
        return self._with_config(
            app, lambda cfg: tables.append_row(section_label, row, record, cfg)
        )

    # =========================================================================
    # Records
    # =========================================================================

    def _app(self, app: str) -> ResolutionResult[AppDescriptor]:
        return resolve_app(app)

    def read(self, app: str, record_id: str) -> ResolutionResult[Dict[str, Any]]:
        """Fetch one record by id."""
        app_result = self._app(app)
        if not app_result:
            return ResolutionResult.from_failure(app_result.error)
        if not str(record_id or "").strip():
            return ResolutionResult.fail(ErrorKind.EMPTY_REQUIRED_VALUE, "No record id was provided")
        return self.store.fetch_record(app_result.payload, str(record_id))

    def create(self, app: str, record: RecordInput) -> ResolutionResult[Dict[str, Any]]:
        """Create a record, returning the stored record."""
        app_result = self._app(app)
        if not app_result:
            return ResolutionResult.from_failure(app_result.error)
        data = DataRecord.coerce(record).to_dict()
        return self.store.submit_record(app_result.payload, data, True, [], [])

    def update(
        self,
        app: str,
        record: RecordInput,
        attribute_ids: Sequence[str],
        attribute_names: Sequence[str],
    ) -> ResolutionResult[Dict[str, Any]]:
        """Submit an update for the listed attributes of a record."""
        app_result = self._app(app)
        if not app_result:
            return ResolutionResult.from_failure(app_result.error)
        data = DataRecord.coerce(record).to_dict()
        if not data.get("id"):
            return ResolutionResult.fail(
                ErrorKind.EMPTY_REQUIRED_VALUE, "Cannot update a record without an id"
            )
        return self.store.submit_record(
            app_result.payload, data, False, list(attribute_ids), list(attribute_names)
        )

    def new_record(self, app: str):
        """Start a RecordCreator for ``app``."""
        from apptivolink.records import RecordCreator

        return RecordCreator(self, app)

    def updater(self, app: str, record: RecordInput):
        """Start a RecordUpdater over an existing record."""
        from apptivolink.records import RecordUpdater

        return RecordUpdater(self, app, record)

    # =========================================================================
    # Search and session
    # =========================================================================

    def search_by_text(
        self, app: str, text: str, paging: Optional[PagingParams] = None
    ) -> ResolutionResult[SearchPage]:
        app_result = self._app(app)
        if not app_result:
            return ResolutionResult.from_failure(app_result.error)
        return self.store.search_by_text(app_result.payload, text, paging)

    def login(
        self,
        email: Optional[str] = None,
        password: Optional[str] = None,
        firm_id: Optional[str] = None,
    ) -> ResolutionResult[str]:
        """Log in for session-only endpoints; defaults come from config."""
        session = self.config.session
        email = email or session.email
        password = password or session.password
        firm_id = firm_id or session.firm_id
        if not (email and password and firm_id):
            return ResolutionResult.fail(
                ErrorKind.SESSION_REQUIRED,
                "Session login needs APPTIVO_SESSION_EMAIL, APPTIVO_SESSION_PASSWORD and APPTIVO_FIRM_ID",
            )
        login = getattr(self.store, "login", None)
        if login is None:
            return ResolutionResult.fail(
                ErrorKind.SESSION_REQUIRED, f"{type(self.store).__name__} does not support login"
            )
        return login(email, password, firm_id)
