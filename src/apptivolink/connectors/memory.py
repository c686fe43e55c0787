"""In-memory object store for testing.

Implements the RemoteObjectStore operations without any network calls.
Used for:
- Unit tests of the client, record builders and search helpers
- CLI tests
- Development without platform credentials

Configs and records are seeded per app; any operation can be made to fail
with a specific ErrorKind, and every call is logged for assertions.
"""

import copy
import itertools
import json
from typing import Any, Dict, List, Optional, Tuple

from apptivolink.apps import AppDescriptor
from apptivolink.result import ErrorKind, Failure, ResolutionResult

from .base import (
    AuthStrategy,
    BaseConnector,
    ConnectorRegistry,
    PagingParams,
    RequestPolicy,
    SearchPage,
    SessionAuth,
)


class InMemoryObjectStore(BaseConnector):
    """Dictionary-backed store with canned configs and records."""

    _name = "memory"

    def __init__(
        self,
        auth: Optional[AuthStrategy] = None,
        policy: Optional[RequestPolicy] = None,
        configs: Optional[Dict[int, Any]] = None,
    ):
        """Initialize store.

        Args:
            auth: Authentication strategy (ignored, but stored)
            policy: Request policy (ignored, but stored)
            configs: Raw config documents keyed by numeric app id
        """
        super().__init__(auth, policy)
        self._configs: Dict[int, Any] = dict(configs or {})
        self._records: Dict[Tuple[int, str], Dict[str, Any]] = {}
        self._failures: Dict[str, Failure] = {}
        self._call_log: List[Dict[str, Any]] = []
        self._ids = itertools.count(1000)
        self.sent_emails: List[Dict[str, Any]] = []

    # =========================================================================
    # Seeding and test controls
    # =========================================================================

    def add_config(self, app_id: int, document: Any) -> None:
        """Seed the raw config document for an app id."""
        self._configs[app_id] = document

    def add_record(self, app_id: int, record: Dict[str, Any]) -> Dict[str, Any]:
        """Seed a record; assigns an id when it has none."""
        stored = copy.deepcopy(record)
        if not stored.get("id"):
            stored["id"] = str(next(self._ids))
        self._records[(app_id, str(stored["id"]))] = stored
        return stored

    def records_for(self, app_id: int) -> List[Dict[str, Any]]:
        """Stored records of one app, in insertion order."""
        return [copy.deepcopy(r) for (aid, _), r in self._records.items() if aid == app_id]

    def set_failure(self, operation: str, kind: ErrorKind, message: str = "simulated failure") -> None:
        """Make an operation fail until cleared.

        Args:
            operation: Method name (e.g., "fetch_config", "submit_record")
            kind: ErrorKind to report
            message: Failure message
        """
        self._failures[operation] = Failure(kind, message)

    def clear_failures(self) -> None:
        self._failures.clear()

    def _log_call(self, operation: str, args: Dict[str, Any]) -> None:
        """Log a method call for later assertions."""
        self._call_log.append({"operation": operation, "args": args})

    def get_call_log(self) -> List[Dict[str, Any]]:
        """Get log of all method calls."""
        return self._call_log.copy()

    def clear_call_log(self) -> None:
        self._call_log.clear()

    def was_called(self, operation: str) -> bool:
        """Check if an operation was called."""
        return any(call["operation"] == operation for call in self._call_log)

    def call_count(self, operation: str) -> int:
        """Count how many times an operation was called."""
        return sum(1 for call in self._call_log if call["operation"] == operation)

    def _simulated_failure(self, operation: str) -> Optional[ResolutionResult[Any]]:
        failure = self._failures.get(operation)
        if failure is None:
            return None
        return ResolutionResult.from_failure(failure)

    # =========================================================================
    # RemoteObjectStore
    # =========================================================================

    def fetch_config(self, app: AppDescriptor) -> ResolutionResult[Any]:
        self._log_call("fetch_config", {"app_id": app.numeric_app_id})
        failed = self._simulated_failure("fetch_config")
        if failed is not None:
            return failed
        document = self._configs.get(app.numeric_app_id)
        if document is None:
            return ResolutionResult.fail(
                ErrorKind.CONFIG_FETCH_FAILED, f"No config seeded for app id {app.numeric_app_id}"
            )
        return ResolutionResult.ok(copy.deepcopy(document))

    def fetch_record(self, app: AppDescriptor, record_id: str) -> ResolutionResult[Dict[str, Any]]:
        self._log_call("fetch_record", {"app_id": app.numeric_app_id, "record_id": record_id})
        failed = self._simulated_failure("fetch_record")
        if failed is not None:
            return failed
        record = self._records.get((app.numeric_app_id, str(record_id)))
        if record is None:
            return ResolutionResult.fail(
                ErrorKind.RECORD_FETCH_FAILED,
                f"No {app.url_segment} record with id {record_id}",
            )
        return ResolutionResult.ok(copy.deepcopy(record))

    def submit_record(
        self,
        app: AppDescriptor,
        record: Dict[str, Any],
        is_create: bool,
        changed_attribute_ids: List[str],
        changed_attribute_names: List[str],
    ) -> ResolutionResult[Dict[str, Any]]:
        self._log_call(
            "submit_record",
            {
                "app_id": app.numeric_app_id,
                "record": copy.deepcopy(record),
                "is_create": is_create,
                "attribute_ids": list(changed_attribute_ids),
                "attribute_names": list(changed_attribute_names),
            },
        )
        failed = self._simulated_failure("submit_record")
        if failed is not None:
            return failed

        if is_create:
            stored = dict(record)
            stored.pop("id", None)
            return ResolutionResult.ok(self.add_record(app.numeric_app_id, stored))

        key = (app.numeric_app_id, str(record.get("id")))
        if key not in self._records:
            return ResolutionResult.fail(
                ErrorKind.SUBMIT_FAILED, f"Cannot update unknown {app.url_segment} record {record.get('id')}"
            )
        self._records[key] = copy.deepcopy(record)
        return ResolutionResult.ok(copy.deepcopy(record))

    def search_by_text(
        self, app: AppDescriptor, text: str, paging: Optional[PagingParams] = None
    ) -> ResolutionResult[SearchPage]:
        """Case-insensitive substring match over each record's JSON text."""
        self._log_call("search_by_text", {"app_id": app.numeric_app_id, "text": text})
        failed = self._simulated_failure("search_by_text")
        if failed is not None:
            return failed
        needle = text.casefold()
        matches = [
            r for r in self.records_for(app.numeric_app_id) if needle in json.dumps(r).casefold()
        ]
        paging = paging or PagingParams()
        window = matches[paging.start_index : paging.start_index + paging.num_records]
        return ResolutionResult.ok(SearchPage(records=window, total_count=len(matches)))

    # =========================================================================
    # Session, bulk retrieval and email
    # =========================================================================

    def login(self, email: str, password: str, firm_id: str) -> ResolutionResult[str]:
        self._log_call("login", {"email": email, "firm_id": firm_id})
        failed = self._simulated_failure("login")
        if failed is not None:
            return failed
        self.session = SessionAuth(session_key=f"session-{email}")
        return ResolutionResult.ok(self.session.session_key)

    def data_management_get_all(
        self, app: AppDescriptor, start_index: int = 0, num_records: int = 2000
    ) -> ResolutionResult[SearchPage]:
        self._log_call(
            "data_management_get_all",
            {"app_id": app.numeric_app_id, "start_index": start_index, "num_records": num_records},
        )
        if not self.has_session:
            return ResolutionResult.fail(
                ErrorKind.SESSION_REQUIRED, "data management requires a session; call login() first"
            )
        failed = self._simulated_failure("data_management_get_all")
        if failed is not None:
            return failed
        records = self.records_for(app.numeric_app_id)
        return ResolutionResult.ok(
            SearchPage(records=records[start_index : start_index + num_records], total_count=len(records))
        )

    def send_email(self, email_data: Dict[str, Any]) -> ResolutionResult[Dict[str, Any]]:
        self._log_call("send_email", {"email_data": email_data})
        failed = self._simulated_failure("send_email")
        if failed is not None:
            return failed
        sent = dict(email_data, id=str(next(self._ids)))
        self.sent_emails.append(sent)
        return ResolutionResult.ok(sent)


ConnectorRegistry.register("memory", InMemoryObjectStore)
