"""HTTP connector for the Apptivo REST API.

Every app lives under ``/app/dao/v6/<url segment>`` and selects its operation
with an ``a=<action>`` query parameter. Record payloads travel as a single
form field named after the app's data envelope key, holding the record as
JSON text.

Responses are not uniformly shaped: the record may be the body itself (it
carries an ``id``) or sit under ``data``, ``responseObject`` or ``customer``.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from apptivolink.apps import AppDescriptor
from apptivolink.result import ErrorKind, ResolutionResult

from .base import (
    ApiKeyAuth,
    AuthStrategy,
    BaseConnector,
    ConnectorError,
    ConnectorRegistry,
    InvalidResponseError,
    PagingParams,
    RequestPolicy,
    SearchPage,
    SessionAuth,
)
from .http_client import HTTPClient

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api2.apptivo.com"
DAO_PATH = "app/dao/v6"
LOGIN_PATH = "app/login"
EMAIL_PATH = "app/dao/emails"
DATA_MANAGEMENT_SEGMENT = "datamanagement"

RESPONSE_ENVELOPES = ("data", "responseObject", "customer")

# Apps whose update endpoint rejects the objectId parameter
NO_OBJECT_ID_ON_UPDATE = {"estimates"}
# Apps whose update endpoint expects ``attributeName`` rather than ``attributeNames``
SINGULAR_ATTRIBUTE_NAME = {"customers"}


def unwrap_record(body: Any) -> Optional[Dict[str, Any]]:
    """Pull the record out of a create/read/update response body."""
    if not isinstance(body, dict):
        return None
    if body.get("id"):
        return body
    for key in RESPONSE_ENVELOPES:
        value = body.get(key)
        if isinstance(value, dict) and value:
            return value
    return None


class ApptivoConnector(BaseConnector):
    """RemoteObjectStore implementation over the platform's HTTP API."""

    _name = "apptivo"

    def __init__(
        self,
        auth: Optional[AuthStrategy] = None,
        policy: Optional[RequestPolicy] = None,
        base_url: str = DEFAULT_BASE_URL,
        http: Optional[HTTPClient] = None,
    ):
        """Initialize connector.

        Args:
            auth: Usually ApiKeyAuth with the business keys
            policy: Request policy (timeouts, retries, pacing)
            base_url: API host
            http: Pre-built HTTPClient (tests inject one with a MockTransport)
        """
        super().__init__(auth, policy)
        self.base_url = base_url.rstrip("/")
        self.http = http or HTTPClient(
            auth=self.auth, policy=self.policy, base_url=self.base_url, connector_name=self._name
        )

    @staticmethod
    def _dao_path(segment: str) -> str:
        return f"{DAO_PATH}/{segment}"

    def _auth_form(self) -> Dict[str, str]:
        """Credentials for endpoints that take them in the form body."""
        return self.auth.get_params() if self.auth else {}

    def _fail(self, kind: ErrorKind, action: str, error: Exception) -> ResolutionResult[Any]:
        logger.warning(f"{self._name} {action} failed: {error}")
        return ResolutionResult.fail(kind, f"{action} failed: {error}")

    # =========================================================================
    # RemoteObjectStore
    # =========================================================================

    def fetch_config(self, app: AppDescriptor) -> ResolutionResult[Any]:
        """GET ``?a=getConfigData&objectId=<numeric app id>``."""
        try:
            response = self.http.get(
                self._dao_path(app.url_segment),
                params={"a": "getConfigData", "objectId": str(app.numeric_app_id)},
            )
            body = response.json()
        except ConnectorError as e:
            return self._fail(ErrorKind.CONFIG_FETCH_FAILED, f"getConfigData({app.numeric_app_id})", e)

        if not isinstance(body, dict) or not body:
            return ResolutionResult.fail(
                ErrorKind.CONFIG_FETCH_FAILED,
                f"getConfigData({app.numeric_app_id}) returned no document",
            )
        return ResolutionResult.ok(body)

    def fetch_record(self, app: AppDescriptor, record_id: str) -> ResolutionResult[Dict[str, Any]]:
        """GET ``?a=getById&<id param>=<record id>``."""
        try:
            response = self.http.get(
                self._dao_path(app.url_segment),
                params={"a": "getById", app.id_param_name: str(record_id)},
            )
            record = unwrap_record(response.json())
        except ConnectorError as e:
            return self._fail(ErrorKind.RECORD_FETCH_FAILED, f"getById({record_id})", e)

        if record is None:
            return ResolutionResult.fail(
                ErrorKind.RECORD_FETCH_FAILED,
                f"getById({record_id}) for {app.url_segment} returned no record",
            )
        return ResolutionResult.ok(record)

    def _save_params(self, app: AppDescriptor) -> Dict[str, str]:
        params = {
            "a": "save",
            "objectId": str(app.numeric_app_id),
            "appId": str(app.numeric_app_id),
        }
        if app.is_custom_app:
            params["customAppObjectId"] = str(app.numeric_app_id)
        return params

    def _update_params(
        self,
        app: AppDescriptor,
        record: Dict[str, Any],
        changed_attribute_ids: List[str],
        changed_attribute_names: List[str],
    ) -> Dict[str, str]:
        names_key = (
            "attributeName" if app.url_segment in SINGULAR_ATTRIBUTE_NAME else "attributeNames"
        )
        params = {
            "a": "update",
            app.id_param_name: str(record.get("id", "")),
            names_key: json.dumps(changed_attribute_names),
            "attributeIds": json.dumps(changed_attribute_ids),
            "isCustomAttributesUpdate": "true" if "customAttributes" in changed_attribute_names else "",
        }
        if "address" in changed_attribute_names:
            params["isAddressUpdate"] = "true"
        if app.url_segment not in NO_OBJECT_ID_ON_UPDATE:
            params["objectId"] = str(app.numeric_app_id)
        if app.is_custom_app:
            params["customAppObjectId"] = str(app.numeric_app_id)
        return params

    def submit_record(
        self,
        app: AppDescriptor,
        record: Dict[str, Any],
        is_create: bool,
        changed_attribute_ids: List[str],
        changed_attribute_names: List[str],
    ) -> ResolutionResult[Dict[str, Any]]:
        """POST ``a=save`` (create) or ``a=update`` with the record envelope.

        Args:
            app: Target app
            record: Complete record dict, including the changes
            is_create: True for ``a=save``, False for ``a=update``
            changed_attribute_ids: Attribute ids touched by an update
            changed_attribute_names: Attribute names touched by an update
                (``customAttributes``, ``address`` or standard tag names)

        Returns:
            ResolutionResult with the stored record as returned by the platform
        """
        action = "save" if is_create else "update"
        if is_create:
            params = self._save_params(app)
        else:
            if not changed_attribute_names or not changed_attribute_ids:
                return ResolutionResult.fail(
                    ErrorKind.NO_CHANGES, f"update of {app.url_segment} has no changed attributes"
                )
            params = self._update_params(
                app, record, changed_attribute_ids, changed_attribute_names
            )

        try:
            response = self.http.post(
                self._dao_path(app.url_segment),
                params=params,
                data={app.data_envelope_key: json.dumps(record)},
            )
            stored = unwrap_record(response.json())
        except ConnectorError as e:
            return self._fail(ErrorKind.SUBMIT_FAILED, f"{action} {app.url_segment}", e)

        if stored is None:
            return ResolutionResult.fail(
                ErrorKind.SUBMIT_FAILED,
                f"{action} {app.url_segment} returned no record: {response.text[:200]}",
            )
        logger.info(f"{action} {app.url_segment} record {stored.get('id')}")
        return ResolutionResult.ok(stored)

    def search_by_text(
        self, app: AppDescriptor, text: str, paging: Optional[PagingParams] = None
    ) -> ResolutionResult[SearchPage]:
        """GET ``?a=getAllBySearchText&searchText=<text>``."""
        params: Dict[str, str] = {"a": "getAllBySearchText", "searchText": text}
        if paging is not None:
            params.update(paging.to_params())
        try:
            response = self.http.get(self._dao_path(app.url_segment), params=params)
            body = response.json()
        except ConnectorError as e:
            return self._fail(ErrorKind.SEARCH_FAILED, f"getAllBySearchText({text!r})", e)

        return self._search_page(body, f"getAllBySearchText({text!r})")

    @staticmethod
    def _search_page(body: Any, action: str) -> ResolutionResult[SearchPage]:
        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            return ResolutionResult.fail(ErrorKind.SEARCH_FAILED, f"{action} returned no data list")
        records = body["data"]
        total = body.get("countOfRecords")
        return ResolutionResult.ok(
            SearchPage(records=records, total_count=int(total) if total else len(records))
        )

    # =========================================================================
    # Session, bulk retrieval and email
    # =========================================================================

    def login(self, email: str, password: str, firm_id: str) -> ResolutionResult[str]:
        """Log in as a user and keep the session key for bulk endpoints."""
        try:
            response = self.http.post(
                LOGIN_PATH,
                params={"a": "login", "generateSessionkey": "true", "getSessionToken": "true"},
                data={"emailId": email, "password": password, "firmId": firm_id},
                with_auth=False,
            )
            body = response.json()
        except ConnectorError as e:
            return self._fail(ErrorKind.SESSION_REQUIRED, f"login({email})", e)

        key = None
        if isinstance(body, dict) and isinstance(body.get("responseObject"), dict):
            key = body["responseObject"].get("authenticationKey")
        if not key:
            return ResolutionResult.fail(
                ErrorKind.SESSION_REQUIRED, f"login({email}) returned no authentication key"
            )
        self.session = SessionAuth(session_key=key)
        logger.info(f"Obtained session for {email}")
        return ResolutionResult.ok(key)

    def data_management_get_all(
        self, app: AppDescriptor, start_index: int = 0, num_records: int = 2000
    ) -> ResolutionResult[SearchPage]:
        """POST ``datamanagement?a=getAll`` (session required)."""
        if not self.has_session:
            return ResolutionResult.fail(
                ErrorKind.SESSION_REQUIRED, "data management requires a session; call login() first"
            )
        form = dict(self._auth_form())
        form.update(self.session.get_params())
        action = f"datamanagement getAll({app.numeric_app_id}, {start_index})"
        try:
            response = self.http.post(
                self._dao_path(DATA_MANAGEMENT_SEGMENT),
                params={
                    "a": "getAll",
                    "objectId": str(app.numeric_app_id),
                    "objectStatus": "0",
                    "startIndex": str(start_index),
                    "numRecords": str(num_records),
                },
                data=form,
                with_auth=False,
            )
            body = response.json()
        except ConnectorError as e:
            return self._fail(ErrorKind.SEARCH_FAILED, action, e)
        return self._search_page(body, action)

    def send_email(self, email_data: Dict[str, Any]) -> ResolutionResult[Dict[str, Any]]:
        """POST ``emails?a=send`` with ``emailData`` JSON and form credentials."""
        form = {"emailData": json.dumps(email_data)}
        form.update(self._auth_form())
        params = {"a": "send"}
        if isinstance(self.auth, ApiKeyAuth) and self.auth.user_email:
            params["userName"] = self.auth.user_email
        try:
            response = self.http.post(EMAIL_PATH, params=params, data=form, with_auth=False)
            result = unwrap_record(response.json())
        except ConnectorError as e:
            return self._fail(ErrorKind.SUBMIT_FAILED, "send email", e)
        if result is None:
            return self._fail(
                ErrorKind.SUBMIT_FAILED,
                "send email",
                InvalidResponseError(f"unexpected response: {response.text[:200]}"),
            )
        return ResolutionResult.ok(result)


ConnectorRegistry.register("apptivo", ApptivoConnector)
