"""Search helpers built on keyword search and bulk retrieval.

Keyword search (``getAllBySearchText``) matches loosely across a record's
fields, so the helpers here confirm each hit against the exact field the
caller cares about before returning it.
"""

import logging
from typing import Any, Dict, List, Optional

from apptivolink.client import ApptivoClient
from apptivolink.connectors.base import PagingParams
from apptivolink.labels import LabelInput, labels_match
from apptivolink.result import ErrorKind, ResolutionResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_RECORDS = 20000
DEFAULT_BATCH_SIZE = 5000


def get_all_by_search_text(
    client: ApptivoClient, text: str, app: str, paging: Optional[PagingParams] = None
) -> ResolutionResult[List[Dict[str, Any]]]:
    """Keyword search returning the matching records (possibly empty)."""
    page = client.search_by_text(app, text, paging)
    if not page:
        return ResolutionResult.from_failure(page.error)
    return ResolutionResult.ok(page.payload.records)


def _first_match(
    client: ApptivoClient, text: str, app: str, field: str
) -> ResolutionResult[Dict[str, Any]]:
    results = get_all_by_search_text(client, text, app)
    if not results:
        return ResolutionResult.from_failure(results.error)
    for record in results.payload:
        if labels_match(record.get(field), text):
            return ResolutionResult.ok(record)
    return ResolutionResult.fail(
        ErrorKind.RECORD_NOT_FOUND, f"No {app} record with {field} matching ({text})"
    )


def find_employee_id_by_name(client: ApptivoClient, full_name: str) -> ResolutionResult[str]:
    """Employee id for a full name, e.g. ``"Jane Smith"``."""
    found = _first_match(client, full_name, "employees", "fullName")
    if not found:
        return ResolutionResult.from_failure(found.error)
    employee = found.payload
    return ResolutionResult.ok(str(employee.get("employeeId") or employee.get("id")))


def find_customer_by_name(client: ApptivoClient, customer_name: str) -> ResolutionResult[Dict[str, Any]]:
    """Complete customer record for an exact customer name."""
    return _first_match(client, customer_name, "customers", "customerName")


def find_customer_id_by_name(client: ApptivoClient, customer_name: str) -> ResolutionResult[str]:
    found = find_customer_by_name(client, customer_name)
    if not found:
        return ResolutionResult.from_failure(found.error)
    customer = found.payload
    return ResolutionResult.ok(str(customer.get("customerId") or customer.get("id")))


def find_record_by_field(
    client: ApptivoClient, label: LabelInput, value: str, app: str
) -> ResolutionResult[Dict[str, Any]]:
    """First search hit whose labelled field equals ``value``.

    Args:
        client: Client session
        label: Label of the field to confirm against
        value: Value to search for and match (case-insensitive)
        app: App name or id

    Returns:
        ResolutionResult with the record. Resolution failures for the label
        are propagated; no confirmed hit is ``record_not_found``.
    """
    results = get_all_by_search_text(client, value, app)
    if not results:
        return ResolutionResult.from_failure(results.error)
    for record in results.payload:
        details = client.get_value(label, record, app)
        if not details:
            return ResolutionResult.from_failure(details.error)
        if labels_match(details.payload.value_text, value):
            return ResolutionResult.ok(record)
    return ResolutionResult.fail(
        ErrorKind.RECORD_NOT_FOUND, f"No {app} record where ({label}) matches ({value})"
    )


def get_all_records(
    client: ApptivoClient,
    app: str,
    max_records: int = DEFAULT_MAX_RECORDS,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> ResolutionResult[List[Dict[str, Any]]]:
    """Every record in an app through the bulk data-management endpoint.

    Requires a session (``client.login()``). Fetches ``batch_size`` records
    at a time until a short batch arrives or ``max_records`` is reached.
    """
    app_result = client.resolve_app(app)
    if not app_result:
        return ResolutionResult.from_failure(app_result.error)
    get_all = getattr(client.store, "data_management_get_all", None)
    if get_all is None:
        return ResolutionResult.fail(
            ErrorKind.SESSION_REQUIRED,
            f"{type(client.store).__name__} does not support bulk retrieval",
        )

    records: List[Dict[str, Any]] = []
    start_index = 0
    while len(records) < max_records:
        page = get_all(app_result.payload, start_index, batch_size)
        if not page:
            return ResolutionResult.from_failure(page.error)
        batch = page.payload.records
        records.extend(batch)
        logger.debug(f"Bulk batch at {start_index}: {len(batch)} {app} records")
        if len(batch) < batch_size:
            break
        start_index += batch_size

    return ResolutionResult.ok(records[:max_records])


def dedupe_records(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Drop repeated records by id, keeping first occurrences in order."""
    seen = set()
    unique = []
    for record in records:
        record_id = record.get("id")
        if record_id is not None:
            if record_id in seen:
                continue
            seen.add(record_id)
        unique.append(record)
    return unique
