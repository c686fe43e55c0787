"""Table resolver: table sections, rows and cells by label.

A table section is a layout section whose id doubles as the custom
attribute id of the table entry on a record. Each row holds ``columns``
whose physical order is tenant-defined and differs between records, so
cells are always located by attribute id, never by position.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from apptivolink.labels import LabelInput, labels_match
from apptivolink.result import ErrorKind, ResolutionResult
from apptivolink.schema.extractor import AttributeDetails, extract_entry_value
from apptivolink.schema.models import (
    MULTI_VALUE_TAGS,
    TABLE_TAG,
    ConfigDocument,
    DataRecord,
    TableRow,
)
from apptivolink.schema.synthesizer import build_attribute
from apptivolink.schema.walker import find_attribute

logger = logging.getLogger(__name__)

RowInput = Union[TableRow, Dict[str, Any]]


def _coerce_row(row: RowInput) -> TableRow:
    if isinstance(row, TableRow):
        return row
    return TableRow.model_validate(row or {})


def find_section_id(label: str, config: ConfigDocument) -> ResolutionResult[str]:
    """Find a table section's id by its label (first match wins)."""
    for section in config.sections:
        if labels_match(section.modified_label, label) and section.id:
            return ResolutionResult.ok(section.id)
    return ResolutionResult.fail(
        ErrorKind.TABLE_SECTION_NOT_FOUND,
        f"Could not find a table section with label ({label})",
    )


def get_rows(
    section_id: str, record: Union[DataRecord, Dict[str, Any]]
) -> ResolutionResult[List[TableRow]]:
    """Rows of the table entry whose id equals ``section_id``."""
    record = DataRecord.coerce(record)
    found = record.find_custom_attribute(section_id)
    if not found:
        return ResolutionResult.from_failure(found.error)
    if found.payload is not None:
        return ResolutionResult.ok(list(found.payload[1].rows or []))
    return ResolutionResult.fail(
        ErrorKind.TABLE_SECTION_NOT_FOUND,
        f"Record {record.id!r} has no table entry for section id ({section_id})",
    )


def get_rows_by_label(
    label: str, record: Union[DataRecord, Dict[str, Any]], config: ConfigDocument
) -> ResolutionResult[List[TableRow]]:
    """Resolve a table section label, then return the record's rows."""
    section_result = find_section_id(label, config)
    if not section_result:
        return ResolutionResult.from_failure(section_result.error)
    return get_rows(section_result.payload, record)


def get_column_index(attribute_id: str, row: RowInput) -> ResolutionResult[Optional[int]]:
    """Position of a column in this row; informational only.

    The index is specific to this row and must not be reused for lookups on
    other rows or records.
    """
    for index, column in enumerate(_coerce_row(row).columns):
        if labels_match(column.custom_attribute_id, attribute_id):
            return ResolutionResult.ok(index)
    return ResolutionResult.ok(None)


def get_cell_value(
    label: LabelInput, row: RowInput, config: ConfigDocument
) -> ResolutionResult[AttributeDetails]:
    """Value of one cell, located by the column's attribute id.

    Args:
        label: ``[table section, column]`` (or a bare column label)
        row: Table row (model or raw dict)
        config: Parsed configuration document

    Returns:
        ResolutionResult with AttributeDetails; ``record_index`` is the
        column position in this row. A missing cell is an empty success.
    """
    resolved_result = find_attribute(label, config)
    if not resolved_result:
        return ResolutionResult.from_failure(resolved_result.error)
    resolved = resolved_result.payload
    attribute_id = resolved.attribute_id

    for index, column in enumerate(_coerce_row(row).columns):
        if column.custom_attribute_id != attribute_id:
            continue
        value_result = extract_entry_value(resolved.attribute_tag, column, label)
        if not value_result:
            return ResolutionResult.from_failure(value_result.error)
        value = value_result.payload
        if (
            resolved.attribute_tag not in MULTI_VALUE_TAGS
            and value in (None, "")
            and column.attribute_values
        ):
            value = column.attribute_values[0].attribute_value or ""
        return ResolutionResult.ok(
            AttributeDetails(definition=resolved, value=value, record_index=index, entry=column)
        )

    return ResolutionResult.ok(AttributeDetails(definition=resolved, value=""))


def build_row(
    section_label: str,
    values_by_column: Mapping[str, Sequence[Any]],
    config: ConfigDocument,
) -> ResolutionResult[Dict[str, Any]]:
    """Build a new table row from ``{column label: [values]}``."""
    section_result = find_section_id(section_label, config)
    if not section_result:
        return ResolutionResult.from_failure(section_result.error)

    columns = []
    for column_label, values in values_by_column.items():
        built = build_attribute([section_label, column_label], values, config)
        if not built:
            return ResolutionResult.from_failure(built.error)
        columns.append(built.payload.payload)
    return ResolutionResult.ok({"columns": columns})


def append_row(
    section_label: str,
    row: Dict[str, Any],
    record: Union[DataRecord, Dict[str, Any]],
    config: ConfigDocument,
) -> ResolutionResult[int]:
    """Append a row to a record's table, creating the table entry if needed.

    Returns:
        ResolutionResult with the new row's index
    """
    section_result = find_section_id(section_label, config)
    if not section_result:
        return ResolutionResult.from_failure(section_result.error)
    section_id = section_result.payload
    record = DataRecord.coerce(record)

    entries = record.raw_custom_attributes
    for entry in entries:
        if str(entry.get("customAttributeId")) == section_id:
            rows = entry.setdefault("rows", [])
            rows.append(row)
            return ResolutionResult.ok(len(rows) - 1)

    logger.debug(f"Creating table entry for section id {section_id} on record {record.id!r}")
    entries.append(
        {
            "customAttributeId": section_id,
            "customAttributeType": TABLE_TAG,
            "rows": [row],
        }
    )
    return ResolutionResult.ok(0)
