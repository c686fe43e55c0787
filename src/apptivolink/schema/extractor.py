"""Value extractor: read the current value of a labelled attribute.

Standard attributes live directly on the record under their ``tagName``
(address fields inside the ``addresses`` entry of the matching type).
Custom attributes live in ``customAttributes`` and are found by id.

A record that simply has no value for a configured attribute yields an empty
success; only schema-level absence is a failure.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from apptivolink.labels import LabelInput, labels_match
from apptivolink.result import ErrorKind, ResolutionResult
from apptivolink.schema.models import (
    MULTI_VALUE_TAGS,
    SCALAR_VALUE_TAGS,
    AttributeValueItem,
    ConfigDocument,
    CustomAttributeValue,
    DataRecord,
    ResolvedAttribute,
)
from apptivolink.schema.walker import find_attribute

AttributeValue = Union[str, Any, List[AttributeValueItem]]


@dataclass
class AttributeDetails:
    """Resolved definition plus the value found on a record.

    ``record_index`` is the position of the matching entry in the record's
    ``customAttributes`` (or ``addresses`` for address fields); None when the
    value is a top-level standard field or is not present.
    """

    definition: ResolvedAttribute
    value: AttributeValue = ""
    record_index: Optional[int] = None
    entry: Optional[CustomAttributeValue] = None

    @property
    def is_present(self) -> bool:
        """True when the record carried a value for this attribute."""
        if self.entry is not None:
            return True
        return self.value not in (None, "", [])

    @property
    def is_multi_value(self) -> bool:
        return isinstance(self.value, list)

    @property
    def values(self) -> List[str]:
        """Value as a list of strings (one element for scalar values)."""
        if isinstance(self.value, list):
            return [item.attribute_value or "" for item in self.value]
        if self.value in (None, ""):
            return []
        return [str(self.value)]

    @property
    def value_text(self) -> str:
        """Value flattened to text; multi values are comma separated."""
        if isinstance(self.value, list):
            return ", ".join(self.values)
        return "" if self.value is None else str(self.value)


def extract_entry_value(
    tag: Optional[str], entry: CustomAttributeValue, label: Any = None
) -> ResolutionResult[AttributeValue]:
    """Extract the value of one custom attribute entry by attribute tag."""
    if tag in MULTI_VALUE_TAGS:
        return ResolutionResult.ok(list(entry.attribute_values or []))
    if tag in SCALAR_VALUE_TAGS:
        return ResolutionResult.ok(entry.scalar_value())
    return ResolutionResult.fail(
        ErrorKind.UNSUPPORTED_ATTRIBUTE_TAG,
        f"Attribute was found but the attributeTag ({tag}) is not yet supported "
        f"for label ({label!r})",
    )


def _standard_value(
    resolved: ResolvedAttribute, record: DataRecord, label: Any
) -> ResolutionResult[AttributeDetails]:
    tag_name = resolved.tag_name
    if not tag_name:
        return ResolutionResult.fail(
            ErrorKind.ATTRIBUTE_NOT_FOUND,
            f"Standard attribute for label ({label!r}) has no tagName",
        )

    if resolved.address is None:
        return ResolutionResult.ok(
            AttributeDetails(definition=resolved, value=record.get_field(tag_name))
        )

    for index, address in enumerate(record.addresses):
        if labels_match(address.get("addressType"), resolved.address.address_type):
            value = address.get(tag_name)
            return ResolutionResult.ok(
                AttributeDetails(
                    definition=resolved,
                    value="" if value is None else value,
                    record_index=index,
                )
            )

    return ResolutionResult.fail(
        ErrorKind.ADDRESS_TYPE_NOT_FOUND,
        f"Could not locate an address with type ({resolved.address.address_type}) "
        f"for label ({label!r})",
    )


def details_for(
    resolved: ResolvedAttribute, record: Union[DataRecord, Dict[str, Any]], label: Any = None
) -> ResolutionResult[AttributeDetails]:
    """Extract the value for an already-resolved definition."""
    record = DataRecord.coerce(record)

    if resolved.is_standard:
        return _standard_value(resolved, record, label)

    if not resolved.definition.is_custom:
        return ResolutionResult.fail(
            ErrorKind.UNSUPPORTED_ATTRIBUTE_TAG,
            f"Attribute type ({resolved.definition.type}) is not supported for label ({label!r})",
        )

    found = record.find_custom_attribute(resolved.attribute_id)
    if not found:
        return ResolutionResult.from_failure(found.error)
    if found.payload is None:
        # Configured but not populated on this record yet
        return ResolutionResult.ok(AttributeDetails(definition=resolved, value=""))

    index, entry = found.payload
    value_result = extract_entry_value(resolved.attribute_tag, entry, label)
    if not value_result:
        return ResolutionResult.from_failure(value_result.error)
    return ResolutionResult.ok(
        AttributeDetails(
            definition=resolved,
            value=value_result.payload,
            record_index=index,
            entry=entry,
        )
    )


def get_value(
    label: LabelInput,
    record: Union[DataRecord, Dict[str, Any]],
    config: ConfigDocument,
) -> ResolutionResult[AttributeDetails]:
    """Resolve a label and read its current value from a record.

    Args:
        label: Field label, ``[section, field]`` pair or address path
        record: Record dict or DataRecord
        config: Parsed configuration document for the record's app

    Returns:
        ResolutionResult with AttributeDetails. Failures from the schema walk
        are propagated unchanged.
    """
    resolved = find_attribute(label, config)
    if not resolved:
        return ResolutionResult.from_failure(resolved.error)
    return details_for(resolved.payload, record, label)
