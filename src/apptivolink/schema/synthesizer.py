"""Value synthesizer: build schema-correct attribute values from plain input.

Given a label and one or more input strings, resolves the attribute
definition and builds the value object the platform expects for that
attribute's tag. The per-tag output shapes are fixed:

    check / multiSelect      attributeValues[] of matched options
    counter                  raw value
    currency                 raw value + currencyCode
    date                     value reformatted to MM/DD/YYYY
    input / textarea / link  raw value
    number                   raw value, duplicated into numberValue
    reference                (objectId, objectRefId, objectRefName) triple
    referenceField           reference triple + reference-field metadata
    select                   one matched option

Standard attributes produce a ``{tagName: value}`` patch instead of a
custom attribute object.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from apptivolink.labels import LabelInput, contains_label, labels_match
from apptivolink.result import ErrorKind, ResolutionResult
from apptivolink.schema.models import (
    MULTI_VALUE_TAGS,
    ConfigDocument,
    DataRecord,
    OptionValue,
    ResolvedAttribute,
)
from apptivolink.schema.walker import find_attribute
from apptivolink.states import lookup_state

logger = logging.getLogger(__name__)

CURRENCY_CODE = "USD"
DATE_OUTPUT_FORMAT = "%m/%d/%Y"
DATE_INPUT_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%m-%d-%Y",
    "%m/%d/%y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
)

# Reference targets with dedicated id/name fields, keyed by app id
REFERENCE_APP_FIELDS = {
    2: "contact",
    3: "customer",
    4: "lead",
    8: "employee",
    11: "opportunity",
    59: "case",
    88: "project",
}
REFERENCE_FIELD_CONTACT_TAGS = {"email": "emailAddress", "phone": "phoneNumber"}
PASSTHROUGH_TAGS = frozenset({"counter", "input", "textarea", "link"})


@dataclass
class BuiltAttribute:
    """A synthesized attribute value ready to be placed on a record.

    For custom attributes ``payload`` is the complete custom attribute object.
    For standard attributes it is a one-key ``{tagName: value}`` patch.
    """

    definition: ResolvedAttribute
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_standard(self) -> bool:
        return self.definition.is_standard

    @property
    def attribute_id(self) -> Optional[str]:
        return self.definition.attribute_id

    @property
    def value(self) -> Any:
        """Stored value (multi-valued attributes return attributeValues)."""
        if self.is_standard:
            return self.payload.get(self.definition.tag_name or "", "")
        if self.definition.attribute_tag in MULTI_VALUE_TAGS:
            return self.payload.get("attributeValues", [])
        return self.payload.get("customAttributeValue", "")

    def apply_to(self, record: Union[DataRecord, Dict[str, Any]]) -> ResolutionResult[Optional[int]]:
        """Write this value onto a record.

        Custom attributes replace the entry with the same id or are appended.
        Address fields update the address entry of the matching type.

        Returns:
            ResolutionResult with the index of the written entry (None for
            top-level standard fields)
        """
        record = DataRecord.coerce(record)
        tag_name = self.definition.tag_name

        if self.is_standard:
            value = self.payload.get(tag_name or "", "")
            address = self.definition.address
            if address is None:
                record.set_field(tag_name, value)
                return ResolutionResult.ok(None)
            for index, entry in enumerate(record.addresses):
                if labels_match(entry.get("addressType"), address.address_type):
                    entry.update(_address_patch(tag_name, value))
                    return ResolutionResult.ok(index)
            return ResolutionResult.fail(
                ErrorKind.ADDRESS_TYPE_NOT_FOUND,
                f"Could not locate an address with type ({address.address_type})",
            )

        entries = record.raw_custom_attributes
        for index, entry in enumerate(entries):
            if str(entry.get("customAttributeId")) == str(self.attribute_id):
                entries[index] = self.payload
                return ResolutionResult.ok(index)
        entries.append(self.payload)
        return ResolutionResult.ok(len(entries) - 1)


def _address_patch(tag_name: str, value: Any) -> Dict[str, Any]:
    if tag_name == "state" and value:
        state = lookup_state(str(value))
        if state is not None:
            return {"state": state.name, "stateCode": state.code}
    return {tag_name: value}


def format_date(value: str) -> str:
    """Reformat a date string to ``MM/DD/YYYY``; unknown formats pass through."""
    text = value.strip()
    if not text:
        return ""
    for fmt in DATE_INPUT_FORMATS:
        try:
            return datetime.strptime(text, fmt).strftime(DATE_OUTPUT_FORMAT)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).strftime(DATE_OUTPUT_FORMAT)
    except ValueError:
        logger.warning(f"Unrecognized date format ({value}), storing it unchanged")
        return value


def match_option(options: Sequence[OptionValue], value: str) -> Optional[OptionValue]:
    """Match input text to an option: equality first, then substring."""
    for option in options:
        if labels_match(option.text, value) or labels_match(option.option_id, value):
            return option
    for option in options:
        if contains_label(option.text, value):
            return option
    return None


def _first(values: Sequence[Any]) -> str:
    for value in values:
        if value is not None and str(value).strip():
            return str(value)
    return ""


def _base_object(resolved: ResolvedAttribute) -> Dict[str, Any]:
    return {
        "id": resolved.attribute_id,
        "customAttributeId": resolved.attribute_id,
        "customAttributeType": resolved.attribute_tag,
        "customAttributeName": resolved.tag_name,
        "customAttributeTagName": resolved.tag_name,
        "customAttributeValue": "",
        "attributeValues": [],
    }


def _build_select(
    resolved: ResolvedAttribute, values: Sequence[Any], obj: Dict[str, Any]
) -> ResolutionResult[Dict[str, Any]]:
    text = _first(values)
    if not text:
        return ResolutionResult.ok(obj)
    option = match_option(resolved.definition.options, text)
    if option is None:
        return ResolutionResult.fail(
            ErrorKind.NO_MATCHING_OPTION,
            f"No option matches ({text}) for attribute ({resolved.label})",
        )
    obj["customAttributeValue"] = option.text
    obj["customAttributeValueId"] = option.value_id
    obj["attributeValues"] = [{"attributeId": option.value_id, "attributeValue": option.text}]
    return ResolutionResult.ok(obj)


def _build_multi(
    resolved: ResolvedAttribute, values: Sequence[Any], obj: Dict[str, Any]
) -> ResolutionResult[Dict[str, Any]]:
    options = resolved.definition.options
    inputs = [str(v) for v in values if v is not None and str(v).strip()]
    matched: List[OptionValue] = []

    for text in inputs:
        option = match_option(options, text)
        if option is None:
            if options:
                return ResolutionResult.fail(
                    ErrorKind.NO_MATCHING_OPTION,
                    f"No option matches ({text}) for attribute ({resolved.label})",
                )
            continue
        if option not in matched:
            matched.append(option)

    if matched:
        obj["attributeValues"] = [
            {"attributeId": o.value_id, "attributeValue": o.text} for o in matched
        ]
    elif inputs:
        # No configured options to match against
        obj["attributeValues"] = [{"attributeId": inputs[0], "attributeValue": inputs[0]}]
    return ResolutionResult.ok(obj)


def _reference_app_id(resolved: ResolvedAttribute, override: str) -> Optional[int]:
    candidate: Any = override or resolved.definition.extra_value(
        "refObjectId", "referenceObjectId", "objectId"
    )
    if candidate in (None, "") and resolved.definition.right:
        extras = resolved.definition.right[0].model_extra or {}
        candidate = extras.get("refObjectId") or extras.get("objectId")
    try:
        return int(candidate)
    except (TypeError, ValueError):
        return None


def _build_reference(
    resolved: ResolvedAttribute, values: Sequence[Any], obj: Dict[str, Any]
) -> ResolutionResult[Dict[str, Any]]:
    ref_id = str(values[0]).strip() if len(values) > 0 and values[0] is not None else ""
    ref_name = str(values[1]).strip() if len(values) > 1 and values[1] is not None else ""
    override = str(values[2]).strip() if len(values) > 2 and values[2] is not None else ""

    if not ref_id or not ref_name:
        return ResolutionResult.fail(
            ErrorKind.EMPTY_REQUIRED_VALUE,
            f"Reference attribute ({resolved.label}) requires an object ref id and name",
        )
    object_id = _reference_app_id(resolved, override)
    if object_id is None:
        return ResolutionResult.fail(
            ErrorKind.EMPTY_REQUIRED_VALUE,
            f"Reference attribute ({resolved.label}) has no referenced app id",
        )

    obj["customAttributeValue"] = ref_name
    obj["objectId"] = object_id
    obj["objectRefId"] = ref_id
    obj["objectRefName"] = ref_name

    if len(str(object_id)) > 3:
        obj["customAppObjectId"] = object_id
        obj["customAppObjectRefId"] = ref_id
    elif object_id in REFERENCE_APP_FIELDS:
        name = REFERENCE_APP_FIELDS[object_id]
        obj[f"{name}Id"] = ref_id
        obj[f"{name}Name"] = ref_name
    return ResolutionResult.ok(obj)


def _build_reference_field(
    resolved: ResolvedAttribute, values: Sequence[Any], obj: Dict[str, Any]
) -> ResolutionResult[Dict[str, Any]]:
    result = _build_reference(resolved, values, obj)
    if not result:
        return result

    definition = resolved.definition
    ref_field_id = definition.extra_value("refFieldId", "referenceFieldId")
    ref_tag = definition.extra_value("refAttributeTag", "referenceAttributeTag")
    if ref_field_id is not None:
        obj["refFieldId"] = ref_field_id
    if ref_tag is not None:
        obj["refAttributeTag"] = ref_tag
        contact_field = REFERENCE_FIELD_CONTACT_TAGS.get(str(ref_tag).lower())
        if contact_field:
            obj[contact_field] = obj["objectRefName"]
    return ResolutionResult.ok(obj)


def _scalar_text(values: Sequence[Any]) -> str:
    if not values or values[0] is None:
        return ""
    return str(values[0])


def build_for(
    resolved: ResolvedAttribute, new_values: Sequence[Any]
) -> ResolutionResult[BuiltAttribute]:
    """Build a value for an already-resolved definition."""
    values = list(new_values or [])
    tag = resolved.attribute_tag

    if resolved.is_standard:
        if not resolved.tag_name:
            return ResolutionResult.fail(
                ErrorKind.ATTRIBUTE_NOT_FOUND,
                f"Standard attribute ({resolved.label}) has no tagName",
            )
        text = _scalar_text(values)
        if tag == "date":
            text = format_date(text)
        return ResolutionResult.ok(BuiltAttribute(resolved, {resolved.tag_name: text}))

    obj = _base_object(resolved)

    if tag == "select":
        result = _build_select(resolved, values, obj)
    elif tag in MULTI_VALUE_TAGS:
        result = _build_multi(resolved, values, obj)
    elif tag == "reference":
        result = _build_reference(resolved, values, obj)
    elif tag == "referenceField":
        result = _build_reference_field(resolved, values, obj)
    elif tag in PASSTHROUGH_TAGS:
        obj["customAttributeValue"] = _scalar_text(values)
        result = ResolutionResult.ok(obj)
    elif tag == "currency":
        obj["customAttributeValue"] = _scalar_text(values)
        obj["currencyCode"] = CURRENCY_CODE
        result = ResolutionResult.ok(obj)
    elif tag == "date":
        obj["customAttributeValue"] = format_date(_scalar_text(values))
        result = ResolutionResult.ok(obj)
    elif tag == "number":
        text = _scalar_text(values)
        obj["customAttributeValue"] = text
        obj["numberValue"] = text
        result = ResolutionResult.ok(obj)
    else:
        return ResolutionResult.fail(
            ErrorKind.UNSUPPORTED_ATTRIBUTE_TAG,
            f"Cannot build a value for attributeTag ({tag}) of attribute ({resolved.label})",
        )

    if not result:
        return ResolutionResult.from_failure(result.error)
    return ResolutionResult.ok(BuiltAttribute(resolved, result.payload))


def build_attribute(
    label: LabelInput, new_values: Sequence[Any], config: ConfigDocument
) -> ResolutionResult[BuiltAttribute]:
    """Resolve a label and build a new attribute value from input strings.

    Args:
        label: Field label, ``[section, field]`` pair or address path
        new_values: Ordered input values. Reference types take
            ``[objectRefId, objectRefName, objectId?]``.
        config: Parsed configuration document

    Returns:
        ResolutionResult with a BuiltAttribute
    """
    resolved = find_attribute(label, config)
    if not resolved:
        return ResolutionResult.from_failure(resolved.error)
    return build_for(resolved.payload, new_values)
