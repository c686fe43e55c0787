"""Schema walker: locate an attribute definition by label.

Walks sections, then attributes, in document order and returns the first
enabled attribute whose label matches. Two-part labels restrict the walk to
sections with a matching label. Address-encoded labels search the nested
address field lists of address-group attributes instead.
"""

import logging
from typing import Iterator, Optional, Tuple

from apptivolink.labels import AddressFieldPath, LabelInput, LabelPath, labels_match
from apptivolink.result import ErrorKind, ResolutionResult
from apptivolink.schema.models import (
    AddressField,
    AttributeDefinition,
    ConfigDocument,
    ResolvedAttribute,
    Section,
)

logger = logging.getLogger(__name__)


def _iter_candidates(
    path: LabelPath, config: ConfigDocument
) -> Iterator[Tuple[Section, AttributeDefinition]]:
    for section in config.sections:
        if path.is_scoped and not labels_match(section.modified_label, path.section):
            continue
        for attribute in section.attributes:
            if not attribute.is_enabled or attribute.is_placeholder:
                continue
            yield section, attribute


def _match_address_field(
    attribute: AttributeDefinition, address: AddressFieldPath
) -> Optional[AddressField]:
    for field in attribute.address_list or []:
        if not field.is_enabled:
            continue
        if labels_match(field.modified_label, address.field) or labels_match(
            field.tag_name, address.field
        ):
            return field
    return None


def _matches(attribute: AttributeDefinition, path: LabelPath) -> bool:
    if attribute.modified_label is None and attribute.field_name is None:
        return False
    if path.is_scoped:
        return labels_match(attribute.modified_label, path.field)
    return labels_match(attribute.field_name, path.field) or labels_match(
        attribute.modified_label, path.field
    )


def find_attribute(
    label: LabelInput, config: ConfigDocument
) -> ResolutionResult[ResolvedAttribute]:
    """Find the attribute definition for a label.

    Args:
        label: ``"Field"``, ``["Section", "Field"]``, an AddressFieldPath or
            the legacy ``"Address||Type||Field"`` string
        config: Parsed configuration document

    Returns:
        ResolutionResult with the first matching ResolvedAttribute, failing
        with ``invalid_label_shape`` or ``attribute_not_found``
    """
    path_result = LabelPath.of(label)
    if not path_result:
        return ResolutionResult.from_failure(path_result.error)
    path = path_result.payload
    address = path.address

    for section, attribute in _iter_candidates(path, config):
        if address is not None:
            if not attribute.is_address_group:
                continue
            field = _match_address_field(attribute, address)
            if field is None:
                continue
            return ResolutionResult.ok(
                ResolvedAttribute(
                    definition=attribute,
                    section_id=section.id,
                    section_label=section.modified_label,
                    address=address,
                    address_field=field,
                )
            )

        if _matches(attribute, path):
            return ResolutionResult.ok(
                ResolvedAttribute(
                    definition=attribute,
                    section_id=section.id,
                    section_label=section.modified_label,
                )
            )

    logger.debug(f"Could not locate attribute for label ({path}) within the settings")
    return ResolutionResult.fail(
        ErrorKind.ATTRIBUTE_NOT_FOUND,
        f"Could not locate an enabled attribute for label ({path})",
    )


def find_attribute_id(label: LabelInput, config: ConfigDocument) -> ResolutionResult[str]:
    """Resolve a label straight to its attribute id."""
    result = find_attribute(label, config)
    if not result:
        return ResolutionResult.from_failure(result.error)
    attribute_id = result.payload.attribute_id
    if not attribute_id:
        return ResolutionResult.fail(
            ErrorKind.ATTRIBUTE_NOT_FOUND,
            f"Attribute for label ({label!r}) has no attribute id",
        )
    return ResolutionResult.ok(attribute_id)


def iter_attributes(
    config: ConfigDocument, include_disabled: bool = False
) -> Iterator[Tuple[Section, AttributeDefinition]]:
    """Yield ``(section, attribute)`` for every non-placeholder attribute."""
    for section, attribute in config.iter_attributes():
        if attribute.is_placeholder:
            continue
        if not include_disabled and not attribute.is_enabled:
            continue
        yield section, attribute
