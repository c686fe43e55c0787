"""Record builders for creating and updating records by label.

RecordCreator accumulates values on a new record and submits it once.
RecordUpdater compares each requested value with the record's current value
and only changes, and tracks, attributes that actually differ, so the
update call names exactly the attributes that changed.

Usage:
    updater = client.updater("cases", record)
    updater.check_and_update(["Case Status"], ["Closed"])
    updater.check_and_update(["Address||Billing||Zip"], ["60601"])
    result = updater.update()
"""

import copy
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from apptivolink.client import ApptivoClient, RecordInput
from apptivolink.labels import LabelInput, normalize_label
from apptivolink.result import ResolutionResult
from apptivolink.schema.extractor import AttributeDetails, details_for
from apptivolink.schema.models import MULTI_VALUE_TAGS, DataRecord, ResolvedAttribute
from apptivolink.schema.synthesizer import BuiltAttribute, build_for
from apptivolink.schema.tables import find_section_id
from apptivolink.states import lookup_state

logger = logging.getLogger(__name__)

CUSTOM_ATTRIBUTES = "customAttributes"
ADDRESS = "address"


def _add_if_new(items: List[str], value: Optional[str]) -> None:
    if value and value not in items:
        items.append(value)


def _state_key(value: Any) -> str:
    """Compare states by code so "IL" and "Illinois" are equal."""
    state = lookup_state(str(value or ""))
    return state.code if state is not None else normalize_label(value)


class _RecordBuilder:
    """Shared state: the client, target app and the record being edited."""

    def __init__(self, client: ApptivoClient, app: str, record: RecordInput):
        self.client = client
        self.app = app
        self.record = DataRecord.coerce(record)

    def _resolve(self, label: LabelInput) -> ResolutionResult[ResolvedAttribute]:
        return self.client.find_attribute(label, self.app)

    def _table_row(
        self, section_label: str, values_by_column: Mapping[str, Sequence[Any]]
    ) -> ResolutionResult[int]:
        row = self.client.build_table_row(section_label, values_by_column, self.app)
        if not row:
            return ResolutionResult.from_failure(row.error)
        return self.client.append_table_row(section_label, row.payload, self.record, self.app)


class RecordCreator(_RecordBuilder):
    """Builds a new record one labelled value at a time."""

    def __init__(self, client: ApptivoClient, app: str):
        super().__init__(client, app, {})

    def set_value(self, label: LabelInput, values: Sequence[Any]) -> ResolutionResult[BuiltAttribute]:
        """Set a value on the new record.

        Standard fields are set directly; custom attributes are added to
        ``customAttributes``. Address fields create the address entry for
        their type when the record has none yet.
        """
        resolved = self._resolve(label)
        if not resolved:
            return ResolutionResult.from_failure(resolved.error)
        built = build_for(resolved.payload, values)
        if not built:
            return built

        address = resolved.payload.address
        if address is not None and not any(
            normalize_label(a.get("addressType")) == normalize_label(address.address_type)
            for a in self.record.addresses
        ):
            self.record.data.setdefault("addresses", []).append({"addressType": address.address_type})

        applied = built.payload.apply_to(self.record)
        if not applied:
            return ResolutionResult.from_failure(applied.error)
        return built

    def add_table_row(
        self, section_label: str, values_by_column: Mapping[str, Sequence[Any]]
    ) -> ResolutionResult[int]:
        """Append a row built from ``{column label: [values]}``."""
        return self._table_row(section_label, values_by_column)

    def create(self) -> ResolutionResult[Dict[str, Any]]:
        """Submit the new record."""
        return self.client.create(self.app, self.record)


class RecordUpdater(_RecordBuilder):
    """Change-tracking editor over an existing record."""

    def __init__(self, client: ApptivoClient, app: str, record: RecordInput):
        super().__init__(client, app, copy.deepcopy(DataRecord.coerce(record).to_dict()))
        self.attribute_ids: List[str] = []
        self.attribute_names: List[str] = []

    @property
    def has_changes(self) -> bool:
        return bool(self.attribute_ids or self.attribute_names)

    def _track(self, resolved: ResolvedAttribute) -> None:
        if resolved.address is not None:
            address_id = resolved.definition.address_attribute_id or resolved.definition.attribute_id
            _add_if_new(self.attribute_ids, address_id)
            _add_if_new(self.attribute_names, ADDRESS)
        elif resolved.is_standard:
            _add_if_new(self.attribute_ids, resolved.attribute_id)
            _add_if_new(self.attribute_names, resolved.tag_name)
        else:
            _add_if_new(self.attribute_ids, resolved.attribute_id)
            _add_if_new(self.attribute_names, CUSTOM_ATTRIBUTES)

    @staticmethod
    def _differs(current: AttributeDetails, built: BuiltAttribute) -> bool:
        if built.definition.attribute_tag in MULTI_VALUE_TAGS and not built.is_standard:
            new_values = [normalize_label(v.get("attributeValue")) for v in built.value or []]
            return [normalize_label(v) for v in current.values] != new_values
        if not current.is_present and built.value in (None, ""):
            return False
        if built.definition.address is not None and built.definition.tag_name == "state":
            return _state_key(current.value_text) != _state_key(built.value)
        return normalize_label(current.value_text) != normalize_label(built.value)

    def check_and_update(self, label: LabelInput, values: Sequence[Any]) -> ResolutionResult[bool]:
        """Set a value if it differs from the record's current value.

        Args:
            label: Field label, ``[section, field]`` pair or address path
            values: New values (see ``build_attribute``)

        Returns:
            ResolutionResult with True when the record was changed, False
            when the value already matched
        """
        resolved_result = self._resolve(label)
        if not resolved_result:
            return ResolutionResult.from_failure(resolved_result.error)
        resolved = resolved_result.payload

        current = details_for(resolved, self.record, label)
        if not current:
            return ResolutionResult.from_failure(current.error)

        built = build_for(resolved, values)
        if not built:
            return ResolutionResult.from_failure(built.error)

        if not self._differs(current.payload, built.payload):
            return ResolutionResult.ok(False)

        logger.debug(
            f"Updating ({resolved.label}): {current.payload.value_text!r} -> {built.payload.value!r}"
        )
        applied = built.payload.apply_to(self.record)
        if not applied:
            return ResolutionResult.from_failure(applied.error)
        self._track(resolved)
        return ResolutionResult.ok(True)

    def add_table_row(
        self, section_label: str, values_by_column: Mapping[str, Sequence[Any]]
    ) -> ResolutionResult[int]:
        """Append a table row and track the table as a changed custom attribute."""
        appended = self._table_row(section_label, values_by_column)
        if not appended:
            return appended
        config_result = self.client.get_config(self.app)
        if config_result:
            section_id = find_section_id(section_label, config_result.payload)
            if section_id:
                _add_if_new(self.attribute_ids, section_id.payload)
        _add_if_new(self.attribute_names, CUSTOM_ATTRIBUTES)
        return appended

    def update(self) -> ResolutionResult[Dict[str, Any]]:
        """Submit the tracked changes; a no-op when nothing changed.

        Returns:
            ResolutionResult with the stored record (or the unchanged record)
        """
        if not self.has_changes:
            logger.info(f"No changes to submit for {self.app} record {self.record.id!r}")
            return ResolutionResult.ok(self.record.to_dict())

        result = self.client.update(self.app, self.record, self.attribute_ids, self.attribute_names)
        if not result:
            return result
        self.record = DataRecord.coerce(result.payload)
        self.attribute_ids = []
        self.attribute_names = []
        return result

