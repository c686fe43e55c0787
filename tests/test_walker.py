"""Tests for config parsing and the schema walker."""

import pytest

from apptivolink.labels import AddressFieldPath
from apptivolink.result import ErrorKind
from apptivolink.schema.models import AttributeDefinition, ConfigDocument, MetaSource
from apptivolink.schema.walker import find_attribute, find_attribute_id, iter_attributes


class TestConfigDocument:
    """Tests for parsing raw configuration documents."""

    def test_parses_json_encoded_layout(self, config_payload):
        document = ConfigDocument.parse(config_payload).unwrap()
        assert [s.id for s in document.sections] == [
            "sec_info",
            "sec_billing",
            "sec_shipping",
            "sec_address",
            "tbl_items",
        ]

    def test_parses_json_text(self, config_payload):
        import json

        assert ConfigDocument.parse(json.dumps(config_payload))

    @pytest.mark.parametrize("raw", [None, {}, "", [1, 2], "not json", {"webLayout": "{bad"}])
    def test_unusable_documents(self, raw):
        result = ConfigDocument.parse(raw)
        assert not result
        assert result.kind == ErrorKind.CONFIG_FETCH_FAILED

    def test_alternate_metadata(self, config_document):
        """Tag and tagName fall back to the first ``right`` entry."""
        priority = find_attribute("Priority", config_document).unwrap().definition
        assert priority.tag == "select"
        assert priority.field_name == "priority"
        assert priority.tag_info.tag_source == MetaSource.ALTERNATE
        assert [o.text for o in priority.options] == ["Low", "High"]

    def test_is_enabled_defaults_false(self):
        definition = AttributeDefinition.model_validate({"attributeId": "x", "type": "Custom"})
        assert definition.is_enabled is False

    def test_unknown_keys_are_kept(self, config_document):
        employee = find_attribute("Assigned Employee", config_document).unwrap().definition
        assert employee.extra_value("refObjectId") == 8
        assert employee.to_raw()["refObjectId"] == 8

    def test_null_attribute_list_is_empty(self, config_payload):
        """A section with ``attributes: null`` does not hide the other sections."""
        import json

        layout = json.loads(config_payload["webLayout"])
        layout["sections"].append({"id": "sec_empty", "label": "Empty", "attributes": None})
        document = ConfigDocument.parse({"webLayout": layout}).unwrap()

        assert document.sections[-1].attributes == []
        assert find_attribute("Case Status", document).payload.attribute_id == "attr_status"

    def test_null_section_list_is_empty(self):
        document = ConfigDocument.parse({"webLayout": {"sections": None}}).unwrap()
        assert document.sections == []
        assert find_attribute("Case Status", document).kind == ErrorKind.ATTRIBUTE_NOT_FOUND

    def test_numeric_ids_and_labels_become_text(self):
        definition = AttributeDefinition.model_validate(
            {"attributeId": 17, "type": "Custom", "label": 2024, "attributeTag": "input"}
        )
        assert definition.attribute_id == "17"
        assert definition.modified_label == "2024"

    def test_direct_metadata_takes_precedence(self):
        """Node-direct tag and tagName win over the ``right`` entry."""
        definition = AttributeDefinition.model_validate(
            {
                "attributeId": "x",
                "type": "Custom",
                "attributeTag": "input",
                "tagName": "notes",
                "right": [{"tag": "select", "tagName": "other"}],
            }
        )
        assert definition.tag == "input"
        assert definition.field_name == "notes"
        assert definition.tag_info.tag_source == MetaSource.DIRECT
        assert definition.tag_info.tag_name_source == MetaSource.DIRECT

    def test_metadata_falls_back_per_field(self):
        """A missing direct tagName is taken from ``right`` while the tag stays direct."""
        definition = AttributeDefinition.model_validate(
            {"attributeTag": "input", "right": [{"tag": "select", "tagName": "other"}]}
        )
        assert definition.tag_info.tag_source == MetaSource.DIRECT
        assert definition.field_name == "other"
        assert definition.tag_info.tag_name_source == MetaSource.ALTERNATE


class TestFindAttribute:
    """Tests for label to definition resolution."""

    def test_by_modified_label(self, config_document):
        resolved = find_attribute(["Case Status"], config_document).unwrap()
        assert resolved.attribute_id == "attr_status"
        assert resolved.section_id == "sec_info"
        assert resolved.is_custom

    def test_by_tag_name(self, config_document):
        """A single-part label also matches the record property name."""
        resolved = find_attribute("caseNumber", config_document).unwrap()
        assert resolved.attribute_id == "std_case_number"
        assert resolved.is_standard

    def test_case_insensitive(self, config_document):
        assert find_attribute("  case STATUS ", config_document).payload.attribute_id == "attr_status"

    def test_first_match_wins_unscoped(self, config_document):
        """An ambiguous bare label resolves to the first in document order."""
        assert find_attribute("Zip", config_document).payload.attribute_id == "attr_bill_zip"

    def test_scoped_label_disambiguates(self, config_document):
        shipping = find_attribute(["Shipping", "Zip"], config_document).unwrap()
        assert shipping.attribute_id == "attr_ship_zip"
        assert shipping.section_label == "Shipping "
        billing = find_attribute(["billing", "zip"], config_document).unwrap()
        assert billing.attribute_id == "attr_bill_zip"

    def test_scoped_label_unknown_section(self, config_document):
        result = find_attribute(["Nonexistent Section", "Zip"], config_document)
        assert result.kind == ErrorKind.ATTRIBUTE_NOT_FOUND

    def test_scoped_label_does_not_match_tag_name(self, config_document):
        result = find_attribute(["Case Information", "caseNumber"], config_document)
        assert result.kind == ErrorKind.ATTRIBUTE_NOT_FOUND

    def test_disabled_attribute_is_skipped(self, config_document):
        result = find_attribute("Legacy Code", config_document)
        assert not result
        assert result.kind == ErrorKind.ATTRIBUTE_NOT_FOUND

    def test_placeholder_is_skipped(self, config_document):
        assert find_attribute("Spacer", config_document).kind == ErrorKind.ATTRIBUTE_NOT_FOUND

    def test_invalid_shape(self, config_document):
        result = find_attribute(["a", "b", "c"], config_document)
        assert result.kind == ErrorKind.INVALID_LABEL_SHAPE

    def test_address_field_legacy_string(self, config_document):
        resolved = find_attribute("Address||Billing||City", config_document).unwrap()
        assert resolved.is_standard
        assert resolved.tag_name == "city"
        assert resolved.attribute_id == "addr_city"
        assert resolved.address == AddressFieldPath("Billing", "City")

    def test_address_field_by_tag_name(self, config_document):
        resolved = find_attribute(AddressFieldPath("Shipping", "zipCode"), config_document).unwrap()
        assert resolved.label == "Zip Code"

    def test_address_field_unknown(self, config_document):
        result = find_attribute("Address||Billing||Country", config_document)
        assert result.kind == ErrorKind.ATTRIBUTE_NOT_FOUND

    def test_table_column(self, config_document):
        resolved = find_attribute(["Line Items", "Quantity"], config_document).unwrap()
        assert resolved.attribute_id == "attr_item_qty"
        assert resolved.section_id == "tbl_items"

    def test_find_attribute_id(self, config_document):
        assert find_attribute_id("Budget", config_document).payload == "attr_budget"
        assert find_attribute_id("Nope", config_document).kind == ErrorKind.ATTRIBUTE_NOT_FOUND

    def test_repeated_lookup_is_stable(self, config_document):
        """Resolving a label twice gives equal results and leaves the document unchanged."""
        before = config_document.model_dump()
        first = find_attribute(["Billing", "Zip"], config_document).unwrap()
        second = find_attribute(["Billing", "Zip"], config_document).unwrap()

        assert first == second
        assert first.definition is second.definition
        assert config_document.model_dump() == before


class TestIterAttributes:
    """Tests for listing attributes."""

    def test_skips_disabled_and_placeholders(self, config_document):
        labels = [a.modified_label for _, a in iter_attributes(config_document)]
        assert "Case Status" in labels
        assert "Legacy Code" not in labels
        assert "Spacer" not in labels

    def test_include_disabled(self, config_document):
        labels = [a.modified_label for _, a in iter_attributes(config_document, include_disabled=True)]
        assert "Legacy Code" in labels
