"""Tests for building attribute values from plain input."""

import pytest

from apptivolink.result import ErrorKind
from apptivolink.schema.extractor import get_value
from apptivolink.schema.synthesizer import build_attribute, format_date, match_option
from apptivolink.schema.models import ConfigDocument, OptionValue


class TestHelpers:
    """Tests for date formatting and option matching."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("2024-03-05", "03/05/2024"),
            ("2024-3-5", "03/05/2024"),
            ("03/05/2024", "03/05/2024"),
            ("March 5, 2024", "03/05/2024"),
            ("2024-03-05T10:30:00", "03/05/2024"),
            ("", ""),
        ],
    )
    def test_format_date(self, raw, expected):
        """Known date formats are rewritten as MM/DD/YYYY."""
        assert format_date(raw) == expected

    def test_format_date_unparseable_passes_through(self):
        """Text that is not a date is stored unchanged."""
        assert format_date("next tuesday") == "next tuesday"

    def test_match_option_prefers_equality(self):
        """An exact option beats an earlier substring match."""
        options = [OptionValue(option_object="In Progress"), OptionValue(option_object="Progress")]
        assert match_option(options, "progress").text == "Progress"

    def test_match_option_substring(self):
        """Without an exact match the first containing option wins."""
        options = [OptionValue(option_id="o1", option_object="In Progress")]
        assert match_option(options, "progress").value_id == "o1"
        assert match_option(options, "done") is None


class TestBuildAttribute:
    """Tests for per-tag value shapes."""

    def test_standard_produces_patch(self, config_document):
        """Standard attributes build a one-key field patch."""
        built = build_attribute("Case Summary", ["Paper jam"], config_document).unwrap()
        assert built.is_standard
        assert built.payload == {"caseSummary": "Paper jam"}

    def test_standard_date_is_formatted(self, config_document):
        """Standard date fields are reformatted."""
        built = build_attribute("Date Resolved", ["2024-12-31"], config_document).unwrap()
        assert built.payload == {"dateResolved": "12/31/2024"}

    def test_select(self, config_document):
        """Select values carry the matched option text and id."""
        built = build_attribute("Case Status", ["closed"], config_document).unwrap()
        payload = built.payload
        assert payload["customAttributeId"] == "attr_status"
        assert payload["customAttributeType"] == "select"
        assert payload["customAttributeValue"] == "Closed"
        assert payload["customAttributeValueId"] == "opt_closed"

    def test_select_without_match(self, config_document):
        """A value matching no option fails."""
        result = build_attribute("Case Status", ["Archived"], config_document)
        assert result.kind == ErrorKind.NO_MATCHING_OPTION

    def test_select_empty_input_clears(self, config_document):
        """Empty input clears a select."""
        built = build_attribute("Case Status", [], config_document).unwrap()
        assert built.payload["customAttributeValue"] == ""

    def test_select_from_alternate_options(self, config_document):
        """Options are read from the right entry when the node has none."""
        built = build_attribute("Priority", ["high"], config_document).unwrap()
        assert built.payload["customAttributeValue"] == "High"

    def test_select_with_numeric_options(self):
        """Options stored as numbers are matched and submitted as text."""
        document = ConfigDocument.parse(
            {
                "webLayout": {
                    "sections": [
                        {
                            "id": "sec_rating",
                            "label": "Rating",
                            "attributes": [
                                {
                                    "attributeId": "attr_rating",
                                    "type": "Custom",
                                    "label": "Rating",
                                    "attributeTag": "select",
                                    "isEnabled": True,
                                    "optionValueList": [
                                        {"optionId": 1, "optionObject": 5},
                                        {"optionId": 2, "optionObject": 4},
                                    ],
                                }
                            ],
                        }
                    ]
                }
            }
        ).unwrap()
        built = build_attribute("Rating", ["5"], document).unwrap()
        assert built.payload["customAttributeValue"] == "5"
        assert built.payload["customAttributeValueId"] == "1"

    def test_multi_select(self, config_document):
        """Values map to options in input order, without duplicates."""
        built = build_attribute("Channels", ["phone", "Email", "Phone"], config_document).unwrap()
        assert built.payload["attributeValues"] == [
            {"attributeId": "opt_phone", "attributeValue": "Phone"},
            {"attributeId": "opt_email", "attributeValue": "Email"},
        ]

    def test_multi_select_unknown_option(self, config_document):
        result = build_attribute("Channels", ["Fax"], config_document)
        assert result.kind == ErrorKind.NO_MATCHING_OPTION

    def test_number(self, config_document):
        """Numbers set both the value and numberValue."""
        built = build_attribute("Estimated Hours", ["7.5"], config_document).unwrap()
        assert built.payload["customAttributeValue"] == "7.5"
        assert built.payload["numberValue"] == "7.5"

    def test_currency(self, config_document):
        """Currency values default to USD."""
        built = build_attribute("Budget", ["1200"], config_document).unwrap()
        assert built.payload["currencyCode"] == "USD"

    def test_custom_date(self, config_document):
        """Custom date values are reformatted."""
        built = build_attribute("Due Date", ["2025-01-02"], config_document).unwrap()
        assert built.value == "01/02/2025"

    def test_link_passthrough(self, config_document):
        built = build_attribute("Notes Link", ["https://example.com"], config_document).unwrap()
        assert built.value == "https://example.com"

    def test_reference_to_known_app(self, config_document):
        """References to built-in apps add the app-specific id and name fields."""
        built = build_attribute("Assigned Employee", ["42", "Jane Smith"], config_document).unwrap()
        payload = built.payload
        assert payload["objectId"] == 8
        assert payload["objectRefId"] == "42"
        assert payload["objectRefName"] == "Jane Smith"
        assert payload["employeeId"] == "42"
        assert payload["employeeName"] == "Jane Smith"

    def test_reference_to_custom_app(self, config_document):
        """References to custom apps use the customApp fields."""
        built = build_attribute("Related Project", ["9", "Rollout"], config_document).unwrap()
        assert built.payload["customAppObjectId"] == 445566
        assert built.payload["customAppObjectRefId"] == "9"

    def test_reference_override_app_id(self, config_document):
        """A third value overrides the configured target app."""
        built = build_attribute("Assigned Employee", ["7", "Acme", "3"], config_document).unwrap()
        assert built.payload["objectId"] == 3
        assert built.payload["customerId"] == "7"

    def test_reference_requires_id_and_name(self, config_document):
        """A reference without a name fails."""
        result = build_attribute("Assigned Employee", ["42"], config_document)
        assert result.kind == ErrorKind.EMPTY_REQUIRED_VALUE

    def test_reference_field_uses_own_definition(self, config_document):
        """Reference fields copy their own definition's reference metadata."""
        built = build_attribute("Customer Email", ["7", "a@b.co"], config_document).unwrap()
        payload = built.payload
        assert payload["refFieldId"] == "fld_email"
        assert payload["refAttributeTag"] == "email"
        assert payload["emailAddress"] == "a@b.co"
        assert payload["customerId"] == "7"

    def test_unsupported_tag(self, config_document):
        result = build_attribute("Signature", ["x"], config_document)
        assert result.kind == ErrorKind.UNSUPPORTED_ATTRIBUTE_TAG

    def test_resolution_failure_propagates(self, config_document):
        """Schema walk failures are returned unchanged."""
        assert build_attribute("Nope", ["x"], config_document).kind == ErrorKind.ATTRIBUTE_NOT_FOUND


class TestApplyTo:
    """Tests for writing built values back onto records."""

    def test_replaces_existing_custom_entry(self, case_record, config_document):
        """An existing entry with the same id is replaced in place."""
        built = build_attribute("Case Status", ["Closed"], config_document).unwrap()
        index = built.apply_to(case_record).unwrap()
        assert index == 0
        assert get_value("Case Status", case_record, config_document).payload.value == "Closed"

    def test_appends_missing_custom_entry(self, case_record, config_document):
        """A custom attribute absent from the record is appended."""
        count = len(case_record["customAttributes"])
        built = build_attribute("Budget", ["500"], config_document).unwrap()
        assert built.apply_to(case_record).unwrap() == count
        assert get_value("Budget", case_record, config_document).payload.value == "500"

    def test_sets_standard_field(self, case_record, config_document):
        build_attribute("Case Summary", ["New summary"], config_document).unwrap().apply_to(case_record)
        assert case_record["caseSummary"] == "New summary"

    def test_address_state_sets_code(self, case_record, config_document):
        """State input sets both the state name and its code."""
        built = build_attribute("Address||Billing||State", ["tx"], config_document).unwrap()
        assert built.apply_to(case_record).unwrap() == 0
        assert case_record["addresses"][0]["state"] == "Texas"
        assert case_record["addresses"][0]["stateCode"] == "TX"

    def test_address_type_missing(self, case_record, config_document):
        """Writing to an address type the record lacks fails."""
        built = build_attribute("Address||Shipping||City", ["Austin"], config_document).unwrap()
        assert built.apply_to(case_record).kind == ErrorKind.ADDRESS_TYPE_NOT_FOUND

    def test_built_value_round_trips_through_extractor(self, case_record, config_document):
        """A multi-select value reads back as written."""
        built = build_attribute("Channels", ["Chat"], config_document).unwrap()
        built.apply_to(case_record)
        assert get_value("Channels", case_record, config_document).payload.values == ["Chat"]

    @pytest.mark.parametrize(
        "label,raw,stored",
        [
            ("Case Summary", "Toner smudges", "Toner smudges"),
            ("Resolution Notes", "Replaced drum.\nFixed.", "Replaced drum.\nFixed."),
            ("Date Resolved", "2024-3-5", "03/05/2024"),
        ],
    )
    def test_standard_value_round_trips_through_extractor(
        self, case_record, config_document, label, raw, stored
    ):
        """Standard input, textarea and date values read back as written."""
        built = build_attribute(label, [raw], config_document).unwrap()
        assert built.apply_to(case_record)
        assert get_value(label, case_record, config_document).payload.value == stored
