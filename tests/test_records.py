"""Tests for RecordCreator and RecordUpdater."""

import copy

from apptivolink.result import ErrorKind


def _submits(store):
    return [c["args"] for c in store.get_call_log() if c["operation"] == "submit_record"]


# =============================================================================
# RecordCreator
# =============================================================================


class TestRecordCreator:
    """Tests for building new records."""

    def test_sets_standard_and_custom_values(self, client):
        creator = client.new_record("cases")
        assert creator.set_value("Case Summary", ["Paper jam"])
        assert creator.set_value("Case Status", ["closed"])
        record = creator.record.to_dict()
        assert record["caseSummary"] == "Paper jam"
        assert record["customAttributes"][0]["customAttributeValue"] == "Closed"

    def test_address_field_creates_entry(self, client):
        creator = client.new_record("cases")
        creator.set_value("Address||Billing||City", ["Austin"])
        creator.set_value("Address||Billing||State", ["TX"])
        addresses = creator.record.to_dict()["addresses"]
        assert len(addresses) == 1
        assert addresses[0]["addressType"] == "Billing"
        assert addresses[0]["city"] == "Austin"
        assert addresses[0]["stateCode"] == "TX"

    def test_failed_value_leaves_record_unchanged(self, client):
        creator = client.new_record("cases")
        result = creator.set_value("Case Status", ["Archived"])
        assert result.kind == ErrorKind.NO_MATCHING_OPTION
        assert "customAttributes" not in creator.record.to_dict()

    def test_create_submits_once(self, client, memory_store):
        creator = client.new_record("cases")
        creator.set_value("Case Summary", ["Fuser noise"])
        assert creator.add_table_row("Line Items", {"Item Name": ["Fuser"]}).payload == 0

        stored = creator.create().unwrap()
        assert stored["id"] == "1000"
        assert stored["caseSummary"] == "Fuser noise"
        submits = _submits(memory_store)
        assert len(submits) == 1
        assert submits[0]["is_create"] is True


# =============================================================================
# RecordUpdater
# =============================================================================


class TestRecordUpdater:
    """Tests for change-tracking updates."""

    def test_unchanged_value_is_not_tracked(self, client, case_record):
        updater = client.updater("cases", case_record)
        assert updater.check_and_update("Case Status", ["new"]).payload is False
        assert updater.check_and_update("Case Number", ["c-100"]).payload is False
        assert not updater.has_changes

    def test_no_changes_skips_submit(self, client, memory_store, case_record):
        updater = client.updater("cases", case_record)
        updater.check_and_update("Case Status", ["New"])
        assert updater.update().payload["id"] == "5001"
        assert not memory_store.was_called("submit_record")

    def test_custom_change_is_tracked(self, client, case_record):
        updater = client.updater("cases", case_record)
        assert updater.check_and_update("Case Status", ["Closed"]).payload is True
        assert updater.attribute_ids == ["attr_status"]
        assert updater.attribute_names == ["customAttributes"]

    def test_standard_change_is_tracked_by_tag_name(self, client, case_record):
        updater = client.updater("cases", case_record)
        updater.check_and_update("Case Summary", ["Paper jam"])
        assert updater.attribute_ids == ["std_summary"]
        assert updater.attribute_names == ["caseSummary"]

    def test_address_change_is_tracked_once(self, client, case_record):
        updater = client.updater("cases", case_record)
        updater.check_and_update("Address||Billing||City", ["Evanston"])
        updater.check_and_update("Address||Billing||Zip Code", ["60201"])
        assert updater.attribute_ids == ["addr_attr_1"]
        assert updater.attribute_names == ["address"]

    def test_state_code_matches_stored_name(self, client, case_record):
        """A state code equal to the stored state name is not a change."""
        updater = client.updater("cases", case_record)
        assert updater.check_and_update("Address||Billing||State", ["IL"]).payload is False
        assert updater.check_and_update("Address||Billing||State", ["illinois"]).payload is False
        assert not updater.has_changes

        assert updater.check_and_update("Address||Billing||State", ["WI"]).payload is True
        assert updater.attribute_names == ["address"]

    def test_multi_value_comparison(self, client, case_record):
        updater = client.updater("cases", case_record)
        assert updater.check_and_update("Channels", ["email"]).payload is False
        assert updater.check_and_update("Channels", ["Email", "Phone"]).payload is True

    def test_mixed_changes_share_custom_attributes_name(self, client, case_record):
        updater = client.updater("cases", case_record)
        updater.check_and_update("Case Status", ["Closed"])
        updater.check_and_update(["Shipping", "Zip"], ["60602"])
        assert updater.attribute_ids == ["attr_status", "attr_ship_zip"]
        assert updater.attribute_names == ["customAttributes"]

    def test_failures_propagate(self, client, case_record):
        updater = client.updater("cases", case_record)
        assert updater.check_and_update("Nope", ["x"]).kind == ErrorKind.ATTRIBUTE_NOT_FOUND
        assert updater.check_and_update("Channels", ["Fax"]).kind == ErrorKind.NO_MATCHING_OPTION
        assert not updater.has_changes

    def test_input_record_is_not_mutated(self, client, case_record):
        before = copy.deepcopy(case_record)
        updater = client.updater("cases", case_record)
        updater.check_and_update("Case Status", ["Closed"])
        assert case_record == before

    def test_table_row_tracks_section(self, client, case_record):
        updater = client.updater("cases", case_record)
        assert updater.add_table_row("Line Items", {"Quantity": ["1"]}).payload == 2
        assert updater.attribute_ids == ["tbl_items"]
        assert updater.attribute_names == ["customAttributes"]

    def test_update_submits_tracked_changes(self, client, memory_store, case_record):
        updater = client.updater("cases", case_record)
        updater.check_and_update("Case Status", ["Closed"])
        updater.check_and_update("Address||Billing||City", ["Evanston"])

        stored = updater.update().unwrap()

        submit = _submits(memory_store)[-1]
        assert submit["is_create"] is False
        assert submit["attribute_ids"] == ["attr_status", "addr_attr_1"]
        assert submit["attribute_names"] == ["customAttributes", "address"]
        assert stored["addresses"][0]["city"] == "Evanston"
        assert not updater.has_changes

        fresh = client.read("cases", "5001").unwrap()
        assert client.get_value("Case Status", fresh, "cases").payload.value == "Closed"

    def test_update_failure_keeps_tracking(self, client, memory_store, case_record):
        memory_store.set_failure("submit_record", ErrorKind.SUBMIT_FAILED)
        updater = client.updater("cases", case_record)
        updater.check_and_update("Case Status", ["Closed"])
        assert updater.update().kind == ErrorKind.SUBMIT_FAILED
        assert updater.has_changes
