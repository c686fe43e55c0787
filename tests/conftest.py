"""Test configuration and fixtures.

The sample configuration document mirrors the platform's shape for the
Cases app (id 59): a JSON-encoded ``webLayout`` with an info section, two
sections that both define a "Zip" field, an address group, and a table
section.
"""

import copy
import json
import logging
from typing import Any, Dict, List

import pytest

from apptivolink.client import ApptivoClient
from apptivolink.connectors import InMemoryObjectStore
from apptivolink.schema.models import ConfigDocument

CASES_APP_ID = 59


def _custom(attribute_id: str, label: Any, tag: str, **extra) -> Dict[str, Any]:
    node = {
        "attributeId": attribute_id,
        "type": "Custom",
        "label": label,
        "attributeTag": tag,
        "tagName": attribute_id,
        "isEnabled": True,
    }
    node.update(extra)
    return node


def _standard(attribute_id: str, label: Any, tag: str, tag_name: str, **extra) -> Dict[str, Any]:
    node = {
        "attributeId": attribute_id,
        "type": "Standard",
        "label": label,
        "attributeTag": tag,
        "tagName": tag_name,
        "isEnabled": True,
    }
    node.update(extra)
    return node


def _sections() -> List[Dict[str, Any]]:
    return [
        {
            "id": "sec_info",
            "label": {"modifiedLabel": "Case Information"},
            "attributes": [
                _standard("std_case_number", {"modifiedLabel": "Case Number"}, "input", "caseNumber"),
                _standard("std_summary", "Case Summary", "input", "caseSummary"),
                _standard("std_date_resolved", "Date Resolved", "date", "dateResolved"),
                _standard("std_resolution", "Resolution Notes", "textarea", "resolutionNotes"),
                _custom(
                    "attr_status",
                    {"modifiedLabel": "Case Status"},
                    "select",
                    optionValueList=[
                        {"optionId": "opt_new", "optionObject": "New"},
                        {"optionId": "opt_progress", "optionObject": "In Progress"},
                        {"optionId": "opt_closed", "optionObject": "Closed"},
                    ],
                ),
                _custom(
                    "attr_channels",
                    "Channels",
                    "multiSelect",
                    optionValueList=[
                        {"optionId": "opt_email", "optionObject": "Email"},
                        {"optionId": "opt_phone", "optionObject": "Phone"},
                        {"optionId": "opt_chat", "optionObject": "Chat"},
                    ],
                ),
                _custom("attr_due", "Due Date", "date"),
                _custom("attr_hours", "Estimated Hours", "number"),
                _custom("attr_budget", "Budget", "currency"),
                _custom("attr_employee", "Assigned Employee", "reference", refObjectId=8),
                _custom("attr_project", "Related Project", "reference", refObjectId=445566),
                _custom(
                    "attr_cust_email",
                    "Customer Email",
                    "referenceField",
                    refObjectId=3,
                    refFieldId="fld_email",
                    refAttributeTag="email",
                ),
                _custom("attr_link", "Notes Link", "link"),
                _custom("attr_sig", "Signature", "signature"),
                _custom("attr_legacy", "Legacy Code", "input", isEnabled="N"),
                _custom("attr_spacer", "Spacer", "spacer"),
                {
                    "attributeId": "attr_priority",
                    "type": "Custom",
                    "label": "Priority",
                    "isEnabled": "Y",
                    "right": [
                        {"tag": "select", "tagName": "priority", "optionValueList": ["Low", "High"]}
                    ],
                },
            ],
        },
        {
            "id": "sec_billing",
            "label": "Billing",
            "attributes": [_custom("attr_bill_zip", "Zip", "input")],
        },
        {
            "id": "sec_shipping",
            "label": "Shipping ",
            "attributes": [_custom("attr_ship_zip", "Zip", "input")],
        },
        {
            "id": "sec_address",
            "label": "Addresses",
            "attributes": [
                _standard(
                    "std_address",
                    "Address",
                    "address",
                    "addresses",
                    addressAttributeId="addr_attr_1",
                    addressList=[
                        {"label": "Address Line 1", "tagName": "addressLine1", "attributeId": "addr_line1"},
                        {"label": "City", "tagName": "city", "attributeId": "addr_city"},
                        {"label": "State", "tagName": "state", "attributeId": "addr_state"},
                        {"label": "Zip Code", "tagName": "zipCode", "attributeId": "addr_zip"},
                    ],
                )
            ],
        },
        {
            "id": "tbl_items",
            "label": "Line Items",
            "sectionType": "table",
            "attributes": [
                _custom("attr_item_name", "Item Name", "input"),
                _custom("attr_item_qty", "Quantity", "number"),
                _custom(
                    "attr_item_tags",
                    "Item Tags",
                    "check",
                    optionValueList=["Urgent", "Fragile"],
                ),
            ],
        },
    ]


@pytest.fixture
def config_payload() -> Dict[str, Any]:
    """Raw configuration document as returned by getConfigData."""
    return {"webLayout": json.dumps({"sections": _sections()}), "objectId": CASES_APP_ID}


@pytest.fixture
def config_document(config_payload) -> ConfigDocument:
    """Parsed configuration document."""
    return ConfigDocument.parse(config_payload).unwrap()


@pytest.fixture
def case_record() -> Dict[str, Any]:
    """A case record with custom attributes, an address and a table."""
    return copy.deepcopy(
        {
            "id": "5001",
            "caseNumber": "C-100",
            "caseSummary": "Printer jam",
            "dateResolved": "",
            "customAttributes": [
                {
                    "customAttributeId": "attr_status",
                    "customAttributeType": "select",
                    "customAttributeValue": "New",
                    "customAttributeValueId": "opt_new",
                },
                {
                    "customAttributeId": "attr_channels",
                    "customAttributeType": "multiSelect",
                    "attributeValues": [{"attributeId": "opt_email", "attributeValue": "Email"}],
                },
                {
                    "customAttributeId": "attr_hours",
                    "customAttributeType": "number",
                    "customAttributeValue": "",
                    "customAttributeValue1": "4",
                },
                {
                    "customAttributeId": "attr_bill_zip",
                    "customAttributeType": "input",
                    "customAttributeValue": "10001",
                },
                {
                    "customAttributeId": "attr_ship_zip",
                    "customAttributeType": "input",
                    "customAttributeValue": "60601",
                },
                {
                    "customAttributeId": "attr_sig",
                    "customAttributeType": "signature",
                    "customAttributeValue": "data:image/png",
                },
                {
                    "customAttributeId": "tbl_items",
                    "customAttributeType": "table",
                    "rows": [
                        {
                            "columns": [
                                {
                                    "customAttributeId": "attr_item_qty",
                                    "customAttributeType": "number",
                                    "customAttributeValue": "3",
                                },
                                {
                                    "customAttributeId": "attr_item_name",
                                    "customAttributeType": "input",
                                    "customAttributeValue": "Toner",
                                },
                            ]
                        },
                        {
                            "columns": [
                                {
                                    "customAttributeId": "attr_item_name",
                                    "customAttributeType": "input",
                                    "customAttributeValue": "",
                                    "attributeValues": [{"attributeValue": "Drum"}],
                                },
                                {
                                    "customAttributeId": "attr_item_tags",
                                    "customAttributeType": "check",
                                    "attributeValues": [
                                        {"attributeId": "Urgent", "attributeValue": "Urgent"}
                                    ],
                                },
                            ]
                        },
                    ],
                },
            ],
            "addresses": [
                {
                    "addressType": "Billing",
                    "addressLine1": "1 Main St",
                    "city": "Chicago",
                    "state": "Illinois",
                    "stateCode": "IL",
                    "zipCode": "60601",
                }
            ],
        }
    )


@pytest.fixture
def memory_store(config_payload, case_record) -> InMemoryObjectStore:
    """In-memory store seeded with the Cases config and one case."""
    store = InMemoryObjectStore(configs={CASES_APP_ID: config_payload})
    store.add_record(CASES_APP_ID, case_record)
    return store


@pytest.fixture
def client(memory_store) -> ApptivoClient:
    """Client session over the seeded in-memory store."""
    return ApptivoClient(memory_store)


@pytest.fixture(autouse=True)
def _quiet_http_logs():
    """Keep httpx request logging out of test output."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    yield
