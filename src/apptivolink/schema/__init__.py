"""Label-to-schema resolution engine.

This package provides:
- Typed models for configuration documents and records
- ConfigCache: session-scoped, fetch-once configuration cache
- find_attribute: label → attribute definition
- get_value: read a labelled value from a record
- build_attribute: synthesize a new attribute value from plain input
- Table helpers: sections, rows and cells by label
"""

from apptivolink.schema.cache import CachedConfig, ConfigCache
from apptivolink.schema.extractor import AttributeDetails, get_value
from apptivolink.schema.models import (
    AttributeDefinition,
    ConfigDocument,
    CustomAttributeValue,
    DataRecord,
    ResolvedAttribute,
    Section,
    TableRow,
)
from apptivolink.schema.synthesizer import BuiltAttribute, build_attribute
from apptivolink.schema.tables import (
    append_row,
    build_row,
    find_section_id,
    get_cell_value,
    get_column_index,
    get_rows,
    get_rows_by_label,
)
from apptivolink.schema.walker import find_attribute, find_attribute_id

__all__ = [
    "AttributeDefinition",
    "AttributeDetails",
    "BuiltAttribute",
    "CachedConfig",
    "ConfigCache",
    "ConfigDocument",
    "CustomAttributeValue",
    "DataRecord",
    "ResolvedAttribute",
    "Section",
    "TableRow",
    "append_row",
    "build_attribute",
    "build_row",
    "find_attribute",
    "find_attribute_id",
    "find_section_id",
    "get_cell_value",
    "get_column_index",
    "get_rows",
    "get_rows_by_label",
    "get_value",
]
