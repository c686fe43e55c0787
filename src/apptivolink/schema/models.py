"""Typed models for per-tenant configuration documents and data records.

The platform's configuration payload embeds a serialized "web layout":
sections, each holding an ordered list of attribute definitions. Documents
are parsed once at the boundary into these models; resolution code never
walks raw JSON.

Every model allows extra keys so fields the resolver does not understand
survive a round trip back to the server (``to_raw()``).

Attribute metadata (``attributeTag``/``tagName``) can live directly on a
definition node or inside a single-element ``right`` array. The two shapes
are normalized into ``TagInfo`` when the definition is parsed; consumers read
``definition.tag_info`` and never look at ``right`` themselves.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from apptivolink.labels import AddressFieldPath
from apptivolink.result import ErrorKind, ResolutionResult

PLACEHOLDER_TAGS = frozenset({"placeholder", "spacer"})
MULTI_VALUE_TAGS = frozenset({"check", "multiSelect"})
SCALAR_VALUE_TAGS = frozenset(
    {
        "currency",
        "date",
        "input",
        "link",
        "number",
        "reference",
        "referenceField",
        "select",
        "textarea",
    }
)
TABLE_TAG = "table"


class AttributeType(str, Enum):
    """Built-in vs tenant-defined attribute."""

    STANDARD = "Standard"
    CUSTOM = "Custom"


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("y", "yes", "true", "1")
    return bool(value)


class _WireModel(BaseModel):
    """Base for models mirroring platform JSON (camelCase, extras kept)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    def to_raw(self) -> Dict[str, Any]:
        """Serialize back to platform JSON, keeping unknown keys."""
        return self.model_dump(by_alias=True, exclude_unset=True)


# =============================================================================
# Configuration side
# =============================================================================


class LabelText(_WireModel):
    """Label object (``{"modifiedLabel": ...}``)."""

    modified_label: Optional[str] = None
    original_label: Optional[str] = None

    @property
    def text(self) -> Optional[str]:
        return self.modified_label or self.original_label


def _label_text(label: Union[str, LabelText, None]) -> Optional[str]:
    if label is None:
        return None
    if isinstance(label, LabelText):
        return label.text
    return label


class OptionValue(_WireModel):
    """One selectable option of a select/multiSelect/check attribute."""

    option_id: Optional[str] = None
    option_object: Optional[str] = None
    is_enabled: Optional[bool] = None

    @classmethod
    def coerce(cls, raw: Any) -> "OptionValue":
        """Normalize dict or raw string options."""
        if isinstance(raw, OptionValue):
            return raw
        if isinstance(raw, dict):
            return cls.model_validate(raw)
        return cls(option_object=str(raw))

    @field_validator("option_id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        return str(v) if v is not None else None

    @property
    def text(self) -> str:
        return self.option_object if self.option_object is not None else (self.option_id or "")

    @property
    def value_id(self) -> str:
        """Option id, falling back to its text when no id was generated."""
        return self.option_id or self.text


class AlternateRepresentation(_WireModel):
    """Entry of the ``right`` array carrying metadata for some nodes."""

    tag: Optional[str] = None
    tag_name: Optional[str] = None
    option_value_list: Optional[List[Any]] = None


class MetaSource(str, Enum):
    """Where a piece of attribute metadata was found."""

    DIRECT = "direct"
    ALTERNATE = "right"
    MISSING = "missing"


@dataclass(frozen=True)
class TagInfo:
    """Normalized ``attributeTag``/``tagName`` pair."""

    tag: Optional[str]
    tag_name: Optional[str]
    tag_source: MetaSource = MetaSource.MISSING
    tag_name_source: MetaSource = MetaSource.MISSING


class AddressField(_WireModel):
    """One field of an address group's ``addressList``."""

    label: Union[str, LabelText, None] = None
    tag_name: Optional[str] = None
    attribute_id: Optional[str] = None
    attribute_tag: Optional[str] = None
    is_enabled: bool = True

    @field_validator("is_enabled", mode="before")
    @classmethod
    def _coerce_enabled(cls, v: Any) -> bool:
        return True if v is None else _as_bool(v)

    @property
    def modified_label(self) -> Optional[str]:
        return _label_text(self.label)


class AttributeDefinition(_WireModel):
    """One field or table-section definition from the web layout."""

    attribute_id: Optional[str] = None
    type: Optional[str] = None
    label: Union[str, LabelText, None] = None
    attribute_tag: Optional[str] = None
    tag_name: Optional[str] = None
    is_enabled: bool = False
    option_value_list: Optional[List[Any]] = None
    address_list: Optional[List[AddressField]] = None
    address_attribute_id: Optional[str] = None
    right: Optional[List[AlternateRepresentation]] = None

    _tag_info: TagInfo = PrivateAttr(default=TagInfo(None, None))

    @field_validator("is_enabled", mode="before")
    @classmethod
    def _coerce_enabled(cls, v: Any) -> bool:
        return _as_bool(v)

    @field_validator("attribute_id", "address_attribute_id", mode="before")
    @classmethod
    def _stringify_ids(cls, v: Any) -> Any:
        return str(v) if v is not None else None

    def model_post_init(self, __context: Any) -> None:
        alternate = self.right[0] if self.right else None

        if self.attribute_tag:
            tag, tag_source = self.attribute_tag, MetaSource.DIRECT
        elif alternate is not None and alternate.tag:
            tag, tag_source = alternate.tag, MetaSource.ALTERNATE
        else:
            tag, tag_source = None, MetaSource.MISSING

        if self.tag_name:
            tag_name, name_source = self.tag_name, MetaSource.DIRECT
        elif alternate is not None and alternate.tag_name:
            tag_name, name_source = alternate.tag_name, MetaSource.ALTERNATE
        else:
            tag_name, name_source = None, MetaSource.MISSING

        self._tag_info = TagInfo(tag, tag_name, tag_source, name_source)

    @property
    def tag_info(self) -> TagInfo:
        return self._tag_info

    @property
    def tag(self) -> Optional[str]:
        """Fine-grained attribute tag (input, select, table, ...)."""
        return self._tag_info.tag

    @property
    def field_name(self) -> Optional[str]:
        """Record property name used by Standard attributes."""
        return self._tag_info.tag_name

    @property
    def modified_label(self) -> Optional[str]:
        return _label_text(self.label)

    @property
    def is_standard(self) -> bool:
        return self.type == AttributeType.STANDARD.value

    @property
    def is_custom(self) -> bool:
        return self.type == AttributeType.CUSTOM.value

    @property
    def is_placeholder(self) -> bool:
        return self.tag in PLACEHOLDER_TAGS

    @property
    def is_address_group(self) -> bool:
        return bool(self.address_list)

    @property
    def options(self) -> List[OptionValue]:
        """Option list, node-direct first, then the alternate representation."""
        raw = self.option_value_list
        if not raw and self.right:
            raw = self.right[0].option_value_list
        return [OptionValue.coerce(o) for o in raw or []]

    def extra_value(self, *keys: str) -> Any:
        """First present value among extra (unmodelled) keys."""
        extras = self.model_extra or {}
        for key in keys:
            if extras.get(key) not in (None, ""):
                return extras[key]
        return None


class Section(_WireModel):
    """Layout section: a label, an id and ordered attribute definitions."""

    id: Optional[str] = None
    label: Union[str, LabelText, None] = None
    section_type: Optional[str] = None
    attributes: List[AttributeDefinition] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        return str(v) if v is not None else None

    @field_validator("attributes", mode="before")
    @classmethod
    def _null_attributes(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def modified_label(self) -> Optional[str]:
        return _label_text(self.label)


class WebLayout(_WireModel):
    """Decoded web layout."""

    sections: List[Section] = Field(default_factory=list)

    @field_validator("sections", mode="before")
    @classmethod
    def _null_sections(cls, v: Any) -> Any:
        return [] if v is None else v


class ConfigDocument(_WireModel):
    """Per-tenant, per-app configuration document."""

    web_layout: WebLayout

    @field_validator("web_layout", mode="before")
    @classmethod
    def _decode_layout(cls, v: Any) -> Any:
        if isinstance(v, (str, bytes)):
            return json.loads(v)
        return v

    @classmethod
    def parse(cls, raw: Any) -> ResolutionResult["ConfigDocument"]:
        """Parse a raw payload (dict, JSON text, or model) into a document."""
        if isinstance(raw, ConfigDocument):
            return ResolutionResult.ok(raw)
        if not raw:
            return ResolutionResult.fail(
                ErrorKind.CONFIG_FETCH_FAILED, "Configuration document was empty"
            )
        try:
            if isinstance(raw, (str, bytes)):
                raw = json.loads(raw)
            if not isinstance(raw, dict) or not raw:
                return ResolutionResult.fail(
                    ErrorKind.CONFIG_FETCH_FAILED,
                    f"Configuration document must be an object, got {type(raw).__name__}",
                )
            return ResolutionResult.ok(cls.model_validate(raw))
        except (ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            return ResolutionResult.fail(
                ErrorKind.CONFIG_FETCH_FAILED, f"Unparseable configuration document: {e}"
            )

    @property
    def sections(self) -> List[Section]:
        return self.web_layout.sections

    def iter_attributes(self) -> Iterator[tuple]:
        """Yield ``(section, attribute)`` pairs in document order."""
        for section in self.sections:
            for attribute in section.attributes:
                yield section, attribute


@dataclass(frozen=True)
class ResolvedAttribute:
    """A matched attribute definition plus the context it was matched in."""

    definition: AttributeDefinition
    section_id: Optional[str] = None
    section_label: Optional[str] = None
    address: Optional[AddressFieldPath] = None
    address_field: Optional[AddressField] = None

    @property
    def attribute_tag(self) -> Optional[str]:
        if self.address_field is not None and self.address_field.attribute_tag:
            return self.address_field.attribute_tag
        return self.definition.tag

    @property
    def tag_name(self) -> Optional[str]:
        if self.address_field is not None:
            return self.address_field.tag_name
        return self.definition.field_name

    @property
    def attribute_id(self) -> Optional[str]:
        if self.address_field is not None and self.address_field.attribute_id:
            return self.address_field.attribute_id
        return self.definition.attribute_id

    @property
    def label(self) -> Optional[str]:
        if self.address_field is not None:
            return self.address_field.modified_label
        return self.definition.modified_label

    @property
    def is_standard(self) -> bool:
        return self.definition.is_standard or self.address is not None

    @property
    def is_custom(self) -> bool:
        return not self.is_standard and self.definition.is_custom


# =============================================================================
# Record side
# =============================================================================


class AttributeValueItem(_WireModel):
    """Entry of a multi-valued attribute's ``attributeValues``."""

    attribute_id: Optional[str] = None
    attribute_value: Optional[str] = None

    @field_validator("attribute_id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        return str(v) if v is not None else None


class TableRow(_WireModel):
    """One table row; columns are matched by id, never by position."""

    columns: List["CustomAttributeValue"] = Field(default_factory=list)


class CustomAttributeValue(_WireModel):
    """Custom attribute entry on a record (or a table cell)."""

    custom_attribute_id: Optional[str] = None
    custom_attribute_type: Optional[str] = None
    custom_attribute_value: Optional[Any] = None
    custom_attribute_value1: Optional[Any] = None
    attribute_values: Optional[List[AttributeValueItem]] = None
    rows: Optional[List[TableRow]] = None

    @field_validator("custom_attribute_id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        return str(v) if v is not None else None

    def scalar_value(self) -> Any:
        """``customAttributeValue`` with the ``customAttributeValue1`` fallback."""
        if self.custom_attribute_value not in (None, ""):
            return self.custom_attribute_value
        if self.custom_attribute_value1 not in (None, ""):
            return self.custom_attribute_value1
        return self.custom_attribute_value if self.custom_attribute_value is not None else ""


TableRow.model_rebuild()


class DataRecord:
    """Mutable view over a raw record dict.

    The raw dict is kept as-is so fields unknown to this package are
    submitted back untouched.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = data if data is not None else {}

    @classmethod
    def coerce(cls, record: Union["DataRecord", Dict[str, Any], None]) -> "DataRecord":
        if isinstance(record, DataRecord):
            return record
        return cls(record)

    @property
    def id(self) -> Optional[Any]:
        return self.data.get("id")

    @property
    def raw_custom_attributes(self) -> List[Dict[str, Any]]:
        """The record's ``customAttributes`` list (created if absent)."""
        return self.data.setdefault("customAttributes", [])

    def find_custom_attribute(
        self, attribute_id: Any
    ) -> ResolutionResult[Optional[Tuple[int, CustomAttributeValue]]]:
        """First entry whose id equals ``attribute_id``, with its index.

        Only the matching entry is validated, so a malformed entry for some
        other attribute does not affect the lookup. Succeeds with None when
        no entry matches.
        """
        wanted = str(attribute_id)
        for index, entry in enumerate(self.data.get("customAttributes") or []):
            if not isinstance(entry, dict) or str(entry.get("customAttributeId")) != wanted:
                continue
            try:
                return ResolutionResult.ok((index, CustomAttributeValue.model_validate(entry)))
            except ValidationError as e:
                return ResolutionResult.fail(
                    ErrorKind.RECORD_FETCH_FAILED,
                    f"Record {self.id!r} has a malformed entry for attribute ({wanted}): {e}",
                )
        return ResolutionResult.ok(None)

    @property
    def addresses(self) -> List[Dict[str, Any]]:
        return self.data.get("addresses") or []

    def get_field(self, name: str, default: Any = "") -> Any:
        value = self.data.get(name)
        return default if value is None else value

    def set_field(self, name: str, value: Any) -> None:
        self.data[name] = value

    def to_dict(self) -> Dict[str, Any]:
        return self.data

    def __repr__(self) -> str:
        return f"DataRecord(id={self.id!r}, keys={sorted(self.data)!r})"
