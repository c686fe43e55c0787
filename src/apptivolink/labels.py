"""Label normalization and label-path values.

All label comparisons in the package go through ``labels_match`` so that
case and surrounding whitespace are handled in exactly one place. Tenant
configurations drift (trailing spaces, capitalization changes), and the
comparison is intentionally loose to tolerate that.

A label path is either ``[field]`` or ``[section, field]``. Address fields on
standard apps are addressed with ``AddressFieldPath``; the legacy string form
``"Address||<address type>||<field>"`` is still accepted and parsed.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple, Union

from apptivolink.result import ErrorKind, ResolutionResult

ADDRESS_DELIMITER = "||"


def normalize_label(text: Any) -> str:
    """Trim and casefold a label for comparison."""
    if text is None:
        return ""
    return str(text).strip().casefold()


def labels_match(left: Any, right: Any) -> bool:
    """Case-insensitive, whitespace-trimmed equality. None never matches."""
    if left is None or right is None:
        return False
    return normalize_label(left) == normalize_label(right)


def contains_label(haystack: Any, needle: Any) -> bool:
    """Case-insensitive substring test (empty needle never matches)."""
    needle_norm = normalize_label(needle)
    if not needle_norm or haystack is None:
        return False
    return needle_norm in normalize_label(haystack)


@dataclass(frozen=True)
class AddressFieldPath:
    """Structured address field reference: which address, which field."""

    address_type: str
    field: str

    @classmethod
    def parse(cls, text: Any) -> Optional["AddressFieldPath"]:
        """Parse the legacy ``Address||Type||Field`` string.

        Returns None when the text is not an address-encoded label.
        """
        if not isinstance(text, str) or ADDRESS_DELIMITER not in text:
            return None
        parts = [p.strip() for p in text.split(ADDRESS_DELIMITER)]
        if len(parts) < 2 or not parts[1] or not parts[-1]:
            return None
        return cls(address_type=parts[1], field=parts[-1])

    def to_label(self) -> str:
        """Render back to the legacy string form."""
        return ADDRESS_DELIMITER.join(["Address", self.address_type, self.field])


LabelInput = Union[str, AddressFieldPath, Sequence[Union[str, AddressFieldPath]], "LabelPath"]


@dataclass(frozen=True)
class LabelPath:
    """One or two label segments: ``(field,)`` or ``(section, field)``."""

    segments: Tuple[str, ...]

    @classmethod
    def of(cls, label: LabelInput) -> ResolutionResult["LabelPath"]:
        """Validate and build a label path from any accepted input shape."""
        if isinstance(label, LabelPath):
            return ResolutionResult.ok(label)
        if isinstance(label, (str, AddressFieldPath)):
            raw = [label]
        else:
            try:
                raw = list(label)
            except TypeError:
                return ResolutionResult.fail(
                    ErrorKind.INVALID_LABEL_SHAPE,
                    f"Label must be a string or a sequence of strings, got {type(label).__name__}",
                )

        if len(raw) not in (1, 2):
            return ResolutionResult.fail(
                ErrorKind.INVALID_LABEL_SHAPE,
                f"Label path must have 1 or 2 segments, got {len(raw)}: {raw!r}",
            )

        segments = []
        for segment in raw:
            if isinstance(segment, AddressFieldPath):
                segment = segment.to_label()
            if not isinstance(segment, str) or not segment.strip():
                return ResolutionResult.fail(
                    ErrorKind.INVALID_LABEL_SHAPE,
                    f"Label segments must be non-empty strings: {raw!r}",
                )
            segments.append(segment)

        return ResolutionResult.ok(cls(tuple(segments)))

    @property
    def is_scoped(self) -> bool:
        """True for ``[section, field]`` labels."""
        return len(self.segments) == 2

    @property
    def section(self) -> Optional[str]:
        return self.segments[0] if self.is_scoped else None

    @property
    def field(self) -> str:
        return self.segments[-1]

    @property
    def address(self) -> Optional[AddressFieldPath]:
        """Address path encoded in a single-part label, if any."""
        if self.is_scoped:
            return None
        return AddressFieldPath.parse(self.segments[0])

    def __str__(self) -> str:
        return " > ".join(self.segments)
