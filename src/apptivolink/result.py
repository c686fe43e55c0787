"""Result channel for every label-resolution and transport operation.

Resolution failures are an expected, common outcome (label typos, schema
drift between tenants), so they travel back as values rather than
exceptions. Every public operation in the resolution engine returns a
``ResolutionResult``; callers check ``success`` (or truthiness) before
touching ``payload``.

``unwrap()`` is the only place a failure becomes an exception, and is meant
for orchestration code that has decided a failure should abort.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class ErrorKind(str, Enum):
    """Closed taxonomy of failure kinds."""

    UNKNOWN_APP = "unknown_app"
    CONFIG_FETCH_FAILED = "config_fetch_failed"
    INVALID_LABEL_SHAPE = "invalid_label_shape"
    ATTRIBUTE_NOT_FOUND = "attribute_not_found"
    TABLE_SECTION_NOT_FOUND = "table_section_not_found"
    ADDRESS_TYPE_NOT_FOUND = "address_type_not_found"
    UNSUPPORTED_ATTRIBUTE_TAG = "unsupported_attribute_tag"
    NO_MATCHING_OPTION = "no_matching_option"
    EMPTY_REQUIRED_VALUE = "empty_required_value"

    # Transport / orchestration
    RECORD_FETCH_FAILED = "record_fetch_failed"
    SUBMIT_FAILED = "submit_failed"
    SEARCH_FAILED = "search_failed"
    RECORD_NOT_FOUND = "record_not_found"
    SESSION_REQUIRED = "session_required"
    NO_CHANGES = "no_changes"


@dataclass(frozen=True)
class Failure:
    """Diagnostic payload of a failed result."""

    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class ResolutionError(Exception):
    """Raised by ``ResolutionResult.unwrap()`` on a failed result."""

    def __init__(self, failure: Failure):
        self.failure = failure
        super().__init__(str(failure))

    @property
    def kind(self) -> ErrorKind:
        return self.failure.kind


@dataclass(frozen=True)
class ResolutionResult(Generic[T]):
    """Tagged union of (success, payload) or (failure, diagnostic)."""

    success: bool
    payload: Optional[T] = None
    error: Optional[Failure] = None

    @classmethod
    def ok(cls, payload: Any = None) -> "ResolutionResult[Any]":
        """Build a successful result."""
        return cls(success=True, payload=payload)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "ResolutionResult[Any]":
        """Build a failed result."""
        return cls(success=False, error=Failure(kind, message))

    @classmethod
    def from_failure(cls, failure: Failure) -> "ResolutionResult[Any]":
        """Re-wrap an existing failure (propagation across components)."""
        return cls(success=False, error=failure)

    def __bool__(self) -> bool:
        return self.success

    @property
    def kind(self) -> Optional[ErrorKind]:
        """Failure kind, or None on success."""
        return self.error.kind if self.error else None

    @property
    def message(self) -> str:
        """Failure message, or empty string on success."""
        return self.error.message if self.error else ""

    def unwrap(self) -> T:
        """Return the payload or raise ResolutionError."""
        if not self.success:
            assert self.error is not None
            raise ResolutionError(self.error)
        return self.payload  # type: ignore[return-value]

    def map(self, fn: Callable[[T], U]) -> "ResolutionResult[U]":
        """Transform the payload of a successful result."""
        if not self.success:
            return self  # type: ignore[return-value]
        return ResolutionResult.ok(fn(self.payload))  # type: ignore[arg-type]

    def and_then(self, fn: Callable[[T], "ResolutionResult[U]"]) -> "ResolutionResult[U]":
        """Chain another fallible step onto a successful result."""
        if not self.success:
            return self  # type: ignore[return-value]
        return fn(self.payload)  # type: ignore[arg-type]


ok = ResolutionResult.ok
fail = ResolutionResult.fail
