"""reqbind exception hierarchy.

Shared across the binder, converter, body decoder and file extraction so
every module raises and catches the same types.

Field-level errors are raised bare by the converter and then annotated
with the offending field, its source and key by the binder before they
propagate to the caller.
"""

from typing import Self


class BindError(Exception):
    """Base for all reqbind errors.

    Attributes:
        field: Destination field name, once known.
        source: Source kind that was being read (``query``, ``form``, ...).
        key: Tag value used for the lookup.
    """

    field: str | None = None
    source: str | None = None
    key: str | None = None

    def at(self, field: str, source: str, key: str | None = None) -> Self:
        """Attach field context and return ``self`` for re-raising."""
        self.field = field
        self.source = source
        self.key = key
        return self

    def __str__(self) -> str:
        message = super().__str__()
        if self.field is None:
            return message
        if self.key:
            return f"{self.source} {self.key!r} -> field {self.field!r}: {message}"
        return f"{self.source} -> field {self.field!r}: {message}"


class InvalidRequest(BindError):
    """The request is missing or does not expose the accessors bind needs."""


class InvalidDestination(BindError):
    """The destination is not a mutable dataclass instance."""


class BodyDecodeError(BindError):
    """The JSON body could not be decoded into the destination."""


class FormParseError(BindError):
    """The form body (url-encoded or multipart) could not be parsed."""


class FileReadError(BindError):
    """An uploaded part or the raw body could not be read."""


class UnsupportedType(BindError):
    """A field's declared type cannot be bound from its source."""

    def __init__(self, kind: str, detail: str = "") -> None:
        self.kind = kind
        super().__init__(detail or f"type {kind!r} is not supported")


class ConversionError(BindError):
    """A present value failed to parse into the field's kind.

    Attributes:
        kind: Target kind name (``bool``, ``int``, ``uint``, ``float``,
            ``complex``).
        bits: Target width, ``0`` where width does not apply.
        value: The raw string that failed.
        reason: ``invalid syntax`` or ``value out of range``.
        index: Element index when the failure happened inside a list.
    """

    def __init__(self, kind: str, value: str, *, bits: int = 0, reason: str = "invalid syntax") -> None:
        self.kind = kind
        self.bits = bits
        self.value = value
        self.reason = reason
        self.index: int | None = None
        target = f"{kind}{bits}" if bits else kind
        super().__init__(f"cannot parse {value!r} as {target}: {reason}")

    def __str__(self) -> str:
        message = super().__str__()
        if self.index is None:
            return message
        return f"{message} (list index {self.index})"
