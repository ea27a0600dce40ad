"""Bindable field types.

A field's annotation resolves to a ``TypeSpec``: a closed set of kinds
(bool, signed and unsigned integers, floats, complex numbers, strings,
lists of those, and uploaded files) plus a bit width.

Python's ``int``, ``float`` and ``complex`` have no width of their own,
so sized variants are ``Annotated`` aliases carrying a ``Bits`` marker::

    @dataclass
    class Params:
        page: Uint16 = tag(query="page", default=0)
        ratio: Float32 = tag(query="ratio", default=0.0)

Plain ``int`` binds as a 64-bit signed integer, plain ``float`` as a
64-bit float and plain ``complex`` as a 128-bit complex number.
"""

from __future__ import annotations

import types
from dataclasses import dataclass
from enum import StrEnum
from typing import Annotated, Any, Union, get_args, get_origin

from reqbind.errors import UnsupportedType


@dataclass(frozen=True, slots=True)
class Bits:
    """Width marker for ``Annotated`` numeric aliases."""

    size: int
    signed: bool = True


Int8 = Annotated[int, Bits(8)]
Int16 = Annotated[int, Bits(16)]
Int32 = Annotated[int, Bits(32)]
Int64 = Annotated[int, Bits(64)]
Uint = Annotated[int, Bits(64, signed=False)]
Uint8 = Annotated[int, Bits(8, signed=False)]
Uint16 = Annotated[int, Bits(16, signed=False)]
Uint32 = Annotated[int, Bits(32, signed=False)]
Uint64 = Annotated[int, Bits(64, signed=False)]
Uintptr = Annotated[int, Bits(64, signed=False)]
Float32 = Annotated[float, Bits(32)]
Float64 = Annotated[float, Bits(64)]
Complex64 = Annotated[complex, Bits(64)]
Complex128 = Annotated[complex, Bits(128)]


@dataclass(frozen=True, slots=True)
class File:
    """An uploaded file bound to a destination field.

    Produced from a named multipart part or from the whole request body.
    The content is an owned copy; nothing refers back into the request.
    """

    name: str = ""
    size: int = 0
    content: bytes = b""

    def __repr__(self) -> str:
        return f"File({self.name!r}, {self.size} bytes)"


class Kind(StrEnum):
    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    COMPLEX = "complex"
    STRING = "string"
    LIST = "list"
    FILE = "file"


# Default widths for bare annotations
_PLATFORM_BITS: dict[Kind, int] = {
    Kind.INT: 64,
    Kind.UINT: 64,
    Kind.FLOAT: 64,
    Kind.COMPLEX: 128,
}

_VALID_BITS: dict[Kind, frozenset[int]] = {
    Kind.INT: frozenset({8, 16, 32, 64}),
    Kind.UINT: frozenset({8, 16, 32, 64}),
    Kind.FLOAT: frozenset({32, 64}),
    Kind.COMPLEX: frozenset({64, 128}),
}


@dataclass(frozen=True, slots=True)
class TypeSpec:
    """Resolved shape of a bindable field.

    ``optional`` is only ever set for ``File | None``, the owning-pointer
    form whose zero value is ``None``.
    """

    kind: Kind
    bits: int = 0
    element: TypeSpec | None = None
    optional: bool = False

    @property
    def name(self) -> str:
        if self.kind is Kind.LIST and self.element is not None:
            return f"list[{self.element.name}]"
        if self.kind is Kind.FILE and self.optional:
            return "File | None"
        if self.kind is Kind.FILE:
            return "File"
        if self.bits:
            return f"{self.kind}{self.bits}"
        return str(self.kind)


def type_name(annotation: Any) -> str:
    """Human-readable name of an arbitrary annotation."""
    if isinstance(annotation, type) and get_origin(annotation) is None:
        return annotation.__name__
    return repr(annotation).removeprefix("typing.")


def strip_optional(annotation: Any) -> tuple[Any, bool]:
    """Split ``X | None`` into ``(X, True)``; anything else is ``(annotation, False)``."""
    origin = get_origin(annotation)
    if origin is types.UnionType or origin is Union:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1 and len(args) < len(get_args(annotation)):
            return args[0], True
    return annotation, False


def _scalar_kind(base: Any) -> Kind | None:
    # bool before int: bool is an int subclass
    if base is bool:
        return Kind.BOOL
    if base is int:
        return Kind.INT
    if base is float:
        return Kind.FLOAT
    if base is complex:
        return Kind.COMPLEX
    if base is str:
        return Kind.STRING
    return None


def resolve_type(annotation: Any) -> TypeSpec:
    """Resolve a field annotation to a ``TypeSpec``.

    Raises ``UnsupportedType`` for anything outside the closed set,
    including lists of lists and lists of files.
    """
    inner, optional = strip_optional(annotation)
    if optional:
        if inner is File:
            return TypeSpec(Kind.FILE, optional=True)
        raise UnsupportedType(type_name(annotation))

    if annotation is File:
        return TypeSpec(Kind.FILE)

    origin = get_origin(annotation)

    if origin is list:
        args = get_args(annotation)
        if not args:
            raise UnsupportedType("list", "list element type must be declared")
        element = resolve_type(args[0])
        if element.kind in (Kind.LIST, Kind.FILE):
            raise UnsupportedType(
                type_name(annotation),
                f"list element kind '{element.kind}' is not supported",
            )
        return TypeSpec(Kind.LIST, element=element)

    if origin is Annotated:
        base, *metadata = get_args(annotation)
        marker = next((m for m in metadata if isinstance(m, Bits)), None)
        if marker is None:
            return resolve_type(base)
        kind = _scalar_kind(base)
        if kind is Kind.INT and not marker.signed:
            kind = Kind.UINT
        if kind not in _VALID_BITS or marker.size not in _VALID_BITS[kind]:
            raise UnsupportedType(type_name(annotation), f"invalid width {marker.size} for {base!r}")
        return TypeSpec(kind, bits=marker.size)

    kind = _scalar_kind(annotation)
    if kind is None:
        raise UnsupportedType(type_name(annotation))
    return TypeSpec(kind, bits=_PLATFORM_BITS.get(kind, 0))


def zero_value(spec: TypeSpec) -> Any:
    """Return a fresh zero value for *spec*."""
    match spec.kind:
        case Kind.BOOL:
            return False
        case Kind.INT | Kind.UINT:
            return 0
        case Kind.FLOAT:
            return 0.0
        case Kind.COMPLEX:
            return 0j
        case Kind.STRING:
            return ""
        case Kind.LIST:
            return []
        case Kind.FILE:
            return None if spec.optional else File()
