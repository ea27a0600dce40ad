"""String to typed value conversion.

Every non-file source (form, header, query, path) produces a raw string.
``convert()`` turns it into a value of the field's ``TypeSpec``, or raises
``ConversionError`` with the target kind and width.

Parsing is deliberately narrower than Python's constructors: ``int()`` and
``float()`` accept surrounding whitespace and ``_`` separators, which are
not valid request values here.
"""

import math
import re
import struct
from typing import Any

from reqbind.errors import ConversionError, UnsupportedType
from reqbind.types import Kind, TypeSpec, zero_value

LIST_SEPARATOR = ","

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_SIGNED = re.compile(r"[+-]?[0-9]+", re.ASCII)
_UNSIGNED = re.compile(r"[0-9]+", re.ASCII)
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?", re.ASCII)
_SPECIAL = re.compile(r"[+-]?(?:inf|infinity)|nan", re.ASCII | re.IGNORECASE)


def convert(raw: str, spec: TypeSpec) -> Any:
    """Convert *raw* to a value of *spec*.

    An empty string yields the zero value. Lists are split on ``,`` and
    each part converted against the element type; a failing element
    carries its index on the raised ``ConversionError``.

    Raises:
        ConversionError: The value is present but malformed or out of range.
        UnsupportedType: *spec* is not a string-convertible kind.
    """
    if raw == "":
        return zero_value(spec)

    match spec.kind:
        case Kind.BOOL:
            return parse_bool(raw)
        case Kind.INT:
            return parse_int(raw, spec.bits)
        case Kind.UINT:
            return parse_uint(raw, spec.bits)
        case Kind.FLOAT:
            return parse_float(raw, spec.bits)
        case Kind.COMPLEX:
            return parse_complex(raw, spec.bits)
        case Kind.STRING:
            return raw
        case Kind.LIST if spec.element is not None:
            return _convert_list(raw, spec.element)

    raise UnsupportedType(spec.name)


def _convert_list(raw: str, element: TypeSpec) -> list[Any]:
    values: list[Any] = []
    for index, part in enumerate(raw.split(LIST_SEPARATOR)):
        try:
            values.append(convert(part, element))
        except ConversionError as e:
            e.index = index
            raise
    return values


def parse_bool(raw: str) -> bool:
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ConversionError("bool", raw)


def parse_int(raw: str, bits: int = 64) -> int:
    if not _SIGNED.fullmatch(raw):
        raise ConversionError("int", raw, bits=bits)
    value = int(raw)
    limit = 1 << (bits - 1)
    if not -limit <= value < limit:
        raise ConversionError("int", raw, bits=bits, reason="value out of range")
    return value


def parse_uint(raw: str, bits: int = 64) -> int:
    if not _UNSIGNED.fullmatch(raw):
        raise ConversionError("uint", raw, bits=bits)
    value = int(raw)
    if value >= 1 << bits:
        raise ConversionError("uint", raw, bits=bits, reason="value out of range")
    return value


def parse_float(raw: str, bits: int = 64, *, kind: str = "float") -> float:
    special = _SPECIAL.fullmatch(raw) is not None
    if not special and not _DECIMAL.fullmatch(raw):
        raise ConversionError(kind, raw, bits=bits)
    value = float(raw)
    if bits == 32:
        try:
            value = struct.unpack("f", struct.pack("f", value))[0]
        except OverflowError:
            value = math.copysign(math.inf, value)
    # Rounding to the target width may overflow to infinity
    if math.isinf(value) and not special:
        raise ConversionError(kind, raw, bits=bits, reason="value out of range")
    return value


def parse_complex(raw: str, bits: int = 128) -> complex:
    """Parse ``a``, ``bi``, ``a+bi`` or ``a-bi``, optionally in parentheses.

    Each component is parsed as a float of half the complex width.
    """
    text = raw
    if len(text) >= 2 and text[0] == "(" and text[-1] == ")":
        text = text[1:-1]
    if not text:
        raise ConversionError("complex", raw, bits=bits)

    if not text.endswith("i"):
        return complex(_component(text, raw, bits), 0.0)

    body = text[:-1]
    split = _imaginary_split(body)
    real_text, imag_text = body[:split], body[split:]
    if imag_text in ("", "+", "-"):
        imag_text += "1"
    real = _component(real_text, raw, bits) if real_text else 0.0
    return complex(real, _component(imag_text, raw, bits))


def _imaginary_split(body: str) -> int:
    """Index where the imaginary part starts (its sign), or 0 if pure imaginary."""
    for i in range(len(body) - 1, 0, -1):
        if body[i] in "+-" and body[i - 1] not in "eE":
            return i
    return 0


def _component(text: str, raw: str, bits: int) -> float:
    try:
        return parse_float(text, bits // 2, kind="complex")
    except ConversionError as e:
        raise ConversionError("complex", raw, bits=bits, reason=e.reason) from None
