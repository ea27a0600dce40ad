"""Tests for reqbind.convert — string to typed value conversion."""

import math

import pytest

from reqbind.convert import convert, parse_bool, parse_complex, parse_float, parse_int, parse_uint
from reqbind.errors import ConversionError, UnsupportedType
from reqbind.types import (
    Complex64,
    File,
    Float32,
    Int8,
    Int16,
    Int32,
    Kind,
    TypeSpec,
    Uint8,
    Uint32,
    resolve_type,
)


def _convert(raw: str, annotation: object) -> object:
    return convert(raw, resolve_type(annotation))


class TestEmptyInput:
    @pytest.mark.parametrize("annotation", [bool, int, Uint8, float, complex, str, list[int]])
    def test_empty_yields_zero(self, annotation: object) -> None:
        spec = resolve_type(annotation)
        assert _convert("", annotation) == convert("", spec)
        assert not _convert("", annotation)

    def test_empty_list_is_not_one_empty_element(self) -> None:
        assert _convert("", list[str]) == []


class TestBool:
    @pytest.mark.parametrize("raw", ["1", "t", "T", "TRUE", "true", "True"])
    def test_true(self, raw: str) -> None:
        assert parse_bool(raw) is True

    @pytest.mark.parametrize("raw", ["0", "f", "F", "FALSE", "false", "False"])
    def test_false(self, raw: str) -> None:
        assert parse_bool(raw) is False

    @pytest.mark.parametrize("raw", ["yes", "on", "tRuE", " true", "2"])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(ConversionError) as exc_info:
            parse_bool(raw)
        assert exc_info.value.kind == "bool"


class TestInt:
    @pytest.mark.parametrize(
        ("annotation", "low", "high"),
        [
            (Int8, -128, 127),
            (Int16, -32768, 32767),
            (Int32, -(2**31), 2**31 - 1),
            (int, -(2**63), 2**63 - 1),
        ],
    )
    def test_bounds_round_trip(self, annotation: object, low: int, high: int) -> None:
        assert _convert(str(low), annotation) == low
        assert _convert(str(high), annotation) == high

    @pytest.mark.parametrize(("annotation", "raw"), [(Int8, "128"), (Int8, "-129"), (int, str(2**63))])
    def test_out_of_range(self, annotation: object, raw: str) -> None:
        with pytest.raises(ConversionError) as exc_info:
            _convert(raw, annotation)
        err = exc_info.value
        assert err.kind == "int"
        assert err.reason == "value out of range"
        assert err.value == raw

    def test_plus_sign_allowed(self) -> None:
        assert parse_int("+42") == 42

    def test_leading_zeros(self) -> None:
        assert parse_int("007") == 7

    @pytest.mark.parametrize("raw", ["abc", "1.5", " 1", "1_000", "0x10", "", "-", "١٢"])
    def test_invalid_syntax(self, raw: str) -> None:
        with pytest.raises(ConversionError) as exc_info:
            parse_int(raw, 32)
        assert exc_info.value.reason == "invalid syntax"
        assert exc_info.value.bits == 32


class TestUint:
    def test_bounds(self) -> None:
        assert _convert("255", Uint8) == 255
        assert _convert("4294967295", Uint32) == 4294967295

    def test_out_of_range(self) -> None:
        with pytest.raises(ConversionError) as exc_info:
            _convert("256", Uint8)
        assert exc_info.value.kind == "uint"
        assert exc_info.value.bits == 8

    @pytest.mark.parametrize("raw", ["-1", "+1"])
    def test_sign_rejected(self, raw: str) -> None:
        with pytest.raises(ConversionError):
            parse_uint(raw)


class TestFloat:
    def test_decimal_forms(self) -> None:
        assert parse_float("1.5") == 1.5
        assert parse_float(".5") == 0.5
        assert parse_float("5.") == 5.0
        assert parse_float("-2e3") == -2000.0

    def test_special_values(self) -> None:
        assert parse_float("inf") == math.inf
        assert parse_float("-Infinity") == -math.inf
        assert math.isnan(parse_float("NaN"))
        assert parse_float("+inf") == math.inf

    @pytest.mark.parametrize("raw", ["+nan", "-NaN"])
    def test_signed_nan_rejected(self, raw: str) -> None:
        with pytest.raises(ConversionError, match="invalid syntax"):
            parse_float(raw)

    def test_float32_overflow_negative(self) -> None:
        with pytest.raises(ConversionError, match="out of range"):
            _convert("-3.5e38", Float32)

    def test_float32_infinity_literal(self) -> None:
        assert _convert("-inf", Float32) == -math.inf

    def test_float32_rounds_to_single_precision(self) -> None:
        value = _convert("0.1", Float32)
        assert value != 0.1
        assert value == pytest.approx(0.1, rel=1e-7)

    def test_float32_overflow(self) -> None:
        with pytest.raises(ConversionError) as exc_info:
            _convert("1e39", Float32)
        assert exc_info.value.reason == "value out of range"

    def test_float64_overflow(self) -> None:
        with pytest.raises(ConversionError, match="out of range"):
            parse_float("1e400")

    @pytest.mark.parametrize("raw", ["abc", "1_0", " 1", "1e", "0x1p4"])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(ConversionError) as exc_info:
            parse_float(raw)
        assert exc_info.value.kind == "float"


class TestComplex:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1", 1 + 0j),
            ("2i", 2j),
            ("-2i", -2j),
            ("1+2i", 1 + 2j),
            ("1-2i", 1 - 2j),
            ("(3+4i)", 3 + 4j),
            ("1e2+1e-1i", 100 + 0.1j),
            ("1+i", 1 + 1j),
        ],
    )
    def test_forms(self, raw: str, expected: complex) -> None:
        assert parse_complex(raw) == expected

    def test_complex64_component_overflow(self) -> None:
        with pytest.raises(ConversionError) as exc_info:
            _convert("1e39+1i", Complex64)
        assert exc_info.value.kind == "complex"
        assert exc_info.value.bits == 64

    @pytest.mark.parametrize("raw", ["1+2j", "abc", "()", "1+2i3"])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(ConversionError) as exc_info:
            parse_complex(raw)
        assert exc_info.value.kind == "complex"


class TestString:
    def test_verbatim(self) -> None:
        assert _convert("  spaced  ", str) == "  spaced  "


class TestList:
    def test_ints(self) -> None:
        assert _convert("1,2,3", list[int]) == [1, 2, 3]

    def test_strings_keep_order(self) -> None:
        assert _convert("b,a,c", list[str]) == ["b", "a", "c"]

    def test_empty_parts_become_zero(self) -> None:
        assert _convert("1,,3", list[int]) == [1, 0, 3]
        assert _convert(",", list[str]) == ["", ""]

    def test_element_failure_carries_index(self) -> None:
        with pytest.raises(ConversionError) as exc_info:
            _convert("1,2,x", list[Int8])
        assert exc_info.value.index == 2
        assert "list index 2" in str(exc_info.value)

    def test_element_range_checked(self) -> None:
        with pytest.raises(ConversionError) as exc_info:
            _convert("1,300", list[Uint8])
        assert exc_info.value.index == 1
        assert exc_info.value.reason == "value out of range"

    def test_bools(self) -> None:
        assert _convert("true,0,T", list[bool]) == [True, False, True]


class TestUnsupported:
    def test_file_spec_not_string_convertible(self) -> None:
        with pytest.raises(UnsupportedType):
            convert("x", resolve_type(File))

    def test_list_without_element(self) -> None:
        with pytest.raises(UnsupportedType):
            convert("x", TypeSpec(Kind.LIST))
