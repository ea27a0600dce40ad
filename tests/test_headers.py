"""Tests for reqbind.http.headers — immutable, case-insensitive Headers."""

import pytest

from reqbind._internal.multimap import MultiValueMapping
from reqbind.http.headers import Headers, parse_options


def _h(*pairs: tuple[str, str]) -> Headers:
    """Shorthand: build Headers from string pairs."""
    raw = tuple((k.encode("latin-1"), v.encode("latin-1")) for k, v in pairs)
    return Headers(raw)


class TestHeaders:
    def test_case_insensitive(self) -> None:
        h = _h(("Authorization", "Bearer x"))
        assert h["authorization"] == "Bearer x"
        assert h["AUTHORIZATION"] == "Bearer x"

    def test_missing_key_raises(self) -> None:
        with pytest.raises(KeyError):
            _h(("Accept", "*/*"))["X-Missing"]

    def test_contains(self) -> None:
        h = _h(("Accept", "*/*"))
        assert "Accept" in h
        assert "x-missing" not in h
        assert 42 not in h  # type: ignore[operator]

    def test_first_value_wins(self) -> None:
        h = _h(("X-Tag", "a"), ("X-Tag", "b"))
        assert h["x-tag"] == "a"
        assert h.get_list("X-Tag") == ["a", "b"]

    def test_iter_and_len_deduplicate(self) -> None:
        h = _h(("Accept", "*/*"), ("Content-Type", "text/html"), ("Accept", "text/xml"))
        assert list(h) == ["accept", "content-type"]
        assert len(h) == 2

    def test_get_with_default(self) -> None:
        h = _h(("Accept", "*/*"))
        assert h.get("accept") == "*/*"
        assert h.get("x-missing") is None
        assert h.get("x-missing", "fallback") == "fallback"

    def test_empty_value_is_present(self) -> None:
        h = _h(("X-Empty", ""))
        assert "x-empty" in h
        assert h.get("x-empty") == ""

    def test_satisfies_multivalue_mapping(self) -> None:
        assert isinstance(_h(("A", "1")), MultiValueMapping)


class TestParseOptions:
    def test_media_type_with_params(self) -> None:
        value, params = parse_options("Application/JSON; charset=utf-8")
        assert value == "application/json"
        assert params == {"charset": "utf-8"}

    def test_quoted_filename(self) -> None:
        value, params = parse_options('attachment; filename="report.pdf"')
        assert value == "attachment"
        assert params["filename"] == "report.pdf"

    @pytest.mark.parametrize("raw", [None, ""])
    def test_missing(self, raw: str | None) -> None:
        assert parse_options(raw) == ("", {})
