"""Tests for reqbind.__init__ — lazy import registry covers all public names."""

import pytest

import reqbind


@pytest.mark.parametrize("name", reqbind.__all__)
def test_all_names_resolve(name: str) -> None:
    """Every name in __all__ must resolve via __getattr__ without error."""
    obj = getattr(reqbind, name)
    assert obj is not None, f"reqbind.{name} resolved to None"


def test_unknown_name_raises() -> None:
    with pytest.raises(AttributeError, match="no attribute 'nope'"):
        reqbind.nope  # noqa: B018


def test_types_match_module() -> None:
    from reqbind import types

    assert reqbind.Int8 is types.Int8
    assert reqbind.File is types.File
