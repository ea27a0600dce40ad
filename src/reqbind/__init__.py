"""reqbind — bind HTTP request data into dataclasses.

Declare where each field comes from with source tags, then let
``bind()`` extract and convert the values::

    from dataclasses import dataclass

    from reqbind import File, Int32, bind, tag

    @dataclass
    class Upload:
        owner: Int32 = tag(path="owner", default=0)
        token: str = tag(header="Authorization", default="")
        tags: list[str] = tag(query="tags", default_factory=list)
        document: File | None = tag(file="document", default=None)

    upload = Upload()
    await bind(request, upload)

Sources: ``json``, ``form``, ``file`` (``"binary"`` for the whole body),
``header``, ``query``, ``path``.
"""

__version__ = "0.1.0"
__all__ = [
    "BindConfig",
    "BindError",
    "BodyDecodeError",
    "Complex64",
    "Complex128",
    "ConversionError",
    "File",
    "FileReadError",
    "Float32",
    "Float64",
    "FormParseError",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "InvalidDestination",
    "InvalidRequest",
    "Request",
    "Uint",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
    "Uintptr",
    "UnsupportedType",
    "bind",
    "tag",
]

_TYPES = frozenset(
    {
        "Complex64",
        "Complex128",
        "File",
        "Float32",
        "Float64",
        "Int8",
        "Int16",
        "Int32",
        "Int64",
        "Uint",
        "Uint8",
        "Uint16",
        "Uint32",
        "Uint64",
        "Uintptr",
    }
)

_ERRORS = frozenset(
    {
        "BindError",
        "BodyDecodeError",
        "ConversionError",
        "FileReadError",
        "FormParseError",
        "InvalidDestination",
        "InvalidRequest",
        "UnsupportedType",
    }
)


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import reqbind`` fast while providing a clean top-level API.
    """
    if name == "bind":
        from reqbind.binder import bind

        return bind

    if name == "tag":
        from reqbind.fields import tag

        return tag

    if name == "BindConfig":
        from reqbind.config import BindConfig

        return BindConfig

    if name == "Request":
        from reqbind.http.request import Request

        return Request

    if name in _TYPES:
        from reqbind import types as _types

        return getattr(_types, name)

    if name in _ERRORS:
        from reqbind import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
