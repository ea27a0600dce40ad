"""Field descriptors and source tags.

Source tags live in a dataclass field's ``metadata`` under the source
name. ``tag()`` is a thin wrapper around ``dataclasses.field``::

    @dataclass
    class ListUsers:
        page: int = tag(query="page", default=1)
        token: str = tag(header="Authorization", default="")
        name: str = tag(json="name", default="")
        avatar: File | None = tag(file="avatar", default=None)

Plain ``field(metadata={"query": "page"})`` works the same way.
"""

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, get_type_hints

SKIP = "-"
BINARY = "binary"


class Source(StrEnum):
    JSON = "json"
    FORM = "form"
    FILE = "file"
    HEADER = "header"
    QUERY = "query"
    PATH = "path"


# Resolution order for the per-field loop. JSON is decoded separately.
PRECEDENCE: tuple[Source, ...] = (
    Source.FORM,
    Source.FILE,
    Source.HEADER,
    Source.QUERY,
    Source.PATH,
)

_SOURCE_NAMES = frozenset(str(source) for source in Source)


def tag(
    *,
    default: Any = dataclasses.MISSING,
    default_factory: Any = dataclasses.MISSING,
    json: str | None = None,
    form: str | None = None,
    file: str | None = None,
    header: str | None = None,
    query: str | None = None,
    path: str | None = None,
) -> Any:
    """Declare a dataclass field with request source tags.

    Args:
        default: Field default, as for ``dataclasses.field``.
        default_factory: Field default factory, as for ``dataclasses.field``.
        json: JSON body key (``"name,omitempty"`` options are ignored).
        form: Form field name.
        file: Multipart part name, or ``"binary"`` for the whole body.
        header: Header name (case-insensitive).
        query: Query string key.
        path: Path parameter name.

    A value of ``"-"`` disables that source for the field.
    """
    sources = {
        Source.JSON: json,
        Source.FORM: form,
        Source.FILE: file,
        Source.HEADER: header,
        Source.QUERY: query,
        Source.PATH: path,
    }
    metadata = {str(source): value for source, value in sources.items() if value is not None}
    return dataclasses.field(default=default, default_factory=default_factory, metadata=metadata)


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """One declared field of a destination dataclass."""

    name: str
    annotation: Any
    tags: Mapping[Source, str]

    @property
    def exported(self) -> bool:
        return not self.name.startswith("_")

    @property
    def json_key(self) -> str | None:
        """JSON object key for this field, or ``None`` if JSON is disabled."""
        value = self.tags.get(Source.JSON)
        if value is None:
            return self.name
        key = value.split(",", 1)[0]
        if key == SKIP:
            return None
        return key or self.name

    @property
    def has_json_tag(self) -> bool:
        value = self.tags.get(Source.JSON)
        return value is not None and value != SKIP

    def active(self) -> tuple[Source, str] | None:
        """The single source this field binds from, by precedence."""
        for source in PRECEDENCE:
            value = self.tags.get(source)
            if value and value != SKIP:
                return source, value
        return None


def describe(cls: type) -> tuple[FieldDescriptor, ...]:
    """Derive field descriptors for a dataclass type, in declaration order.

    Annotations are resolved with ``get_type_hints`` so string annotations
    (``from __future__ import annotations``) work. Not cached: descriptors
    are rebuilt on every call.
    """
    hints = get_type_hints(cls, include_extras=True)
    descriptors = []
    for f in dataclasses.fields(cls):
        tags = {
            Source(key): value
            for key, value in f.metadata.items()
            if key in _SOURCE_NAMES and isinstance(value, str)
        }
        descriptors.append(FieldDescriptor(f.name, hints.get(f.name, f.type), tags))
    return tuple(descriptors)
