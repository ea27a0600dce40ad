"""Bind request data into a dataclass instance.

``bind()`` is the single entry point. It checks its arguments, runs the
JSON body pass, then walks the destination's fields in declaration order.
Each field binds from exactly one source, chosen by precedence::

    form > file > header > query > path

A field with an active non-JSON source is reset to its zero value before
the lookup, so an absent or empty value leaves it at zero rather than at
a caller-supplied default. Fields without such a source (untagged,
JSON-only, ``-``-tagged or ``_``-prefixed) are never touched by the loop.

Usage::

    @dataclass
    class ListUsers:
        page: int = tag(query="page", default=1)
        token: str = tag(header="Authorization", default="")
        ids: list[Uint32] = tag(query="ids", default_factory=list)

    params = ListUsers()
    await bind(request, params)

The first failure aborts the bind. Fields processed before it keep their
new values; the raised ``BindError`` names the field, source and key.
"""

import dataclasses
import logging
from typing import Any

from reqbind._internal.types import BindableRequest
from reqbind.body import decode_body
from reqbind.config import BindConfig
from reqbind.convert import convert
from reqbind.errors import BindError, FormParseError, InvalidDestination, InvalidRequest, UnsupportedType
from reqbind.fields import BINARY, FieldDescriptor, Source, describe
from reqbind.files import read_binary, read_part
from reqbind.types import Kind, TypeSpec, resolve_type, zero_value

logger = logging.getLogger("reqbind.binder")


async def bind(request: Any, destination: Any, *, config: BindConfig | None = None) -> None:
    """Populate *destination* in place from *request*.

    Args:
        request: The incoming request (``reqbind.http.Request`` or any
            ``BindableRequest``).
        destination: A mutable dataclass instance.
        config: Binding configuration; defaults to ``BindConfig()``.

    Raises:
        InvalidRequest: *request* is ``None`` or lacks the needed accessors.
        InvalidDestination: *destination* is not a mutable dataclass instance.
        BindError: Any field-level failure (see ``reqbind.errors``).
    """
    config = config or BindConfig()
    _check_request(request)
    descriptors = describe(_check_destination(destination))

    body_taken = await decode_body(request, destination, descriptors, config)

    for descriptor in descriptors:
        if not descriptor.exported:
            continue
        active = descriptor.active()
        if active is None:
            continue
        source, key = active

        try:
            spec = _field_spec(descriptor, source)
            setattr(destination, descriptor.name, zero_value(spec))
            value = await _extract(request, source, key, spec, config, body_taken=body_taken)
        except BindError as e:
            logger.debug("bind failed on %s.%s (%s %r)", type(destination).__name__, descriptor.name, source, key)
            raise e.at(descriptor.name, source, key)

        if value is not None:
            setattr(destination, descriptor.name, value)


def _check_request(request: Any) -> None:
    if request is None:
        msg = "request cannot be None"
        raise InvalidRequest(msg)
    if not isinstance(request, BindableRequest):
        msg = f"{type(request).__name__} does not provide the request accessors bind() needs"
        raise InvalidRequest(msg)


def _check_destination(destination: Any) -> type:
    if destination is None:
        msg = "destination cannot be None"
        raise InvalidDestination(msg)
    if isinstance(destination, type):
        msg = f"destination must be an instance, not the class {destination.__name__}"
        raise InvalidDestination(msg)
    if not dataclasses.is_dataclass(destination):
        msg = f"destination must be a dataclass instance, not {type(destination).__name__}"
        raise InvalidDestination(msg)
    cls = type(destination)
    if cls.__dataclass_params__.frozen:  # type: ignore[attr-defined]
        msg = f"destination {cls.__name__} is frozen; its fields cannot be set"
        raise InvalidDestination(msg)
    return cls


def _field_spec(descriptor: FieldDescriptor, source: Source) -> TypeSpec:
    spec = resolve_type(descriptor.annotation)
    if source is Source.FILE and spec.kind is not Kind.FILE:
        raise UnsupportedType(spec.name, f"{spec.name!r} cannot hold a file upload")
    if source is not Source.FILE and spec.kind is Kind.FILE:
        raise UnsupportedType(spec.name, f"{spec.name!r} can only bind from a file tag")
    return spec


async def _extract(
    request: BindableRequest,
    source: Source,
    key: str,
    spec: TypeSpec,
    config: BindConfig,
    *,
    body_taken: bool,
) -> Any:
    """Read and convert one field's value. ``None`` means leave it at zero."""
    match source:
        case Source.FORM:
            try:
                form = await request.form(max_memory_size=config.max_memory_size)
            except ValueError as e:
                raise FormParseError(str(e)) from e
            raw = form.get(key) or ""
        case Source.FILE if key == BINARY:
            return await read_binary(request, body_taken=body_taken)
        case Source.FILE:
            return await read_part(request, key, config.max_memory_size)
        case Source.HEADER:
            raw = request.headers.get(key) or ""
        case Source.QUERY:
            raw = request.query.get(key) or ""
        case Source.PATH:
            raw = request.path_params.get(key) or ""
        case _:
            msg = f"unknown source {source!r}"
            raise UnsupportedType(spec.name, msg)

    return convert(raw, spec)
