"""One-shot JSON body decoding into a destination dataclass.

Runs before the per-field loop and only when the request declares a body,
its media type is ``application/json`` and at least one field carries a
``json`` tag. The decoded object is applied to the whole destination, so
nested dataclasses, lists and dicts are populated transitively.

Matching follows the usual JSON-to-record rules: a field's ``json`` tag
names its key (falling back to the field name), exact matches win over
case-insensitive ones, unknown keys are ignored and absent keys leave the
field untouched.
"""

import base64
import binascii
import dataclasses
import logging
import math
import struct
from collections.abc import Callable, Iterable, Mapping
from typing import Annotated, Any, get_args, get_origin

from reqbind._internal.types import BindableRequest
from reqbind.config import BindConfig
from reqbind.errors import BodyDecodeError, UnsupportedType
from reqbind.fields import FieldDescriptor, Source, describe
from reqbind.files import media_type
from reqbind.types import Bits, Kind, TypeSpec, resolve_type, strip_optional, type_name, zero_value

logger = logging.getLogger("reqbind.body")

JSON_MEDIA_TYPE = "application/json"


def wants_json(request: BindableRequest, descriptors: Iterable[FieldDescriptor]) -> bool:
    """True if the JSON body pass applies to this request and destination."""
    if not request.content_length:
        return False
    if media_type(request) != JSON_MEDIA_TYPE:
        return False
    return any(d.exported and d.has_json_tag for d in descriptors)


async def decode_body(
    request: BindableRequest,
    destination: Any,
    descriptors: tuple[FieldDescriptor, ...],
    config: BindConfig,
) -> bool:
    """Decode the JSON body into *destination* if applicable.

    Returns True if the body was read.

    Raises:
        BodyDecodeError: The body is not valid JSON or does not fit the
            destination's field types.
    """
    if not wants_json(request, descriptors):
        logger.debug("JSON body pass skipped for %s", type(destination).__name__)
        return False

    logger.debug("decoding JSON body into %s", type(destination).__name__)
    try:
        raw = await request.body()
    except (OSError, RuntimeError) as e:
        msg = f"cannot read request body: {e}"
        raise BodyDecodeError(msg) from e

    try:
        payload = config.json_loads(raw)
    except ValueError as e:
        msg = f"invalid JSON body: {e}"
        raise BodyDecodeError(msg) from e

    if payload is None:
        return True
    if not isinstance(payload, dict):
        msg = f"cannot decode JSON {_json_type(payload)} into {type(destination).__name__}"
        raise BodyDecodeError(msg)

    changes = _decode_fields(payload, descriptors, lambda name: getattr(destination, name), "")
    for name, value in changes.items():
        setattr(destination, name, value)
    return True


def _decode_fields(
    obj: Mapping[str, Any],
    descriptors: Iterable[FieldDescriptor],
    current: Callable[[str], Any],
    path: str,
) -> dict[str, Any]:
    by_key: dict[str, FieldDescriptor] = {}
    for d in descriptors:
        key = d.json_key
        if d.exported and key is not None:
            by_key.setdefault(key, d)
    # First declared field wins a case-insensitive collision
    folded = {key.lower(): d for key, d in reversed(by_key.items())}

    changes: dict[str, Any] = {}
    for key, value in obj.items():
        d = by_key.get(key) or folded.get(key.lower())
        if d is None:
            continue
        field_path = f"{path}.{key}" if path else key
        try:
            changes[d.name] = _decode_value(value, d.annotation, current(d.name), field_path)
        except BodyDecodeError as e:
            if not path:
                e.at(d.name, Source.JSON, field_path)
            raise
    return changes


def _decode_value(value: Any, annotation: Any, current: Any, path: str) -> Any:
    if annotation is Any:
        return value

    inner, optional = strip_optional(annotation)
    if value is None:
        if optional:
            return None
        if get_origin(inner) is list:
            return []
        if get_origin(inner) is dict:
            return {}
        return current
    annotation = inner

    origin = get_origin(annotation)
    if origin is Annotated and not any(isinstance(m, Bits) for m in get_args(annotation)[1:]):
        return _decode_value(value, get_args(annotation)[0], current, path)

    if origin is list:
        if not isinstance(value, list):
            raise _mismatch(value, annotation, path)
        (element,) = get_args(annotation) or (Any,)
        return [_decode_value(v, element, None, f"{path}[{i}]") for i, v in enumerate(value)]

    if origin is dict:
        if not isinstance(value, dict):
            raise _mismatch(value, annotation, path)
        key_type, value_type = get_args(annotation) or (str, Any)
        if key_type is not str:
            msg = f"dict keys must be str, not {type_name(key_type)} at {path!r}"
            raise BodyDecodeError(msg)
        return {k: _decode_value(v, value_type, None, f"{path}.{k}") for k, v in value.items()}

    if annotation is bytes:
        if not isinstance(value, str):
            raise _mismatch(value, annotation, path)
        try:
            return base64.b64decode(value, validate=True)
        except binascii.Error as e:
            msg = f"invalid base64 at {path!r}: {e}"
            raise BodyDecodeError(msg) from e

    if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
        if not isinstance(value, dict):
            raise _mismatch(value, annotation, path)
        return _decode_record(value, annotation, current, path)

    try:
        spec = resolve_type(annotation)
    except UnsupportedType as e:
        msg = f"cannot decode into {type_name(annotation)} at {path!r}"
        raise BodyDecodeError(msg) from e
    return _decode_scalar(value, spec, path)


def _decode_record(value: dict[str, Any], cls: type, current: Any, path: str) -> Any:
    settable = {f.name for f in dataclasses.fields(cls) if f.init}
    descriptors = [d for d in describe(cls) if d.name in settable]
    existing = current if isinstance(current, cls) else None
    changes = _decode_fields(value, descriptors, lambda name: getattr(existing, name, None), path)
    base = existing if existing is not None else _zero_record(cls, path)
    try:
        return dataclasses.replace(base, **changes)
    except (TypeError, ValueError) as e:
        msg = f"cannot build {cls.__name__} at {path!r}: {e}"
        raise BodyDecodeError(msg) from e


def _zero_record(cls: type, path: str) -> Any:
    """Instantiate *cls* with zero values for fields that have no default."""
    kwargs: dict[str, Any] = {}
    for d in describe(cls):
        f = cls.__dataclass_fields__[d.name]
        if not f.init or f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING:
            continue
        kwargs[d.name] = _zero_for(d.annotation, cls, path)
    try:
        return cls(**kwargs)
    except (TypeError, ValueError) as e:
        msg = f"cannot build {cls.__name__} at {path!r}: {e}"
        raise BodyDecodeError(msg) from e


def _zero_for(annotation: Any, owner: type, path: str) -> Any:
    inner, optional = strip_optional(annotation)
    if optional or annotation is Any:
        return None
    origin = get_origin(inner)
    if origin is list:
        return []
    if origin is dict:
        return {}
    if inner is bytes:
        return b""
    if isinstance(inner, type) and dataclasses.is_dataclass(inner):
        return _zero_record(inner, path)
    try:
        return zero_value(resolve_type(inner))
    except UnsupportedType as e:
        msg = f"cannot build {owner.__name__} at {path!r}: no zero value for {type_name(inner)}"
        raise BodyDecodeError(msg) from e


def _decode_scalar(value: Any, spec: TypeSpec, path: str) -> Any:
    number = isinstance(value, int | float) and not isinstance(value, bool)

    match spec.kind:
        case Kind.BOOL if isinstance(value, bool):
            return value
        case Kind.STRING if isinstance(value, str):
            return value
        case Kind.INT | Kind.UINT if number and isinstance(value, int):
            if spec.kind is Kind.UINT:
                low, high = 0, 1 << spec.bits
            else:
                low, high = -(1 << (spec.bits - 1)), 1 << (spec.bits - 1)
            if not low <= value < high:
                msg = f"JSON number {value} overflows {spec.name} at {path!r}"
                raise BodyDecodeError(msg)
            return value
        case Kind.FLOAT if number:
            try:
                result = float(value)
                if spec.bits == 32:
                    result = struct.unpack("f", struct.pack("f", result))[0]
            except OverflowError:
                result = math.inf
            if math.isinf(result):
                msg = f"JSON number {value} overflows {spec.name} at {path!r}"
                raise BodyDecodeError(msg)
            return result

    raise _mismatch(value, spec.name, path)


def _mismatch(value: Any, target: Any, path: str) -> BodyDecodeError:
    name = target if isinstance(target, str) else type_name(target)
    return BodyDecodeError(f"cannot decode JSON {_json_type(value)} into {name} at {path!r}")


def _json_type(value: Any) -> str:
    match value:
        case None:
            return "null"
        case bool():
            return "boolean"
        case int() | float():
            return "number"
        case str():
            return "string"
        case list():
            return "array"
        case dict():
            return "object"
    return type(value).__name__
