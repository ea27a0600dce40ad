"""Shared request builders for the reqbind test suite."""

from collections.abc import Callable

import pytest

from reqbind.http.request import Request

BOUNDARY = "reqbind-boundary"


def make_scope(**overrides: object) -> dict[str, object]:
    """Build a minimal valid ASGI HTTP scope."""
    base: dict[str, object] = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "path": "/",
        "raw_path": b"/",
        "query_string": b"",
        "root_path": "",
        "headers": [],
        "server": ("localhost", 8000),
        "client": ("127.0.0.1", 54321),
    }
    base.update(overrides)
    return base


def make_receive(*bodies: bytes):
    """Create an ASGI receive callable that yields bodies."""
    messages = []
    for i, body in enumerate(bodies):
        is_last = i == len(bodies) - 1
        messages.append({"type": "http.request", "body": body, "more_body": not is_last})
    if not messages:
        messages.append({"type": "http.request", "body": b"", "more_body": False})
    it = iter(messages)

    async def receive():
        return next(it)

    return receive


def multipart(*parts: tuple[str, str | None, bytes], boundary: str = BOUNDARY) -> bytes:
    """Encode ``(name, filename, content)`` parts as multipart/form-data."""
    out = bytearray()
    for name, filename, content in parts:
        out += f"--{boundary}\r\n".encode()
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        out += f"Content-Disposition: {disposition}\r\n".encode()
        if filename is not None:
            out += b"Content-Type: application/octet-stream\r\n"
        out += b"\r\n" + content + b"\r\n"
    out += f"--{boundary}--\r\n".encode()
    return bytes(out)


def build_request(
    *,
    method: str = "GET",
    query: bytes = b"",
    headers: dict[str, str] | None = None,
    body: bytes | tuple[bytes, ...] = b"",
    path_params: dict[str, str] | None = None,
    content_type: str | None = None,
) -> Request:
    """Build a Request; Content-Length is derived from *body* unless a length or chunked encoding is given."""
    chunks = body if isinstance(body, tuple) else (body,)
    raw_headers = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in (headers or {}).items()]
    if content_type is not None:
        raw_headers.append((b"content-type", content_type.encode("latin-1")))
    total = sum(len(c) for c in chunks)
    if total and not any(name in (b"content-length", b"transfer-encoding") for name, _ in raw_headers):
        raw_headers.append((b"content-length", str(total).encode()))
    scope = make_scope(method=method, query_string=query, headers=raw_headers)
    return Request.from_asgi(scope, make_receive(*chunks), path_params=path_params)


@pytest.fixture
def make_request() -> Callable[..., Request]:
    return build_request
