"""Immutable HTTP request.

Frozen metadata with async body access. This is the request collaborator
``bind()`` reads from: headers, query string, path parameters bound by the
router, the body stream and lazily parsed form data.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from reqbind._internal.asgi import Receive, Scope
from reqbind.config import DEFAULT_MAX_MEMORY_SIZE
from reqbind.http.headers import Headers
from reqbind.http.query import QueryParams

if TYPE_CHECKING:
    from reqbind.http.forms import FormData


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, etc.) is frozen at creation.
    The body is read at most once from the ASGI ``receive`` callable:
    either whole via ``.body()``, or streamed into the form parser via
    ``.form()``. Both results are cached.

    Multipart parsing may spool large parts to temporary files; call
    ``await request.close()`` once the request is done with.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    path_params: dict[str, str]
    http_version: str
    client: tuple[str, int] | None

    # Private: ASGI receive callable for body streaming
    _receive: Receive

    # Private: mutable cache for body, parsed form data and stream state
    # (dict contents are mutable even though the field reference is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """The declared Content-Length, ``-1`` if the body is chunked, ``None`` if absent.

        A missing or malformed header on a request without
        ``Transfer-Encoding`` means there is no body.
        """
        value = self.headers.get("content-length")
        if value is not None:
            try:
                return int(value)
            except ValueError:
                return None
        if self.headers.get("transfer-encoding") is not None:
            return -1
        return None

    @property
    def body_consumed(self) -> bool:
        """True once the ASGI body stream has been read."""
        return self._cache.get("_consumed", False)

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        Result is cached. The ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks.

        Raises ``RuntimeError`` if the stream was already consumed.
        """
        if self.body_consumed:
            msg = "Request body stream already consumed"
            raise RuntimeError(msg)
        self._cache["_consumed"] = True
        while True:
            message = await self._receive()
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def form(self, *, max_memory_size: int = DEFAULT_MAX_MEMORY_SIZE) -> FormData:
        """Parse the body as form data (URL-encoded or multipart).

        Result is cached. Multipart file parts larger than
        *max_memory_size* bytes are spooled to temporary files.

        A request with no Content-Type and no body parses as an empty form.
        If the body was already read whole, the cached bytes are parsed.

        Raises:
            ValueError: If Content-Type is not a form encoding, or the
                body is malformed.
        """
        if "_form" in self._cache:
            return self._cache["_form"]

        from reqbind.http.forms import FormData, parse_form_data

        if self.content_type is None and not self.content_length:
            result = FormData({})
        else:
            source = _replay(self._cache["_body"]) if "_body" in self._cache else self.stream()
            result = await parse_form_data(
                source,
                self.content_type or "application/x-www-form-urlencoded",
                max_memory_size=max_memory_size,
            )

        self._cache["_form"] = result
        return result

    async def close(self) -> None:
        """Release temporary storage held by parsed multipart files."""
        form = self._cache.get("_form")
        if form is not None:
            form.close()

    # -- Factory --

    @classmethod
    def from_asgi(
        cls,
        scope: Scope,
        receive: Receive,
        path_params: dict[str, str] | None = None,
    ) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            path_params=path_params or {},
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            _receive=receive,
        )


async def _replay(body: bytes) -> AsyncGenerator[bytes]:
    yield body
