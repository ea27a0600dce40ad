"""Structural type of the request the binder reads from."""

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from reqbind._internal.multimap import MultiValueMapping


@runtime_checkable
class BindableRequest(Protocol):
    """What ``bind()`` needs from a request.

    ``reqbind.http.Request`` satisfies it; so can an adapter around
    another framework's request object.
    """

    @property
    def headers(self) -> MultiValueMapping: ...

    @property
    def query(self) -> MultiValueMapping: ...

    @property
    def path_params(self) -> Mapping[str, str]: ...

    @property
    def content_length(self) -> int | None: ...

    @property
    def body_consumed(self) -> bool: ...

    async def body(self) -> bytes: ...

    async def form(self, *, max_memory_size: int = ...) -> Any: ...
