"""Form data parsing — URL-encoded and multipart.

Implements ``MultiValueMapping`` for consistent access across
``Headers``, ``QueryParams``, and ``FormData``.

URL-encoded bodies use stdlib ``urllib.parse``. Multipart bodies are fed
chunk by chunk into ``python-multipart``'s streaming parser; file parts
are written to ``SpooledTemporaryFile`` buffers that stay in memory up to
``max_memory_size`` bytes and roll over to disk beyond it.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, Iterator, Mapping
from dataclasses import dataclass
from tempfile import SpooledTemporaryFile
from typing import IO
from urllib.parse import parse_qs

from python_multipart.multipart import MultipartParser, parse_options_header

from reqbind.config import DEFAULT_MAX_MEMORY_SIZE


@dataclass(frozen=True, slots=True)
class UploadFile:
    """A file part from a multipart form submission.

    The content lives in a spooled temporary file owned by the parsed
    ``FormData``; ``read()`` returns a fresh ``bytes`` copy.
    """

    filename: str
    content_type: str
    size: int
    _file: IO[bytes]

    @property
    def in_memory(self) -> bool:
        """False once the part exceeded the memory threshold and went to disk."""
        return not getattr(self._file, "_rolled", False)

    async def read(self) -> bytes:
        """Return the whole part content.

        Raises ``OSError`` if the underlying storage cannot be read.
        """
        self._file.seek(0)
        return self._file.read()

    def close(self) -> None:
        self._file.close()

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"


class FormData(Mapping[str, str]):
    """Immutable parsed form data.

    Implements ``Mapping[str, str]`` and the ``MultiValueMapping`` protocol.
    Holds both string field values and uploaded files.

    ``__getitem__`` returns the first value for a key (string fields only).
    ``get_list`` returns all values for a key.
    ``files`` maps part names to the first file uploaded under that name.

    Usage::

        form = await request.form()
        username = form["username"]
        avatar = form.files.get("avatar")  # UploadFile or None
    """

    __slots__ = ("_data", "_files")

    def __init__(
        self,
        data: dict[str, list[str]],
        files: dict[str, UploadFile] | None = None,
    ) -> None:
        object.__setattr__(self, "_data", data)
        object.__setattr__(self, "_files", files or {})

    @property
    def files(self) -> Mapping[str, UploadFile]:
        """Uploaded files by part name."""
        return self._files

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"FormData({{{items}}}, files={sorted(self._files)!r})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key* (checkboxes, multi-selects)."""
        return list(self._data.get(key, []))

    def close(self) -> None:
        """Close every spooled file part."""
        for upload in self._files.values():
            upload.close()


async def parse_form_data(
    chunks: AsyncIterable[bytes],
    content_type: str,
    *,
    max_memory_size: int = DEFAULT_MAX_MEMORY_SIZE,
) -> FormData:
    """Parse a form body into FormData.

    Supports:
    - ``application/x-www-form-urlencoded`` (stdlib)
    - ``multipart/form-data`` (``python-multipart``)

    Args:
        chunks: The request body as an async stream of byte chunks.
        content_type: The Content-Type header value.
        max_memory_size: Per-part threshold before a file part is spooled
            to disk.

    Raises:
        ValueError: If the content type is not a form encoding, the
            multipart boundary is missing, or the body is malformed.
    """
    media_type = content_type.lower().split(";")[0].strip()

    if media_type == "application/x-www-form-urlencoded":
        body = b"".join([chunk async for chunk in chunks])
        return FormData(parse_qs(body.decode("utf-8"), keep_blank_values=True))

    if media_type == "multipart/form-data":
        return await _parse_multipart(chunks, content_type, max_memory_size)

    msg = f"Unsupported form content type: {content_type!r}"
    raise ValueError(msg)


async def _parse_multipart(
    chunks: AsyncIterable[bytes],
    content_type: str,
    max_memory_size: int,
) -> FormData:
    _, options = parse_options_header(content_type)
    boundary = options.get(b"boundary")
    if not boundary:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    data: dict[str, list[str]] = {}
    files: dict[str, UploadFile] = {}

    # Per-part state. Header names and values may arrive split across chunks.
    headers: dict[str, str] = {}
    header_field = bytearray()
    header_value = bytearray()
    field_name: str | None = None
    filename: str | None = None
    buffer = bytearray()
    spool: SpooledTemporaryFile[bytes] | None = None
    size = 0

    def on_part_begin() -> None:
        nonlocal field_name, filename, buffer, spool, size
        headers.clear()
        field_name = None
        filename = None
        buffer = bytearray()
        spool = None
        size = 0

    def on_header_field(chunk: bytes, start: int, end: int) -> None:
        header_field.extend(chunk[start:end])

    def on_header_value(chunk: bytes, start: int, end: int) -> None:
        header_value.extend(chunk[start:end])

    def on_header_end() -> None:
        headers[header_field.decode("latin-1").lower()] = header_value.decode("latin-1")
        header_field.clear()
        header_value.clear()

    def on_headers_finished() -> None:
        nonlocal field_name, filename, spool
        _, params = parse_options_header(headers.get("content-disposition", ""))
        name = params.get(b"name")
        if name is not None:
            field_name = name.decode("utf-8", errors="replace")
        fname = params.get(b"filename")
        if fname:
            filename = fname.decode("utf-8", errors="replace")
            spool = SpooledTemporaryFile(max_size=max_memory_size)
            if max_memory_size == 0:
                spool.rollover()

    def on_part_data(chunk: bytes, start: int, end: int) -> None:
        nonlocal size
        size += end - start
        if spool is not None:
            spool.write(chunk[start:end])
        else:
            buffer.extend(chunk[start:end])

    def on_part_end() -> None:
        if field_name is None:
            if spool is not None:
                spool.close()
            return

        if spool is not None and filename is not None:
            if field_name in files:
                spool.close()
                return
            files[field_name] = UploadFile(
                filename=filename,
                content_type=headers.get("content-type", "application/octet-stream"),
                size=size,
                _file=spool,
            )
        else:
            data.setdefault(field_name, []).append(buffer.decode("utf-8", errors="replace"))

    parser = MultipartParser(
        boundary,
        {
            "on_part_begin": on_part_begin,
            "on_header_field": on_header_field,
            "on_header_value": on_header_value,
            "on_header_end": on_header_end,
            "on_headers_finished": on_headers_finished,
            "on_part_data": on_part_data,
            "on_part_end": on_part_end,
        },
    )
    try:
        async for chunk in chunks:
            parser.write(chunk)
        parser.finalize()
    except BaseException:
        if spool is not None:
            spool.close()
        FormData(data, files).close()
        raise

    return FormData(data, files)
