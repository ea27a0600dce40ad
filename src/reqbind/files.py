"""File-source extraction: named multipart parts and whole-body uploads.

Both variants return an owned ``File`` (or ``None`` when the upload is
absent, which is not an error). The binder assigns the result.
"""

import logging
import re
from urllib.parse import unquote

from reqbind._internal.types import BindableRequest
from reqbind.errors import FileReadError, FormParseError
from reqbind.http.headers import parse_options
from reqbind.types import File

logger = logging.getLogger("reqbind.files")

_EXTENDED_PARAM = re.compile(r"(?:^|;)\s*filename\*\s*=\s*([^;]*)", re.IGNORECASE)
# RFC 2231 extended value: charset'language'percent-encoded
_EXTENDED_VALUE = re.compile(r"([\w!#$%&+^`{}~-]+)'[^']*'(.*)", re.ASCII)


async def read_part(request: BindableRequest, name: str, max_memory_size: int) -> File | None:
    """Read the multipart part *name* into a ``File``.

    Returns ``None`` if the request is not ``multipart/form-data`` or
    carries no file part with that name.
    """
    if media_type(request) != "multipart/form-data":
        logger.debug("file part %r skipped: request is not multipart", name)
        return None

    try:
        form = await request.form(max_memory_size=max_memory_size)
    except ValueError as e:
        raise FormParseError(str(e)) from e

    upload = form.files.get(name)
    if upload is None:
        logger.debug("file part %r not present", name)
        return None

    try:
        content = await upload.read()
    except OSError as e:
        msg = f"cannot read file part {name!r}: {e}"
        raise FileReadError(msg) from e

    return File(name=upload.filename, size=upload.size, content=content)


async def read_binary(request: BindableRequest, *, body_taken: bool = False) -> File | None:
    """Read the whole request body into a ``File``.

    The filename comes from the ``Content-Disposition`` header. Returns
    ``None`` for an empty request or a missing filename.

    Raises:
        FileReadError: If *body_taken* (the JSON pass already read the
            body) or the body stream cannot be read.
    """
    length = request.content_length
    if not length:
        logger.debug("binary upload skipped: no request body")
        return None

    filename = disposition_filename(request)
    if not filename:
        logger.debug("binary upload skipped: no filename in Content-Disposition")
        return None

    if body_taken:
        msg = "request body was already consumed by JSON decoding"
        raise FileReadError(msg)

    try:
        content = await request.body()
    except (OSError, RuntimeError) as e:
        msg = f"cannot read request body: {e}"
        raise FileReadError(msg) from e

    size = length if length > 0 else len(content)
    return File(name=filename, size=size, content=content)


def disposition_filename(request: BindableRequest) -> str:
    """The filename of a Content-Disposition header.

    The RFC 2231 ``filename*`` parameter wins over ``filename`` when it
    decodes. ``parse_options`` drops starred parameters, so ``filename*``
    is read from the raw header value.
    """
    header = request.headers.get("content-disposition")
    if not header:
        return ""

    extended = _EXTENDED_PARAM.search(header)
    if extended is not None:
        filename = _decode_extended(extended.group(1).strip().strip('"'))
        if filename:
            return filename

    _, params = parse_options(header)
    filename = params.get("filename", "")
    # Header values arrive latin-1 decoded; clients send UTF-8 names raw
    try:
        return filename.encode("latin-1").decode("utf-8")
    except UnicodeError:
        return filename


def _decode_extended(value: str) -> str:
    match = _EXTENDED_VALUE.fullmatch(value)
    if match is None:
        return ""
    charset, encoded = match.groups()
    try:
        return unquote(encoded, encoding=charset, errors="strict")
    except (LookupError, UnicodeDecodeError):
        return ""


def media_type(request: BindableRequest) -> str:
    """Content-Type of *request* without parameters, lowercased."""
    value, _ = parse_options(request.headers.get("content-type"))
    return value
