"""File responses with conditional GET and byte-range support.

``file_response`` backs both ``ctx.send_file`` and the static file
middleware, so the two behave identically: ``Last-Modified`` /
``If-Modified-Since`` (304), ``Accept-Ranges``, single ``Range: bytes=``
requests (206), and unsatisfiable ranges (416).
"""

import mimetypes
from datetime import datetime
from email.utils import formatdate, parsedate_to_datetime
from pathlib import Path

from trill.errors import HTTPError, NotFound
from trill.http.request import Request
from trill.http.response import Response
from trill.routing.conditions import resolve_mime

DEFAULT_FILE_TYPE = "application/octet-stream"


def parse_byte_range(header: str, size: int) -> list[tuple[int, int]] | None:
    """Parse a ``Range`` header against a resource of *size* bytes.

    Returns inclusive ``(start, end)`` pairs, an empty list when no range
    is satisfiable, or ``None`` when the header is not a byte range at
    all (the caller then ignores it and serves the whole file).
    """
    unit, _, byte_ranges = header.partition("=")
    if unit.strip().lower() != "bytes" or not byte_ranges:
        return None
    ranges: list[tuple[int, int]] = []
    for part in byte_ranges.split(","):
        first, dash, last = part.strip().partition("-")
        if not dash:
            return None
        first, last = first.strip(), last.strip()
        if not first:
            if not last.isdigit():
                return None
            # Suffix range: the final N bytes
            suffix = int(last)
            if suffix == 0:
                continue
            start, end = max(size - suffix, 0), size - 1
        else:
            if not first.isdigit() or (last and not last.isdigit()):
                return None
            start = int(first)
            end = int(last) if last else size - 1
            if end < start:
                return None
            end = min(end, size - 1)
        if start <= end and start < size:
            ranges.append((start, end))
    return ranges


def _timestamp(value: datetime | float | int) -> float:
    if isinstance(value, datetime):
        return value.timestamp()
    return float(value)


def _not_modified_since(request: Request, mtime: float) -> bool:
    header = request.headers.get("if-modified-since")
    if not header:
        return False
    try:
        since = parsedate_to_datetime(header)
    except (TypeError, ValueError):
        return False
    # HTTP dates have one-second resolution
    return int(mtime) <= since.timestamp()


def file_response(
    path: str | Path,
    *,
    request: Request | None = None,
    filename: str | None = None,
    last_modified: datetime | float | None = None,
    content_type: str | None = None,
    disposition: str | None = None,
    length: int | None = None,
    status: int | None = None,
    cache_control: str | None = None,
) -> Response:
    """Build a response carrying the contents of the file at *path*.

    Args:
        path: File to send. A missing file raises ``NotFound``.
        request: The current request, for conditional and range headers.
        filename: Download name; implies ``disposition="attachment"``.
        last_modified: Overrides the file's modification time.
        content_type: Media type or short name (``"json"``, ``"css"``).
            Guessed from the file name when omitted.
        disposition: ``"attachment"`` or ``"inline"``.
        length: Serve only the first *length* bytes.
        status: Response status (defaults to 200). Conditional and range
            handling only applies when this is 200.

    Raises:
        NotFound: If *path* is not a regular file.
        HTTPError: 416 when the ``Range`` header cannot be satisfied.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise NotFound()

    stat = file_path.stat()
    mtime = _timestamp(last_modified) if last_modified is not None else stat.st_mtime
    size = stat.st_size if length is None else min(length, stat.st_size)
    status = status or 200

    if content_type is not None:
        media_type = resolve_mime(content_type)
    else:
        media_type = mimetypes.guess_type(filename or file_path.name)[0] or DEFAULT_FILE_TYPE

    headers: list[tuple[str, str]] = [
        ("Last-Modified", formatdate(mtime, usegmt=True)),
        ("Accept-Ranges", "bytes"),
    ]
    if filename is not None and disposition is None:
        disposition = "attachment"
    if disposition is not None:
        name = filename or file_path.name
        headers.append(("Content-Disposition", f'{disposition}; filename="{name}"'))
    if cache_control is not None:
        headers.append(("Cache-Control", cache_control))

    if request is not None and status == 200 and _not_modified_since(request, mtime):
        return Response(body=b"", status=304, content_type=media_type, headers=tuple(headers))

    start, end = 0, size - 1
    range_header = request.headers.get("range") if request is not None else None
    if range_header and status == 200:
        ranges = parse_byte_range(range_header, size)
        if ranges is not None and not ranges:
            raise HTTPError(
                status=416,
                detail="Range Not Satisfiable",
                headers=(("Content-Range", f"bytes */{size}"),),
            )
        # Multiple ranges fall back to the whole file
        if ranges is not None and len(ranges) == 1:
            start, end = ranges[0]
            status = 206
            headers.append(("Content-Range", f"bytes {start}-{end}/{size}"))

    with file_path.open("rb") as handle:
        handle.seek(start)
        body = handle.read(max(end - start + 1, 0))

    return Response(body=body, status=status, content_type=media_type, headers=tuple(headers))
