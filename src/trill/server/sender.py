"""ASGI response sending — translates trill Response types to ASGI messages.

Handles both standard single-body responses and chunked streaming
responses. For HEAD requests the headers go out unchanged and the body
is dropped.
"""

import logging
from collections.abc import AsyncIterator

from trill._internal.asgi import Send
from trill.http.response import Response, StreamingResponse

logger = logging.getLogger("trill.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def _raw_headers(response: Response | StreamingResponse) -> list[tuple[bytes, bytes]]:
    raw_headers: list[tuple[bytes, bytes]] = [
        (b"content-type", response.content_type.encode("latin-1")),
    ]
    for name, value in response.headers:
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    raw_headers.extend(
        (b"set-cookie", cookie.to_header_value().encode("latin-1")) for cookie in response.cookies
    )
    return raw_headers


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Translate a trill Response into ASGI send() calls."""
    raw_headers = _raw_headers(response)

    body = response.body_bytes if _body_allowed(response.status) else b""

    # File responses and middleware may have set it already
    if not any(name == b"content-length" for name, _ in raw_headers):
        raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": b"" if head else body,
        }
    )


def _encode_chunk(chunk: str | bytes) -> bytes:
    return chunk.encode("utf-8") if isinstance(chunk, str) else chunk


async def send_streaming_response(
    response: StreamingResponse,
    send: Send,
    *,
    head: bool = False,
) -> None:
    """Send a streaming response via chunked transfer encoding.

    Sends headers immediately, then each chunk as an ASGI body
    message with ``more_body=True``. Closes with an empty body.
    A failure mid-stream is logged and the stream is closed; the
    status line has already gone out, so nothing else can be sent.
    """
    raw_headers = _raw_headers(response)
    raw_headers.append((b"transfer-encoding", b"chunked"))

    # No content-length; chunked transfer encoding signals body boundaries
    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )

    if not head and _body_allowed(response.status):
        try:
            if isinstance(response.chunks, AsyncIterator):
                async for chunk in response.chunks:
                    if chunk:
                        await send(
                            {
                                "type": "http.response.body",
                                "body": _encode_chunk(chunk),
                                "more_body": True,
                            }
                        )
            else:
                for chunk in response.chunks:
                    if chunk:
                        await send(
                            {
                                "type": "http.response.body",
                                "body": _encode_chunk(chunk),
                                "more_body": True,
                            }
                        )
        except Exception:
            logger.exception("Error while streaming response body")

    # Close the stream
    await send(
        {
            "type": "http.response.body",
            "body": b"",
            "more_body": False,
        }
    )
