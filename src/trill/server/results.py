"""Handler result classification.

Whatever a handler returns (or ``halt`` is called with) is sorted into
one tagged result type, then applied to the context's response state.
isinstance-based dispatch, no magic, fully predictable.

Precedence for tuples and sequences follows::

    (status, headers, body)   Triple
    (body, status, headers)   Triple
    (status, body)            Pair
    (body, status)            Pair
    iterator / generator      Streamed
    int                       StatusOnly
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from trill.http.response import Redirect, Response, StreamingResponse
from trill.templating.returns import InlineTemplate, Template

if TYPE_CHECKING:
    from trill.context import Context


@dataclass(frozen=True, slots=True)
class NoChange:
    """``None``: leave the response state alone."""


@dataclass(frozen=True, slots=True)
class Body:
    value: str | bytes


@dataclass(frozen=True, slots=True)
class StatusOnly:
    status: int


@dataclass(frozen=True, slots=True)
class Pair:
    status: int
    body: Any


@dataclass(frozen=True, slots=True)
class Triple:
    status: int
    headers: Mapping[str, str]
    body: Any


@dataclass(frozen=True, slots=True)
class Streamed:
    chunks: Iterator[str | bytes] | AsyncIterator[str | bytes]


@dataclass(frozen=True, slots=True)
class Json:
    data: Any


@dataclass(frozen=True, slots=True)
class Prebuilt:
    response: Response | StreamingResponse


@dataclass(frozen=True, slots=True)
class Redirected:
    redirect: Redirect


@dataclass(frozen=True, slots=True)
class Render:
    template: Template | InlineTemplate


type Result = (
    NoChange | Body | StatusOnly | Pair | Triple | Streamed | Json | Prebuilt | Redirected | Render
)


def _is_status(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def classify(value: Any) -> Result:
    """Sort a handler return value into its result type.

    Raises ``TypeError`` for values with no meaning as a response.
    """
    match value:
        case None:
            return NoChange()
        case bool():
            msg = f"Cannot use {value!r} as a response; return a status code or body instead."
            raise TypeError(msg)
        case Response() | StreamingResponse():
            return Prebuilt(value)
        case Redirect():
            return Redirected(value)
        case Template() | InlineTemplate():
            return Render(value)
        case str() | bytes():
            return Body(value)
        case dict() | list():
            return Json(value)
        case (status, Mapping() as headers, body) if _is_status(status):
            return Triple(status, headers, body)
        case (body, status, Mapping() as headers) if _is_status(status):
            return Triple(status, headers, body)
        case (status, body) if _is_status(status):
            return Pair(status, body)
        case (body, status) if _is_status(status):
            return Pair(status, body)
        case Iterator() | AsyncIterator():
            return Streamed(value)
        case AsyncIterable():
            return Streamed(aiter(value))
        case Iterable():
            return Streamed(iter(value))
        case int():
            return StatusOnly(value)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. Return a str, bytes, "
                "dict, list, int, tuple, iterator, Template, Response, or Redirect."
            )
            raise TypeError(msg)


def apply_result(ctx: Context, value: Any) -> None:
    """Fold *value* into ``ctx``'s status, headers, and body."""
    match classify(value):
        case NoChange():
            pass
        case StatusOnly(status):
            ctx.status = status
        case Pair(status, body):
            ctx.status = status
            _apply_body(ctx, body)
        case Triple(status, headers, body):
            ctx.status = status
            ctx.headers.update(headers)
            _apply_body(ctx, body)
        case other:
            _apply_body_result(ctx, other)


def _apply_body(ctx: Context, body: Any) -> None:
    result = classify(body)
    if isinstance(result, (StatusOnly, Pair, Triple)):
        msg = f"Response body cannot itself be a status or tuple: {body!r}"
        raise TypeError(msg)
    _apply_body_result(ctx, result)


def _apply_body_result(ctx: Context, result: Result) -> None:
    match result:
        case NoChange():
            pass
        case Body(value):
            ctx.body = value
        case Streamed(chunks):
            ctx.body = chunks
        case Json(data):
            ctx.body = json_module.dumps(data, default=str)
            if not ctx.has_content_type:
                ctx.content_type = "application/json"
        case Render(template):
            content_type = template.content_type if isinstance(template, Template) else None
            ctx.body = ctx.render(template, content_type=content_type)
        case Redirected(redirect):
            ctx.status = redirect.status
            ctx.headers["Location"] = redirect.url
            ctx.headers.update(dict(redirect.headers))
            ctx.body = ""
        case Prebuilt(response):
            adopt_response(ctx, response)


def adopt_response(ctx: Context, response: Response | StreamingResponse) -> None:
    """Copy a fully built response into the context's response state."""
    ctx.status = response.status
    ctx.content_type = response.content_type
    for name, value in response.headers:
        ctx.headers.add(name, value)
    ctx.cookies.extend(response.cookies)
    ctx.body = response.chunks if isinstance(response, StreamingResponse) else response.body
