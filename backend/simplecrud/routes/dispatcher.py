"""
simple-crud — Request Dispatcher
=================================

What:  The single catch-all route. Every method on every path lands here.
How:   Reads and parses the body, picks the repository operation from the
       HTTP method, and writes the result as JSON with its status code.
Who:   Registered on the app by create_app(); the repository comes from
       app.state (set at startup).

Routing:
    GET    → PathRepository.get
    POST   → PathRepository.create_or_merge
    PUT    → PathRepository.create_or_overwrite
    DELETE → PathRepository.delete
    other  → {"Unsupported method", 400}

A non-empty body that is not a JSON object yields
{"Error reading JSON body", 400} whatever the method.

The key is the raw request target as sent by the client: the undecoded path
plus "?query" when a query string is present. No normalization is applied;
bytes are read as UTF-8, or latin-1 where they are not valid UTF-8.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.requests import Request
from starlette.routing import request_response
from starlette.types import Receive, Scope, Send

from simplecrud.schemas.document import parse_body
from simplecrud.schemas.envelope import Envelope, make_response
from simplecrud.services.repository import PathRepository, Result

logger = logging.getLogger(__name__)


def request_key(request: Request) -> str:
    """Document key for a request: raw path, plus the query string if any."""
    raw_path: Optional[bytes] = request.scope.get("raw_path")
    if raw_path:
        # some clients/servers include the query in raw_path
        key = _decode(raw_path.split(b"?", 1)[0])
    else:
        key = request.scope["path"]
    query: bytes = request.scope.get("query_string", b"")
    if query:
        key = f"{key}?{_decode(query)}"
    return key


def _decode(raw: bytes) -> str:
    # UTF-8 when valid, byte-for-byte latin-1 otherwise; both are stable per input
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def render(result: Result) -> JSONResponse:
    """Serialize an envelope (with its own status) or a stored document (200)."""
    if isinstance(result, Envelope):
        return JSONResponse(status_code=result.status, content=result.model_dump())
    return JSONResponse(status_code=200, content=result)


async def dispatch(request: Request) -> JSONResponse:
    repository: PathRepository = request.app.state.repository
    key = request_key(request)
    method = request.method

    raw = await request.body()
    body: Any = None
    error: Optional[ValidationError] = None
    try:
        body = parse_body(raw)
    except ValidationError as e:
        error = e

    logger.info(
        "Action %s to %s with: %s, err: %s",
        method,
        key,
        body,
        error.errors()[0]["msg"] if error else None,
    )

    if error is not None:
        result: Result = make_response("Error reading JSON body", 400)
    elif method == "GET":
        result = await repository.get(key)
    elif method == "POST":
        result = await repository.create_or_merge(key, body)
    elif method == "PUT":
        result = await repository.create_or_overwrite(key, body)
    elif method == "DELETE":
        result = await repository.delete(key)
    else:
        result = make_response("Unsupported method", 400)

    return render(result)


class CatchAllEndpoint:
    """
    ASGI endpoint wrapping dispatch().

    Starlette limits a plain-function route registered with methods=None to
    GET; an ASGI callable keeps methods=None, so every verb (including ones
    Starlette does not know) reaches dispatch() instead of getting 405.
    """

    def __init__(self) -> None:
        self.app = request_response(dispatch)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.app(scope, receive, send)


def register(app: FastAPI) -> None:
    """Mount the catch-all route for every path and every method."""
    app.add_route(
        "/{key:path}",
        CatchAllEndpoint(),
        methods=None,
        name="dispatch",
        include_in_schema=False,
    )
