from __future__ import annotations

import asyncio
import inspect
import json
import logging
from dataclasses import replace
from typing import Any, Awaitable, Coroutine, cast

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import Response

from learnify.api.errors import ApiErrorCode, AuthorizationError
from learnify.api.http_setup import register_exception_handlers, register_http_middleware
from tests.fakes import app_config

LOGGER = logging.getLogger(__name__)


def _app(request_max_bytes: int = 8) -> FastAPI:
    config = app_config()
    config = replace(
        config, security=replace(config.security, request_max_bytes=request_max_bytes)
    )
    app = FastAPI()
    register_http_middleware(app, config=config, logger=LOGGER)
    register_exception_handlers(app, logger=LOGGER)
    return app


def _request(path: str, method: str = "GET", headers: list[tuple[bytes, bytes]] | None = None) -> Request:
    scope: dict[str, Any] = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode("utf-8"),
        "query_string": b"",
        "root_path": "",
        "headers": headers or [],
        "client": ("127.0.0.1", 1234),
        "server": ("testserver", 80),
    }

    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": b"", "more_body": False}

    return Request(scope, receive)


def _dispatch_by_name(app: FastAPI, name: str):
    for middleware in app.user_middleware:
        dispatch = middleware.kwargs.get("dispatch")
        if callable(dispatch) and getattr(dispatch, "__name__", "") == name:
            return dispatch
    raise AssertionError(f"Dispatch {name!r} not found")


def _resolve_response(result: Response | Awaitable[Response]) -> Response:
    if inspect.iscoroutine(result):
        return asyncio.run(cast(Coroutine[Any, Any, Response], result))
    return cast(Response, result)


def _body(response: Response) -> dict[str, Any]:
    return json.loads(bytes(response.body))


async def _ok(_request: Request) -> Response:
    return Response(content="ok", status_code=200)


def test_http_setup_adds_security_headers_and_request_id() -> None:
    app = _app()
    dispatch = _dispatch_by_name(app, "request_logging_middleware")

    request = _request("/ok", headers=[(b"x-request-id", b"req-123")])

    response = asyncio.run(dispatch(request, _ok))
    assert response.headers["X-Request-ID"] == "req-123"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_http_setup_rejects_large_request_before_handler() -> None:
    app = _app()
    dispatch = _dispatch_by_name(app, "request_size_limit_middleware")
    request = _request("/echo", method="POST", headers=[(b"content-length", b"20")])

    response = asyncio.run(dispatch(request, _ok))
    assert response.status_code == 413
    assert _body(response)["error_code"] == ApiErrorCode.REQUEST_TOO_LARGE


def test_http_setup_serializes_api_error_envelope() -> None:
    app = _app()
    handler = app.exception_handlers[StarletteHTTPException]
    response: Response = _resolve_response(
        handler(_request("/api/v1/get-users"), AuthorizationError("Role user is not allowed"))
    )

    assert response.status_code == 403
    assert _body(response) == {
        "success": False,
        "error_code": "FORBIDDEN",
        "message": "Role user is not allowed",
    }


def test_http_setup_reports_unknown_route() -> None:
    app = _app()
    handler = app.exception_handlers[StarletteHTTPException]
    response: Response = _resolve_response(
        handler(_request("/api/v1/nope"), StarletteHTTPException(status_code=404))
    )

    assert response.status_code == 404
    assert _body(response)["error_code"] == ApiErrorCode.ROUTE_NOT_FOUND
    assert _body(response)["message"] == "Route /api/v1/nope not found"


def test_http_setup_handles_unexpected_exceptions() -> None:
    app = _app()
    handler = app.exception_handlers[Exception]
    response: Response = _resolve_response(handler(_request("/boom"), RuntimeError("boom")))

    assert response.status_code == 500
    assert _body(response)["success"] is False
    assert b"INTERNAL_SERVER_ERROR" in response.body


def test_http_setup_handles_validation_exception_as_bad_request() -> None:
    app = _app()
    handler = app.exception_handlers[RequestValidationError]
    response: Response = _resolve_response(
        handler(
            _request("/validation"),
            RequestValidationError(
                [{"loc": ("body", "email"), "msg": "Please enter a valid email", "type": "value_error"}]
            ),
        )
    )

    assert response.status_code == 400
    assert _body(response)["error_code"] == ApiErrorCode.VALIDATION_ERROR
    assert _body(response)["message"] == "email: Please enter a valid email"
