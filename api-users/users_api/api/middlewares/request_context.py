# users_api/api/middlewares/request_context.py
import uuid

import structlog
from flask import Flask, Response, g, request

REQUEST_ID_HEADER = "X-Request-ID"


def register_request_context(app: Flask) -> None:
    """Bind request id, method and path to every log line of a request."""

    @app.before_request
    def bind_request_context() -> None:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        g.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.path,
        )

    @app.after_request
    def echo_request_id(response: Response) -> Response:
        request_id = getattr(g, "request_id", None)
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.teardown_request
    def clear_request_context(_exc: BaseException | None) -> None:
        structlog.contextvars.clear_contextvars()
