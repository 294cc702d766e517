import time
import logging
from typing import Callable

from fastapi import Request, Response, status
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.core.json import UTF8JSONResponse, error_envelope

logger = logging.getLogger("app.requests")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Loguea cada petición HTTP con su status y tiempo de respuesta."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        method = request.method
        path = request.url.path

        logger.debug(f"→ {method} {path}")

        response = await call_next(request)

        process_time = time.time() - start_time
        status_code = response.status_code

        log_level = logging.INFO
        if status_code >= 500:
            log_level = logging.ERROR
        elif status_code >= 400:
            log_level = logging.WARNING

        logger.log(
            log_level,
            f"← {method} {path} | Status: {status_code} | Time: {process_time:.3f}s",
        )
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response


class JSONBodyLimitMiddleware:
    """
    Rechaza cuerpos JSON / urlencoded más grandes que `limit` bytes (413).
    Cuenta los bytes que llegan por `receive`, así un cuerpo chunked sin
    Content-Length tampoco se cuela. Los uploads multipart no pasan por aquí.
    """

    def __init__(self, app: ASGIApp, limit: int):
        self.app = app
        self.limit = limit

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        ct = headers.get("content-type", "")
        if not (ct.startswith("application/json") or ct.startswith("application/x-www-form-urlencoded")):
            await self.app(scope, receive, send)
            return

        raw_len = headers.get("content-length")
        if raw_len and raw_len.isdigit() and int(raw_len) > self.limit:
            await self._reject(scope, receive, send)
            return

        # como mucho `limit` bytes en memoria
        chunks: list[bytes] = []
        size = 0
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            chunk = message.get("body", b"")
            size += len(chunk)
            if size > self.limit:
                await self._reject(scope, receive, send)
                return
            chunks.append(chunk)
            more_body = message.get("more_body", False)

        body = b"".join(chunks)
        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send) -> None:
        code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
        response = UTF8JSONResponse(
            status_code=code,
            content=error_envelope(code, f"Request body exceeds {self.limit} bytes"),
        )
        await response(scope, receive, send)
