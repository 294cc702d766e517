import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.json import UTF8JSONResponse, error_envelope

log = logging.getLogger(__name__)


class ApiError(Exception):
    """
    Error de dominio que termina como sobre de error
    {statusCode, message, success: false, errors}.
    """

    def __init__(
        self,
        status_code: int,
        message: str = "Something went wrong",
        errors: list | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class StorageError(ApiError):
    def __init__(self, message: str = "Error while uploading file"):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


def bad_request(message: str, errors: list | None = None) -> ApiError:
    return ApiError(status.HTTP_400_BAD_REQUEST, message, errors)


def unauthorized(message: str = "Unauthorized request") -> ApiError:
    return ApiError(status.HTTP_401_UNAUTHORIZED, message)


def forbidden(message: str = "You are not allowed to perform this action") -> ApiError:
    return ApiError(status.HTTP_403_FORBIDDEN, message)


def not_found(message: str) -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, message)


def conflict(message: str) -> ApiError:
    return ApiError(status.HTTP_409_CONFLICT, message)


def _json(status_code: int, message: str, errors: list | None = None, headers=None):
    return UTF8JSONResponse(
        status_code=status_code,
        content=error_envelope(status_code, message, errors),
        headers=headers,
    )


def _clean_validation_errors(exc: RequestValidationError) -> list[dict]:
    out: list[dict] = []
    for err in exc.errors():
        out.append(
            {
                "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
                "message": err.get("msg", "invalid value"),
            }
        )
    return out


async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        log.error("❌ %s %s → %s", request.method, request.url.path, exc.message)
    return _json(exc.status_code, exc.message, exc.errors)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = _clean_validation_errors(exc)
    first = errors[0] if errors else None
    message = "Invalid request"
    if first:
        message = f"{first['field'] or 'request'}: {first['message']}"
    return _json(status.HTTP_400_BAD_REQUEST, message, errors)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _json(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def integrity_error_handler(request: Request, exc: IntegrityError):
    log.warning("⚠️ integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return _json(status.HTTP_409_CONFLICT, "Resource already exists")


async def unhandled_error_handler(request: Request, exc: Exception):
    # el traceback se queda en el log, nunca en el body
    log.error(
        "Unhandled exception: %s: %s",
        exc.__class__.__name__,
        exc,
        exc_info=exc,
    )
    return _json(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
