from typing import Any
import json
from fastapi.encoders import jsonable_encoder
from starlette.responses import JSONResponse


class UTF8JSONResponse(JSONResponse):
    """
    Respuesta JSON garantizada en UTF-8, sin escapes ASCII y con
    jsonable_encoder previo (convierte datetime, modelos pydantic, etc.).
    """
    media_type = "application/json; charset=utf-8"

    def render(self, content: Any) -> bytes:
        payload = jsonable_encoder(content, exclude_none=False)
        return json.dumps(
            payload,
            ensure_ascii=False,   # 👈 no escapar \uXXXX
            allow_nan=False,
            separators=(",", ":"),
        ).encode("utf-8")


def envelope(status_code: int, data: Any = None, message: str = "Success") -> dict:
    """
    Sobre uniforme de éxito: {statusCode, data, message, success}.
    """
    return {
        "statusCode": status_code,
        "data": data,
        "message": message,
        "success": status_code < 400,
    }


def error_envelope(status_code: int, message: str, errors: list | None = None) -> dict:
    return {
        "statusCode": status_code,
        "data": None,
        "message": message,
        "success": False,
        "errors": errors or [],
    }


def api_response(
    status_code: int,
    data: Any = None,
    message: str = "Success",
) -> UTF8JSONResponse:
    return UTF8JSONResponse(
        status_code=status_code,
        content=envelope(status_code, data, message),
    )
