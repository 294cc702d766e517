from __future__ import annotations
import os, hashlib, time
from mimetypes import guess_type
from fastapi import APIRouter, Depends, Request
from starlette.responses import FileResponse, Response

from app.core.errors import not_found
from app.media.storage import MediaStorage, get_storage

router = APIRouter(tags=["media"])


def _etag(stat: os.stat_result) -> str:
    base = f"{stat.st_mtime_ns}-{stat.st_size}".encode()
    return hashlib.md5(base).hexdigest()  # suficiente para cache


def _headers(abs_path: str) -> dict:
    stat = os.stat(abs_path)
    ct, _ = guess_type(abs_path)
    return {
        "Accept-Ranges": "bytes",
        "Content-Type": ct or "application/octet-stream",
        # los assets nunca se sobreescriben (nombre = uuid): cache 1 año
        "Cache-Control": "public, max-age=31536000, immutable",
        "ETag": _etag(stat),
        "Last-Modified": time.strftime("%a, %d %b %Y %H:%M:%S GMT", time.gmtime(int(stat.st_mtime))),
        "Cross-Origin-Resource-Policy": "cross-origin",
    }


def _resolve(storage: MediaStorage, path: str) -> str:
    root = os.path.realpath(storage.media_dir)
    abs_path = os.path.realpath(os.path.join(root, path))
    # nada fuera de MEDIA_DIR ni los temporales
    if not abs_path.startswith(root + os.sep) or path.startswith("_tmp/"):
        raise not_found("file not found")
    if not os.path.isfile(abs_path):
        raise not_found("file not found")
    return abs_path


@router.head("/media/{path:path}")
async def head_media(path: str, request: Request, storage: MediaStorage = Depends(get_storage)):
    abs_path = _resolve(storage, path)
    headers = _headers(abs_path)
    inm = request.headers.get("if-none-match")
    if inm and inm == headers["ETag"]:
        return Response(status_code=304, headers=headers)
    headers["Content-Length"] = str(os.path.getsize(abs_path))
    return Response(status_code=200, headers=headers)


@router.get("/media/{path:path}")
async def stream_media(path: str, request: Request, storage: MediaStorage = Depends(get_storage)):
    abs_path = _resolve(storage, path)
    headers = _headers(abs_path)
    inm = request.headers.get("if-none-match")
    if inm and inm == headers["ETag"]:
        return Response(status_code=304, headers=headers)
    # Starlette maneja Range (200/206) y sendfile bajo el capó
    return FileResponse(abs_path, headers=headers)
