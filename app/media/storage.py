import os
import glob
import json
import uuid
import shutil
import logging
import subprocess
from dataclasses import dataclass
from urllib.parse import urlparse

from fastapi import Request, UploadFile
from starlette.concurrency import run_in_threadpool

from app.core.errors import StorageError, bad_request

log = logging.getLogger("uvicorn")

VIDEO_EXTS = {".mp4", ".m4v", ".mov", ".3gp", ".3gpp", ".webm", ".mkv"}
IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}

# tipo de asset → subcarpeta dentro de MEDIA_DIR
KINDS = {
    "avatar": "avatars",
    "cover": "covers",
    "video": "videos",
    "thumbnail": "thumbnails",
}


@dataclass
class StoredAsset:
    url: str
    public_id: str
    duration: float | None = None


def _ffprobe_path() -> str:
    path = shutil.which("ffprobe")
    if not path:
        raise RuntimeError("FFprobe no está instalado o no está en PATH.")
    return path


def _is_video(upload: UploadFile, ext: str) -> bool:
    ct = (upload.content_type or "").lower()
    return ct.startswith("video/") or ext.lower() in VIDEO_EXTS


def _is_image(upload: UploadFile, ext: str) -> bool:
    ct = (upload.content_type or "").lower()
    return ct.startswith("image/") or ext.lower() in IMAGE_EXTS


class MediaStorage:
    """
    Storage de objetos sobre disco local: guarda bajo MEDIA_DIR y
    devuelve URLs públicas servidas por /media/... (ver streaming.py).
    El public_id es '<subcarpeta>/<nombre sin extensión>'.
    """

    def __init__(self, media_dir: str, base_url: str = ""):
        self.media_dir = media_dir
        self.base_url = base_url.rstrip("/")
        self.tmp_dir = os.path.join(media_dir, "_tmp")

    # ---------------- helpers ----------------

    def _write_tmp(self, upload: UploadFile) -> str:
        """
        Vuelca el UploadFile a un archivo temporal y devuelve su ruta.
        """
        os.makedirs(self.tmp_dir, exist_ok=True)
        tmp_path = os.path.join(self.tmp_dir, f"{uuid.uuid4().hex}.bin")
        with open(tmp_path, "wb") as out:
            shutil.copyfileobj(upload.file, out)
        return tmp_path

    def url_for(self, rel: str) -> str:
        return f"{self.base_url}/media/{rel}"

    def probe_duration(self, path: str) -> float:
        """Duración en segundos usando ffprobe."""
        cmd = [
            _ffprobe_path(),
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "json",
            path,
        ]
        proc = subprocess.run(cmd, capture_output=True, text=True)
        if proc.returncode != 0:
            raise RuntimeError(
                f"FFprobe falló: {proc.stderr.strip() or proc.stdout.strip()}"
            )
        data = json.loads(proc.stdout or "{}")
        return round(float(data["format"]["duration"]), 2)

    # ---------------- API ----------------

    def upload_from_path(self, local_path: str, kind: str, ext: str) -> StoredAsset:
        """
        Mueve un archivo local al storage. El archivo temporal se borra
        siempre, salga bien o mal.
        """
        subdir = KINDS[kind]
        name = uuid.uuid4().hex
        rel = f"{subdir}/{name}{ext}"
        dst = os.path.join(self.media_dir, rel)
        try:
            os.makedirs(os.path.dirname(dst), exist_ok=True)
            duration = self.probe_duration(local_path) if kind == "video" else None
            shutil.copyfile(local_path, dst)
        except Exception as e:
            log.error(f"❌ upload {kind} falló: {e!r}")
            raise StorageError(f"Error while uploading {kind}") from e
        finally:
            try:
                os.remove(local_path)
            except FileNotFoundError:
                pass
        return StoredAsset(url=self.url_for(rel), public_id=f"{subdir}/{name}", duration=duration)

    def save_upload(self, file: UploadFile, kind: str) -> StoredAsset:
        filename = file.filename or "upload.bin"
        ext = os.path.splitext(filename)[1].lower()

        if kind == "video":
            if not _is_video(file, ext):
                raise bad_request("Uploaded file is not a video")
            if ext not in VIDEO_EXTS:
                ext = ".mp4"
        else:
            if not _is_image(file, ext):
                raise bad_request(f"Uploaded {kind} is not an image")
            if ext not in IMAGE_EXTS:
                ext = ".jpg"

        tmp_src = self._write_tmp(file)
        return self.upload_from_path(tmp_src, kind, ext)

    async def upload(self, file: UploadFile, kind: str) -> StoredAsset:
        return await run_in_threadpool(self.save_upload, file, kind)

    def public_id_from_url(self, url: str | None) -> str | None:
        """
        'http://host/media/avatars/abc.jpg' → 'avatars/abc'
        """
        if not url:
            return None
        path = urlparse(url).path
        marker = "/media/"
        if marker not in path:
            return None
        rel = path.split(marker, 1)[1]
        public_id = os.path.splitext(rel)[0]
        if not public_id or ".." in public_id.split("/"):
            return None
        return public_id

    def delete_sync(self, public_id: str | None) -> bool:
        """
        Elimina el archivo del storage (si existe). No lanza error si ya no está.
        """
        if not public_id:
            return False
        removed = False
        for path in glob.glob(os.path.join(self.media_dir, f"{glob.escape(public_id)}.*")):
            try:
                os.remove(path)
                removed = True
            except FileNotFoundError:
                pass
        return removed

    async def delete(self, public_id: str | None) -> bool:
        return await run_in_threadpool(self.delete_sync, public_id)

    async def delete_by_url(self, url: str | None) -> bool:
        return await self.delete(self.public_id_from_url(url))


def get_storage(request: Request) -> MediaStorage:
    return request.app.state.storage
