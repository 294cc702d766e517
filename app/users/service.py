from __future__ import annotations

import logging

from fastapi import UploadFile
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.errors import bad_request, conflict, not_found, unauthorized
from app.core.security import decode_refresh_token
from app.media.storage import MediaStorage
from app.users.models import User
from app.users.repository import (
    get_by_username,
    get_by_email,
    get_by_id,
    find_existing,
    create_user,
)
from app.users.schemas import UserCreate, UserLogin

log = logging.getLogger(__name__)


async def register_user(
    db: AsyncSession,
    storage: MediaStorage,
    data: UserCreate,
    avatar: UploadFile | None,
    cover_image: UploadFile | None = None,
) -> User:
    if await find_existing(db, data.username, data.email):
        raise conflict("Username or email already exists")

    if avatar is None or not avatar.filename:
        raise bad_request("Avatar is required")

    avatar_asset = await storage.upload(avatar, "avatar")
    cover_asset = None
    if cover_image is not None and cover_image.filename:
        try:
            cover_asset = await storage.upload(cover_image, "cover")
        except Exception:
            await storage.delete(avatar_asset.public_id)
            raise

    try:
        user = await create_user(
            db,
            username=data.username,
            email=data.email,
            fullname=data.fullname,
            password=data.password,
            avatar=avatar_asset.url,
            cover_image=cover_asset.url if cover_asset else None,
        )
    except Exception:
        # sin usuario no queremos archivos huérfanos
        await storage.delete(avatar_asset.public_id)
        if cover_asset:
            await storage.delete(cover_asset.public_id)
        raise

    # El commit lo hace el router
    log.info(f"👤 usuario registrado: {user.username} (id={user.id})")
    return user


async def issue_tokens(db: AsyncSession, user: User, settings: Settings) -> tuple[str, str]:
    """
    Genera access + refresh y guarda el refresh en el usuario
    (un solo refresh activo por usuario).
    """
    access_token = user.generate_access_token(settings)
    refresh_token = user.generate_refresh_token(settings)
    user.refresh_token = refresh_token
    await db.flush()
    await db.refresh(user)
    return access_token, refresh_token


async def login_user(db: AsyncSession, data: UserLogin, settings: Settings) -> tuple[User, str, str]:
    user = None
    if data.username:
        user = await get_by_username(db, data.username)
        if not user and "@" in data.username:
            user = await get_by_email(db, data.username)
    if not user and data.email:
        user = await get_by_email(db, data.email)
    if not user:
        raise not_found("User does not exist")

    if not user.is_password_correct(data.password):
        raise unauthorized("Invalid user credentials")

    access_token, refresh_token = await issue_tokens(db, user, settings)
    return user, access_token, refresh_token


async def refresh_tokens(
    db: AsyncSession,
    incoming: str | None,
    settings: Settings,
) -> tuple[User, str, str]:
    if not incoming:
        raise unauthorized("Unauthorized request")

    try:
        user_id = int(decode_refresh_token(incoming, settings))
    except (JWTError, ValueError) as e:
        raise unauthorized(str(e) or "Invalid refresh token")

    user = await get_by_id(db, user_id)
    if not user:
        raise unauthorized("Invalid refresh token")

    if user.refresh_token != incoming:
        raise unauthorized("Refresh token is expired or used")

    access_token, refresh_token = await issue_tokens(db, user, settings)
    return user, access_token, refresh_token


async def logout_user(db: AsyncSession, user: User) -> None:
    user.refresh_token = None
    await db.flush()
    await db.refresh(user)


async def change_password(db: AsyncSession, user: User, old_password: str, new_password: str) -> None:
    if not user.is_password_correct(old_password):
        raise bad_request("Invalid old password")
    user.set_password(new_password)
    await db.flush()
    await db.refresh(user)


async def update_account(db: AsyncSession, user: User, fullname: str, email: str) -> User:
    other = await get_by_email(db, email)
    if other and other.id != user.id:
        raise conflict("Email already in use")
    user.fullname = fullname
    user.email = email
    await db.flush()
    await db.refresh(user)
    return user


async def replace_image(
    db: AsyncSession,
    storage: MediaStorage,
    user: User,
    file: UploadFile | None,
    kind: str,
) -> tuple[User, str | None]:
    """
    Sube la imagen nueva ANTES de tocar al usuario y devuelve
    (user, url_anterior) para que el router borre la vieja tras el commit.
    kind: 'avatar' | 'cover'
    """
    label = "Avatar" if kind == "avatar" else "Cover image"
    if file is None or not file.filename:
        raise bad_request(f"{label} file is missing")

    asset = await storage.upload(file, kind)

    if kind == "avatar":
        previous = user.avatar
        user.avatar = asset.url
    else:
        previous = user.cover_image
        user.cover_image = asset.url

    await db.flush()
    await db.refresh(user)
    return user, previous
