from fastapi import APIRouter, Body, Depends, File, Form, Request, Response, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.deps import get_current_user, get_settings, ACCESS_COOKIE, REFRESH_COOKIE
from app.core.errors import not_found
from app.core.json import api_response
from app.db.session import get_session
from app.media.storage import MediaStorage, get_storage
from app.users import service as svc
from app.users.models import User
from app.users.repository import get_by_username, channel_counts, list_watch_history
from app.users.schemas import (
    UserCreate,
    UserLogin,
    UserOut,
    AuthOut,
    TokensOut,
    RefreshTokenIn,
    ChangePasswordIn,
    AccountUpdate,
    ChannelProfileOut,
)
from app.videos.schemas import WatchHistoryEntryOut, video_with_owner

router = APIRouter(prefix="/api/v1/users", tags=["users"])


def _cookie_options(settings: Settings) -> dict:
    return {
        "httponly": True,
        "secure": settings.COOKIE_SECURE,
        "samesite": settings.COOKIE_SAMESITE,
        "path": "/",
    }


def _set_auth_cookies(
    response: Response,
    settings: Settings,
    access_token: str,
    refresh_token: str,
) -> None:
    opts = _cookie_options(settings)
    response.set_cookie(ACCESS_COOKIE, access_token, max_age=settings.ACCESS_TOKEN_EXPIRE_MIN * 60, **opts)
    response.set_cookie(REFRESH_COOKIE, refresh_token, max_age=settings.REFRESH_TOKEN_EXPIRE_MIN * 60, **opts)


def _clear_auth_cookies(response: Response, settings: Settings) -> None:
    opts = _cookie_options(settings)
    response.delete_cookie(ACCESS_COOKIE, **opts)
    response.delete_cookie(REFRESH_COOKIE, **opts)


def _register_form(
    fullname: str = Form(...),
    email: str = Form(...),
    username: str = Form(...),
    password: str = Form(...),
) -> UserCreate:
    """
    Valida los campos del multipart con UserCreate en la frontera;
    los errores salen como 400 igual que los de JSON.
    """
    try:
        return UserCreate(fullname=fullname, email=email, username=username, password=password)
    except ValidationError as e:
        raise RequestValidationError(e.errors())


@router.post("/register")
async def register(
    data: UserCreate = Depends(_register_form),
    avatar: UploadFile | None = File(None),
    cover_image: UploadFile | None = File(None, alias="coverImage"),
    db: AsyncSession = Depends(get_session),
    storage: MediaStorage = Depends(get_storage),
):
    user = await svc.register_user(db, storage, data, avatar, cover_image)
    await db.commit()
    return api_response(
        status.HTTP_201_CREATED,
        UserOut.model_validate(user),
        "User registered successfully",
    )


@router.post("/login")
async def login(
    payload: UserLogin,
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """
    JSON con username (o email) y password.
    Devuelve los tokens en el body y además como cookies httpOnly.
    """
    user, access_token, refresh_token = await svc.login_user(db, payload, settings)
    await db.commit()

    response = api_response(
        status.HTTP_200_OK,
        AuthOut(
            user=UserOut.model_validate(user),
            access_token=access_token,
            refresh_token=refresh_token,
        ),
        "User logged in successfully",
    )
    _set_auth_cookies(response, settings, access_token, refresh_token)
    return response


@router.post("/logout")
async def logout(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    await svc.logout_user(db, user)
    await db.commit()
    response = api_response(status.HTTP_200_OK, {}, "User logged out successfully")
    _clear_auth_cookies(response, settings)
    return response


@router.post("/refresh-token")
async def refresh_token(
    request: Request,
    payload: RefreshTokenIn | None = Body(None),
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    incoming = request.cookies.get(REFRESH_COOKIE) or (payload.refresh_token if payload else None)
    _, access_token, new_refresh = await svc.refresh_tokens(db, incoming, settings)
    await db.commit()

    response = api_response(
        status.HTTP_200_OK,
        TokensOut(access_token=access_token, refresh_token=new_refresh),
        "Access token refreshed",
    )
    _set_auth_cookies(response, settings, access_token, new_refresh)
    return response


@router.post("/change-password")
async def change_password(
    payload: ChangePasswordIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    await svc.change_password(db, user, payload.old_password, payload.new_password)
    await db.commit()
    return api_response(status.HTTP_200_OK, {}, "Password changed successfully")


@router.get("/current-user")
async def current_user(user: User = Depends(get_current_user)):
    return api_response(status.HTTP_200_OK, UserOut.model_validate(user), "User fetched successfully")


@router.patch("/update-account")
async def update_account(
    payload: AccountUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    user = await svc.update_account(db, user, payload.fullname, payload.email)
    await db.commit()
    return api_response(status.HTTP_200_OK, UserOut.model_validate(user), "Account details updated successfully")


async def _replace_image(db, storage, user, file, kind: str):
    user, previous = await svc.replace_image(db, storage, user, file, kind)
    await db.commit()
    # la vieja solo se borra cuando la nueva ya quedó guardada
    if previous:
        await storage.delete_by_url(previous)
    return user


@router.patch("/update-avatar")
async def update_avatar(
    avatar: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    storage: MediaStorage = Depends(get_storage),
):
    user = await _replace_image(db, storage, user, avatar, "avatar")
    return api_response(status.HTTP_200_OK, UserOut.model_validate(user), "Avatar updated successfully")


@router.patch("/update-coverimage")
async def update_cover_image(
    cover_image: UploadFile | None = File(None, alias="coverImage"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    storage: MediaStorage = Depends(get_storage),
):
    user = await _replace_image(db, storage, user, cover_image, "cover")
    return api_response(status.HTTP_200_OK, UserOut.model_validate(user), "Cover image updated successfully")


@router.get("/c/{username}")
async def channel_profile(
    username: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    channel = await get_by_username(db, username)
    if not channel:
        raise not_found("Channel does not exist")

    counts = await channel_counts(db, channel.id, viewer_id=user.id)
    profile = ChannelProfileOut(**UserOut.model_validate(channel).model_dump(), **counts)
    return api_response(status.HTTP_200_OK, profile, "User channel fetched successfully")


@router.get("/history")
async def watch_history(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    rows = await list_watch_history(db, user.id)
    items = [
        WatchHistoryEntryOut(
            video=video_with_owner(video, owner),
            duration=entry.duration,
            position=entry.position,
            watched_at=entry.watched_at,
        )
        for entry, video, owner in rows
    ]
    return api_response(status.HTTP_200_OK, items, "Watch history fetched successfully")