from fastapi import Depends, Request
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.errors import unauthorized
from app.core.security import decode_access_token
from app.db.session import get_session
from app.users.models import User

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def extract_token(request: Request) -> str | None:
    """
    Busca el access token: cookie `accessToken` o `Authorization: Bearer XXX`.
    """
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    authorization = request.headers.get("authorization")
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> User:
    token = extract_token(request)
    if not token:
        raise unauthorized("Unauthorized request")

    try:
        user_id = int(decode_access_token(token, settings))
    except (JWTError, ValueError) as e:
        raise unauthorized(str(e) or "Invalid access token")

    user = await db.get(User, user_id)
    if not user:
        raise unauthorized("Invalid access token")
    return user
