import uuid
from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from app.core.config import Settings

# Usa SOLO argon2 para nuevos hashes (evita líos de bcrypt en Windows)
pwd_context = CryptContext(
    schemes=["argon2"],
    default="argon2",
    deprecated="auto",
)

ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)


def _encode(claims: dict, secret: str, algorithm: str, expires_minutes: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    # jti: dos tokens emitidos en el mismo segundo no deben coincidir
    payload = {**claims, "exp": expire, "jti": uuid.uuid4().hex}
    return jwt.encode(payload, secret, algorithm=algorithm)


def create_access_token(
    sub: str,
    settings: Settings,
    *,
    username: str | None = None,
    email: str | None = None,
    fullname: str | None = None,
    expires_minutes: int | None = None,
) -> str:
    claims = {
        "sub": sub,
        "type": ACCESS,
        "username": username,
        "email": email,
        "fullname": fullname,
    }
    return _encode(
        claims,
        settings.ACCESS_TOKEN_SECRET,
        settings.JWT_ALGORITHM,
        expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MIN,
    )


def create_refresh_token(sub: str, settings: Settings, expires_minutes: int | None = None) -> str:
    return _encode(
        {"sub": sub, "type": REFRESH},
        settings.REFRESH_TOKEN_SECRET,
        settings.JWT_ALGORITHM,
        expires_minutes or settings.REFRESH_TOKEN_EXPIRE_MIN,
    )


def _decode(token: str, secret: str, algorithm: str, expected_type: str) -> str:
    payload = jwt.decode(token, secret, algorithms=[algorithm])
    if payload.get("type") != expected_type:
        raise JWTError(f"expected {expected_type} token")
    sub = payload.get("sub")
    if not sub:
        raise JWTError("missing sub")
    return sub


def decode_access_token(token: str, settings: Settings) -> str:
    return _decode(token, settings.ACCESS_TOKEN_SECRET, settings.JWT_ALGORITHM, ACCESS)


def decode_refresh_token(token: str, settings: Settings) -> str:
    return _decode(token, settings.REFRESH_TOKEN_SECRET, settings.JWT_ALGORITHM, REFRESH)
