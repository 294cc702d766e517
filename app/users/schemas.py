from pydantic import BaseModel, ConfigDict, EmailStr, Field, AliasChoices, model_validator
from datetime import datetime

USERNAME_PATTERN = r"^[A-Za-z0-9_.\-]+$"


class UserCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    fullname: str = Field(
        ...,
        min_length=1,
        max_length=120,
        validation_alias=AliasChoices("fullname", "fullName", "full_name"),
    )
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class UserLogin(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    # se puede entrar con username o con email
    username: str | None = None
    email: EmailStr | None = None
    password: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def _one_identifier(self):
        if not self.username and not self.email:
            raise ValueError("username or email is required")
        return self


class RefreshTokenIn(BaseModel):
    refresh_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("refresh_token", "refreshToken"),
    )


class ChangePasswordIn(BaseModel):
    old_password: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("old_password", "oldPassword")
    )
    new_password: str = Field(
        ...,
        min_length=6,
        max_length=128,
        validation_alias=AliasChoices("new_password", "newPassword"),
    )


class AccountUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    fullname: str = Field(
        ...,
        min_length=1,
        max_length=120,
        validation_alias=AliasChoices("fullname", "fullName", "full_name"),
    )
    email: EmailStr


class UserOut(BaseModel):
    """Nunca incluye password ni refresh_token."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: EmailStr
    fullname: str
    avatar: str
    cover_image: str | None = None
    created_at: datetime
    updated_at: datetime


class OwnerMini(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    fullname: str
    avatar: str | None = None


class AuthOut(BaseModel):
    user: UserOut
    access_token: str
    refresh_token: str


class TokensOut(BaseModel):
    access_token: str
    refresh_token: str


class ChannelProfileOut(UserOut):
    subscribers_count: int = 0
    channels_subscribed_to_count: int = 0
    is_subscribed: bool = False
