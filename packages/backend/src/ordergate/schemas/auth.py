"""Pydantic schemas for registration, login and principals.

Learn: Request bodies are validated once here, at the boundary: required
vs optional fields, lengths, dates, and username normalization
(trimmed + lowercased). Services receive plain, already-clean values.

Read models never declare a password field, so a serialized principal
cannot leak the stored credential, hashed or not.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from ordergate.services.credential_service import normalize_username


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class _UsernameMixin(BaseModel):
    @field_validator("username", mode="before", check_fields=False)
    @classmethod
    def lowercase_username(cls, value):
        if isinstance(value, str):
            return normalize_username(value)
        return value


# ─── Staff users ─────────────────────────────────────────


class UserRegister(_UsernameMixin):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=255)
    firstname: Optional[str] = Field(None, max_length=100)
    fullname: Optional[str] = Field(None, max_length=255)
    lastname: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = None
    sex: Optional[str] = Field(None, max_length=20)
    birthday: Optional[date] = None

    @field_validator(
        "firstname", "fullname", "lastname", "address", "sex", "birthday", mode="before"
    )
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)


class UserUpdate(_UsernameMixin):
    """Partial update — only fields present in the body are written."""

    username: Optional[str] = Field(None, min_length=1, max_length=100)
    password: Optional[str] = Field(None, min_length=1, max_length=255)
    firstname: Optional[str] = Field(None, max_length=100)
    fullname: Optional[str] = Field(None, max_length=255)
    lastname: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = None
    sex: Optional[str] = Field(None, max_length=20)
    birthday: Optional[date] = None
    status: Optional[str] = Field(None, max_length=20)

    # Omitted is fine; an explicit null would clear a NOT NULL column.
    @field_validator("username", "password", "status", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Must not be null")
        return value


class UserRead(BaseModel):
    id: int
    firstname: Optional[str] = None
    fullname: Optional[str] = None
    lastname: Optional[str] = None
    username: str
    address: Optional[str] = None
    sex: Optional[str] = None
    birthday: Optional[date] = None
    status: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ─── Customers ───────────────────────────────────────────


class CustomerRegister(_UsernameMixin):
    # Older shop frontends post the login name as "email".
    username: str = Field(
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("username", "email"),
    )
    password: str = Field(min_length=1, max_length=255)
    fullname: Optional[str] = Field(None, max_length=255)

    @field_validator("fullname", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)


class CustomerRead(BaseModel):
    id: int
    username: str
    fullname: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ─── Login ───────────────────────────────────────────────


class LoginRequest(_UsernameMixin):
    username: str = Field(
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("username", "email"),
    )
    password: str = Field(min_length=1)
