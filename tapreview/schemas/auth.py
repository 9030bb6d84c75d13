import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

USERNAME_RE = re.compile(r"^[a-z0-9_-]{3,32}$")


def normalize_username(v: str) -> str:
    v = (v or "").strip().lower()
    if not USERNAME_RE.match(v):
        raise ValueError("Username must be 3-32 characters: letters, digits, '_' or '-'.")
    return v


class UserResponse(BaseModel):
    id: int
    email: str
    username: str
    role: str
    must_change_password: bool = False


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_min_length(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters.")
        return v


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class AdminUserCreate(BaseModel):
    """Account created by an admin; the user must change the temporary password at first login."""

    email: EmailStr
    username: str
    temp_password: str = Field(alias="tempPassword", min_length=8)
    role: Literal["USER", "ADMIN"] = "USER"

    model_config = {"populate_by_name": True}

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        return normalize_username(v)


class AdminUserItem(BaseModel):
    id: int
    email: str
    username: str
    role: str
    created_at: datetime | None = Field(default=None, serialization_alias="createdAt")
    promos_count: int = Field(default=0, serialization_alias="promosCount")


class AdminUserList(BaseModel):
    total: int
    page: int
    page_size: int = Field(serialization_alias="pageSize")
    users: list[AdminUserItem]
