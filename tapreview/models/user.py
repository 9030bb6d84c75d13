from datetime import datetime

from sqlmodel import Field, SQLModel

from tapreview.core.security import utcnow


class UserRole:
    USER = "USER"
    ADMIN = "ADMIN"


class User(SQLModel, table=True):
    __tablename__ = "users"
    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    username: str = Field(unique=True, index=True, max_length=32)  # public profile slug: /public/{username}
    hashed_password: str
    role: str = Field(default=UserRole.USER, max_length=16)  # "USER" | "ADMIN"
    must_change_password: bool = False  # set for accounts created by an admin with a temporary password
    created_at: datetime | None = Field(default_factory=utcnow)
