"""Promotion: a time-boxed offer owned by one business user; at most one active per owner."""
from datetime import datetime
from decimal import Decimal

from sqlmodel import Field, SQLModel

from tapreview.core.security import utcnow


class Promo(SQLModel, table=True):
    __tablename__ = "promos"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    title: str = Field(max_length=255)
    description: str | None = None
    type: str = Field(max_length=50)  # e.g. "discount", "gift", "coupon"
    value_kind: str | None = Field(default=None, max_length=20)  # "percent" | "fixed"
    value: Decimal | None = Field(default=None, max_digits=10, decimal_places=2)
    start_at: datetime
    end_at: datetime
    max_codes: int | None = Field(default=100)  # null = unlimited
    uses_per_code: int = Field(default=1)
    active: bool = Field(default=False, index=True)
    created_at: datetime | None = Field(default_factory=utcnow)
    updated_at: datetime | None = Field(default_factory=utcnow)
