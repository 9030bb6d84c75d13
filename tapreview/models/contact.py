"""Promotional contact: per-owner CRM aggregate of a customer's claims."""
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from tapreview.core.security import utcnow


class PromotionalContact(SQLModel, table=True):
    __tablename__ = "promotional_contacts"
    __table_args__ = (UniqueConstraint("email", "user_id", name="uq_promotional_contacts_email_user"),)
    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(index=True, max_length=255)
    first_name: str | None = Field(default=None, max_length=255)
    last_name: str | None = Field(default=None, max_length=255)
    user_id: int = Field(foreign_key="users.id", index=True, ondelete="CASCADE")  # business owner
    last_promo_requested: str | None = Field(default=None, max_length=255)
    total_promo_requests: int = 1
    created_at: datetime | None = Field(default_factory=utcnow)
    updated_at: datetime | None = Field(default_factory=utcnow)


class PromoEmail(SQLModel, table=True):
    """Delivery log of QR emails sent after a public claim."""

    __tablename__ = "promo_emails"
    id: int | None = Field(default=None, primary_key=True)
    name: str | None = None
    email: str = Field(index=True)
    code: str = Field(index=True)
    promo_title: str | None = None
    status: str = Field(default="queued", max_length=16)  # queued | sent | failed
    error: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
