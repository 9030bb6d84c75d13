from datetime import datetime

from sqlmodel import Field, SQLModel

from tapreview.core.security import utcnow


class TicketStatus:
    ACTIVE = "ACTIVE"
    USED = "USED"


class Ticket(SQLModel, table=True):
    """Single-use claim against a promo. status moves ACTIVE -> USED exactly once; used_at is set iff USED."""

    __tablename__ = "tickets"
    id: int | None = Field(default=None, primary_key=True)
    promo_id: int = Field(foreign_key="promos.id", index=True, ondelete="CASCADE")
    customer_name: str | None = Field(default=None, max_length=255)
    customer_surname: str | None = Field(default=None, max_length=255)
    customer_email: str = Field(max_length=255)
    code: str = Field(unique=True, index=True, max_length=100)
    qr_url: str
    status: str = Field(default=TicketStatus.ACTIVE, max_length=20)
    used_at: datetime | None = None
    created_at: datetime | None = Field(default_factory=utcnow)
    expires_at: datetime | None = Field(default=None, index=True)  # copied from promo.end_at at issuance
