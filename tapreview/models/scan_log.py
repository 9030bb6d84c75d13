"""Redemption audit trail: one row per /tickets/{code}/use attempt. Append-only."""
from datetime import datetime

from sqlmodel import Field, SQLModel

from tapreview.core.security import utcnow


class ScanResult:
    VALID = "valid"
    USED = "used"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"


class ScanLog(SQLModel, table=True):
    __tablename__ = "scan_logs"
    id: int | None = Field(default=None, primary_key=True)
    ticket_id: int | None = Field(default=None, index=True)  # None when the code matched no ticket
    code: str = Field(index=True, max_length=100)
    user_id: int | None = Field(default=None, index=True)  # scanner, if authenticated
    result: str = Field(max_length=20)  # valid | used | expired | not_found
    meta: str | None = None  # User-Agent
    at: datetime = Field(default_factory=utcnow, index=True)
