from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON uses camelCase (startAt, qrUrl, ...); Python attributes stay snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _naive_utc(v: datetime | None) -> datetime | None:
    if v is not None and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


class PromoCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    type: str = Field(min_length=1, max_length=50)
    value_kind: str | None = Field(default=None, max_length=20)
    value: Decimal | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    max_codes: int | None = Field(
        default=100,
        ge=1,
        description="Tickets this promo can issue, public claims included; null for unlimited.",
    )
    uses_per_code: int = Field(default=1, ge=1)

    @field_validator("start_at", "end_at")
    @classmethod
    def to_naive_utc(cls, v: datetime | None) -> datetime | None:
        return _naive_utc(v)

    @field_validator("title", "type")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title and type are required.")
        return v

    @model_validator(mode="after")
    def check_window(self):
        if self.start_at and self.end_at and self.end_at <= self.start_at:
            raise ValueError("End date must be after start date.")
        return self


class PromoUpdate(CamelModel):
    """Partial update; activation goes through PATCH /promos/{id}/active only."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    type: str | None = Field(default=None, min_length=1, max_length=50)
    value_kind: str | None = Field(default=None, max_length=20)
    value: Decimal | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    max_codes: int | None = Field(default=None, ge=1)
    uses_per_code: int | None = Field(default=None, ge=1)

    @field_validator("start_at", "end_at")
    @classmethod
    def to_naive_utc(cls, v: datetime | None) -> datetime | None:
        return _naive_utc(v)


class PromoActiveRequest(BaseModel):
    active: bool


class PromoResponse(CamelModel):
    id: int
    user_id: int
    title: str
    description: str | None = None
    type: str
    value_kind: str | None = None
    value: Decimal | None = None
    start_at: datetime
    end_at: datetime
    max_codes: int | None = None
    uses_per_code: int = 1
    active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
    tickets_count: int = 0


class TicketResponse(CamelModel):
    id: int
    promo_id: int
    customer_name: str | None = None
    customer_surname: str | None = None
    customer_email: str
    code: str
    qr_url: str
    status: str
    used_at: datetime | None = None
    created_at: datetime | None = None
    expires_at: datetime | None = None


class PromoDetail(PromoResponse):
    tickets: list[TicketResponse] = []


class ScanLogResponse(CamelModel):
    id: int
    ticket_id: int | None = None
    code: str
    user_id: int | None = None
    result: str
    meta: str | None = None
    at: datetime


class GenerateTicketRequest(CamelModel):
    customer_email: EmailStr
    customer_name: str | None = Field(default=None, max_length=255)
    customer_surname: str | None = Field(default=None, max_length=255)


class GeneratedTicket(CamelModel):
    ticket_id: int
    code: str
    qr_url: str
    qr_data_url: str
    expires_at: datetime | None = None


class ClaimRequest(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    surname: str | None = Field(default=None, max_length=255)
    email: EmailStr


class ClaimResponse(CamelModel):
    ok: bool = True
    code: str
    qr_url: str


class ContactResponse(CamelModel):
    id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    last_promo_requested: str | None = None
    total_promo_requests: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
