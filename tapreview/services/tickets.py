"""
Ticket redemption state machine.

Stored states: ACTIVE -> USED (terminal). Read-time projections returned to
callers: not_found (no row), expired (expires_at passed, regardless of the
stored status), used, valid. Expiry is never written back.
"""
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import or_, update
from sqlmodel import Session, select

from tapreview.core.errors import NotFoundError
from tapreview.core.security import utcnow
from tapreview.models import Promo, ScanLog, ScanResult, Ticket, TicketStatus
from tapreview.services.codes import normalize_code

log = logging.getLogger("tapreview.tickets")


@dataclass
class TicketState:
    status: str  # valid | used | expired | not_found
    ticket: Ticket | None = None
    promo: Promo | None = None


@dataclass
class Redemption:
    result: str  # outcome of this attempt: valid (redeemed now) | used | expired | not_found
    state: TicketState


def derive_status(ticket: Ticket | None, now: datetime | None = None) -> str:
    if ticket is None:
        return ScanResult.NOT_FOUND
    now = now or utcnow()
    if ticket.expires_at is not None and now > ticket.expires_at:
        return ScanResult.EXPIRED
    if ticket.status == TicketStatus.USED:
        return ScanResult.USED
    return ScanResult.VALID


def _load(db: Session, code: str) -> tuple[Ticket | None, Promo | None]:
    row = db.exec(
        select(Ticket, Promo).join(Promo, Ticket.promo_id == Promo.id).where(Ticket.code == normalize_code(code))
    ).first()
    if not row:
        return None, None
    return row[0], row[1]


def get_status(db: Session, code: str) -> TicketState:
    """Pure read; safe to poll."""
    ticket, promo = _load(db, code)
    return TicketState(status=derive_status(ticket), ticket=ticket, promo=promo)


def get_owned_ticket(db: Session, owner_id: int, code: str) -> TicketState:
    """Scanner lookup for staff: only tickets of the caller's promos, no scan log."""
    ticket, promo = _load(db, code)
    if ticket is None or promo is None or promo.user_id != owner_id:
        raise NotFoundError("Ticket not found.")
    return TicketState(status=derive_status(ticket), ticket=ticket, promo=promo)


def _mark_used(db: Session, ticket_id: int, now: datetime) -> bool:
    """Compare-and-swap: only an ACTIVE, unexpired ticket flips to USED. True if this call did it."""
    result = db.exec(
        update(Ticket)
        .where(
            Ticket.id == ticket_id,
            Ticket.status == TicketStatus.ACTIVE,
            or_(Ticket.expires_at.is_(None), Ticket.expires_at >= now),
        )
        .values(status=TicketStatus.USED, used_at=now)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def _log_scan(db: Session, code: str, ticket: Ticket | None, result: str, user_id: int | None, meta: str | None) -> None:
    try:
        db.add(
            ScanLog(
                ticket_id=ticket.id if ticket else None,
                code=normalize_code(code)[:100],
                user_id=user_id,
                result=result,
                meta=meta[:500] if meta else None,
            )
        )
        db.commit()
    except Exception as e:
        db.rollback()
        log.warning("ScanLog write failed code=%s result=%s: %s", code, result, e)


def redeem(db: Session, code: str, scanned_by: int | None = None, meta: str | None = None) -> Redemption:
    """
    Redeems a ticket at most once. Rejections (not_found, expired, used) are
    outcomes, not errors, so scanner retries are harmless. Every attempt is
    recorded in scan_logs.
    """
    ticket, promo = _load(db, code)
    now = utcnow()
    status = derive_status(ticket, now)
    if status == ScanResult.VALID and _mark_used(db, ticket.id, now):
        result = ScanResult.VALID
    elif status == ScanResult.VALID:
        # Lost the race: someone else redeemed it (or it expired) since the read
        result = None
    else:
        result = status

    if ticket is not None:
        db.refresh(ticket)
        if result is None:
            result = derive_status(ticket, now)
    _log_scan(db, code, ticket, result, scanned_by, meta)
    if result == ScanResult.VALID:
        log.info("Ticket redeemed code=%s ticket=%s by=%s", ticket.code, ticket.id, scanned_by)
    state = TicketState(status=derive_status(ticket, now), ticket=ticket, promo=promo)
    return Redemption(result=result, state=state)
