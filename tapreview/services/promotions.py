"""Promotion management, activation and ticket issuance."""
import logging
from datetime import timedelta

from sqlalchemy import delete, func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from tapreview.core.config import settings
from tapreview.core.errors import CodeGenerationError, InvalidStateError, NotFoundError
from tapreview.core.security import utcnow
from tapreview.models import Promo, Ticket, TicketStatus, User
from tapreview.schemas import PromoCreate, PromoUpdate
from tapreview.services.codes import generate_code, redemption_url

log = logging.getLogger("tapreview.promos")

_REQUIRED_FIELDS = ("title", "type", "start_at", "end_at", "uses_per_code")


def get_owned_promo(db: Session, owner_id: int, promo_id: int) -> Promo:
    promo = db.exec(select(Promo).where(Promo.id == promo_id, Promo.user_id == owner_id)).first()
    if not promo:
        raise NotFoundError("Promotion not found.")
    return promo


def list_promos(db: Session, owner_id: int) -> list[tuple[Promo, int]]:
    promos = list(db.exec(select(Promo).where(Promo.user_id == owner_id).order_by(Promo.created_at.desc(), Promo.id.desc())).all())
    counts = {}
    ids = [p.id for p in promos]
    if ids:
        for promo_id, n in db.exec(
            select(Ticket.promo_id, func.count(Ticket.id)).where(Ticket.promo_id.in_(ids)).group_by(Ticket.promo_id)
        ).all():
            counts[promo_id] = n
    return [(p, counts.get(p.id, 0)) for p in promos]


def promo_tickets(db: Session, promo_id: int) -> list[Ticket]:
    return list(db.exec(select(Ticket).where(Ticket.promo_id == promo_id).order_by(Ticket.created_at.desc(), Ticket.id.desc())).all())


def create_promo(db: Session, owner_id: int, body: PromoCreate) -> Promo:
    now = utcnow()
    start_at = body.start_at or now
    end_at = body.end_at or (start_at + timedelta(days=settings.promo_default_duration_days))
    if end_at <= start_at:
        raise InvalidStateError("End date must be after start date.")
    promo = Promo(
        user_id=owner_id,
        title=body.title,
        description=body.description,
        type=body.type,
        value_kind=body.value_kind,
        value=body.value,
        start_at=start_at,
        end_at=end_at,
        max_codes=body.max_codes,
        uses_per_code=body.uses_per_code,
        active=False,
    )
    db.add(promo)
    db.commit()
    db.refresh(promo)
    log.info("Promo created id=%s owner=%s", promo.id, owner_id)
    return promo


def update_promo(db: Session, owner_id: int, promo_id: int, body: PromoUpdate) -> Promo:
    promo = get_owned_promo(db, owner_id, promo_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        # max_codes may be cleared (unlimited); the other columns are NOT NULL
        if value is None and field in _REQUIRED_FIELDS:
            continue
        setattr(promo, field, value)
    if promo.end_at <= promo.start_at:
        db.rollback()
        raise InvalidStateError("End date must be after start date.")
    promo.updated_at = utcnow()
    db.add(promo)
    db.commit()
    db.refresh(promo)
    return promo


def delete_promo(db: Session, owner_id: int, promo_id: int) -> None:
    promo = get_owned_promo(db, owner_id, promo_id)
    # Explicit ticket delete: SQLite does not enforce ON DELETE CASCADE without the foreign_keys pragma
    db.exec(delete(Ticket).where(Ticket.promo_id == promo.id))
    db.delete(promo)
    db.commit()
    log.info("Promo deleted id=%s owner=%s", promo_id, owner_id)


def set_active(db: Session, owner_id: int, promo_id: int, active: bool) -> None:
    """
    Activating a promo deactivates every other promo of the same owner.
    Done as a single UPDATE (active = (id = target)) so there is no moment with
    zero or two active promos.
    """
    promo = get_owned_promo(db, owner_id, promo_id)
    now = utcnow()
    if active:
        db.exec(
            update(Promo)
            .where(Promo.user_id == owner_id)
            .values(active=(Promo.id == promo.id), updated_at=now)
            .execution_options(synchronize_session=False)
        )
    else:
        db.exec(
            update(Promo)
            .where(Promo.id == promo.id, Promo.user_id == owner_id)
            .values(active=False, updated_at=now)
            .execution_options(synchronize_session=False)
        )
    db.commit()
    log.info("Promo active=%s id=%s owner=%s", active, promo_id, owner_id)


def get_active_promo(db: Session, owner_id: int) -> Promo | None:
    return db.exec(select(Promo).where(Promo.user_id == owner_id, Promo.active == True)).first()  # noqa: E712


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.exec(select(User).where(User.username == (username or "").strip().lower())).first()


def _check_can_issue(db: Session, promo: Promo) -> None:
    now = utcnow()
    if promo.start_at and now < promo.start_at:
        raise InvalidStateError("The promotion has not started yet.")
    if promo.end_at and now > promo.end_at:
        raise InvalidStateError("The promotion has expired.")
    if promo.max_codes is not None:
        issued = db.exec(select(func.count(Ticket.id)).where(Ticket.promo_id == promo.id)).one()
        if issued >= promo.max_codes:
            raise InvalidStateError("The promotion has reached its code limit.")


def _unique_code(db: Session) -> str:
    """Checks candidates against existing codes; bounded retries guard against collisions."""
    for _ in range(max(1, settings.ticket_code_attempts)):
        code = generate_code()
        if not db.exec(select(Ticket.id).where(Ticket.code == code)).first():
            return code
    raise CodeGenerationError("Cannot generate a unique code.")


def issue_ticket(
    db: Session,
    promo: Promo,
    email: str,
    name: str | None = None,
    surname: str | None = None,
) -> Ticket:
    """
    Creates an ACTIVE ticket for the promo. expires_at is the promo's end_at at
    this moment; later changes to the promo do not move it.
    """
    _check_can_issue(db, promo)
    for _ in range(max(1, settings.ticket_code_attempts)):
        code = _unique_code(db)
        ticket = Ticket(
            promo_id=promo.id,
            customer_name=(name or "").strip() or None,
            customer_surname=(surname or "").strip() or None,
            customer_email=email.strip().lower(),
            code=code,
            qr_url=redemption_url(code),
            status=TicketStatus.ACTIVE,
            expires_at=promo.end_at,
        )
        db.add(ticket)
        try:
            db.commit()
        except IntegrityError:
            # Another request took the same code between check and insert
            db.rollback()
            log.warning("Ticket code collision on insert: %s", code)
            continue
        db.refresh(ticket)
        log.info("Ticket issued id=%s promo=%s code=%s", ticket.id, promo.id, code)
        return ticket
    raise CodeGenerationError("Cannot generate a unique code.")
