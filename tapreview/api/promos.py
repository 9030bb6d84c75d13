"""Business-side promotions: CRUD, activation, direct ticket generation, scans."""
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from tapreview.api.deps import get_current_user
from tapreview.core.database import get_db
from tapreview.models import Promo, ScanLog, Ticket, User
from tapreview.schemas import (
    GeneratedTicket,
    GenerateTicketRequest,
    PromoActiveRequest,
    PromoCreate,
    PromoDetail,
    PromoResponse,
    PromoUpdate,
    ScanLogResponse,
    TicketResponse,
)
from tapreview.services import promotions
from tapreview.services.qr import qr_data_url

router = APIRouter(prefix="/promos", tags=["promos"])


def _promo_response(promo: Promo, tickets_count: int = 0) -> PromoResponse:
    return PromoResponse.model_validate(promo).model_copy(update={"tickets_count": tickets_count})


@router.get("", response_model=list[PromoResponse])
def list_promos(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [_promo_response(p, n) for p, n in promotions.list_promos(db, user.id)]


@router.post("", response_model=PromoResponse, status_code=201)
def create_promo(body: PromoCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    promo = promotions.create_promo(db, user.id, body)
    return _promo_response(promo)


@router.get("/{promo_id}", response_model=PromoDetail)
def get_promo(promo_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    promo = promotions.get_owned_promo(db, user.id, promo_id)
    tickets = [TicketResponse.model_validate(t) for t in promotions.promo_tickets(db, promo.id)]
    base = PromoResponse.model_validate(promo).model_dump()
    base["tickets_count"] = len(tickets)
    return PromoDetail(**base, tickets=tickets)


@router.patch("/{promo_id}", response_model=PromoResponse)
def update_promo(
    promo_id: int,
    body: PromoUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    promo = promotions.update_promo(db, user.id, promo_id, body)
    return _promo_response(promo)


@router.delete("/{promo_id}")
def delete_promo(promo_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    promotions.delete_promo(db, user.id, promo_id)
    return {"success": True}


@router.patch("/{promo_id}/active")
def set_promo_active(
    promo_id: int,
    body: PromoActiveRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """At most one active promo per user: activating one deactivates the others."""
    promotions.set_active(db, user.id, promo_id, body.active)
    return {"ok": True}


@router.post("/{promo_id}/tickets/generate", response_model=GeneratedTicket, status_code=201)
def generate_ticket(
    promo_id: int,
    body: GenerateTicketRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Staff-issued ticket for any owned promo (not only the active one)."""
    promo = promotions.get_owned_promo(db, user.id, promo_id)
    ticket = promotions.issue_ticket(
        db,
        promo,
        email=body.customer_email,
        name=body.customer_name,
        surname=body.customer_surname,
    )
    return GeneratedTicket(
        ticket_id=ticket.id,
        code=ticket.code,
        qr_url=ticket.qr_url,
        qr_data_url=qr_data_url(ticket.qr_url),
        expires_at=ticket.expires_at,
    )


@router.get("/{promo_id}/scans", response_model=list[ScanLogResponse])
def list_scans(
    promo_id: int,
    limit: int = 100,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    promo = promotions.get_owned_promo(db, user.id, promo_id)
    if limit < 1 or limit > 500:
        raise HTTPException(status_code=400, detail="limit must be between 1 and 500.")
    ticket_ids = select(Ticket.id).where(Ticket.promo_id == promo.id)
    rows = db.exec(
        select(ScanLog).where(ScanLog.ticket_id.in_(ticket_ids)).order_by(ScanLog.at.desc(), ScanLog.id.desc()).limit(limit)
    ).all()
    return [ScanLogResponse.model_validate(r) for r in rows]
