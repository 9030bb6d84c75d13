"""Public (unauthenticated) promo endpoints behind a business profile."""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlmodel import Session

from tapreview.core.database import get_db
from tapreview.core.rate_limit import CLAIM_LIMIT, limiter
from tapreview.schemas import ClaimRequest, ClaimResponse
from tapreview.services import promotions
from tapreview.services.contacts import upsert_contact
from tapreview.services.email_sender import send_promo_qr_email

router = APIRouter(prefix="/public", tags=["public"])
log = logging.getLogger("tapreview.claims")


@router.get("/{username}/active-promo")
def active_promo(username: str, db: Session = Depends(get_db)):
    user = promotions.get_user_by_username(db, username)
    if not user:
        return {"active": False}
    promo = promotions.get_active_promo(db, user.id)
    if not promo:
        return {"active": False}
    return {
        "active": True,
        "title": promo.title,
        "description": promo.description,
        "endAt": promo.end_at,
    }


@router.post("/{username}/claim", response_model=ClaimResponse)
@limiter.limit(CLAIM_LIMIT)
def claim(
    request: Request,
    username: str,
    body: ClaimRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """
    Customer self-service: issues a ticket for the owner's active promo.
    Contact upsert and QR email are best effort; they never fail the claim.
    """
    owner = promotions.get_user_by_username(db, username)
    if not owner:
        raise HTTPException(status_code=404, detail="Profile not found.")
    promo = promotions.get_active_promo(db, owner.id)
    if not promo:
        raise HTTPException(status_code=400, detail="No active promotion.")
    ticket = promotions.issue_ticket(db, promo, email=body.email, name=body.name, surname=body.surname)

    owner_id = owner.id
    promo_title = promo.title or "Promotion"
    promo_description = promo.description
    try:
        upsert_contact(db, owner_id, body.email, body.name, body.surname, promo_title)
    except Exception as e:
        db.rollback()
        log.error("Promotional contact save failed owner=%s email=%s: %s", owner_id, body.email, e)

    full_name = " ".join(p for p in (body.name, body.surname) if p).strip() or body.email.split("@")[0]
    background_tasks.add_task(
        send_promo_qr_email,
        body.email,
        full_name,
        ticket.code,
        ticket.qr_url,
        promo_title,
        promo_description,
        ticket.expires_at,
    )
    return ClaimResponse(code=ticket.code, qr_url=ticket.qr_url)
