"""Ticket status, redemption and scanner lookups."""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from tapreview.api.deps import get_current_user, get_optional_user
from tapreview.core.database import get_db
from tapreview.core.rate_limit import DEFAULT_LIMIT, limiter
from tapreview.models import ScanResult, User
from tapreview.services import tickets
from tapreview.services.tickets import TicketState

router = APIRouter(tags=["tickets"])


def _promo_summary(state: TicketState) -> dict | None:
    if state.promo is None:
        return None
    return {"title": state.promo.title, "description": state.promo.description, "type": state.promo.type}


def _status_body(state: TicketState) -> dict:
    body = {"status": state.status, "promo": _promo_summary(state)}
    t = state.ticket
    if t is not None:
        if state.status == ScanResult.VALID:
            body["expiresAt"] = t.expires_at
        else:
            body["usedAt"] = t.used_at
    return body


def _not_found(extra: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=404, content={"status": ScanResult.NOT_FOUND, **(extra or {})})


@router.get("/tickets/{code}/status")
def ticket_status(code: str, db: Session = Depends(get_db)):
    """Read-only; the ticket page polls this every few seconds."""
    state = tickets.get_status(db, code)
    if state.status == ScanResult.NOT_FOUND:
        return _not_found()
    return _status_body(state)


@router.post("/tickets/{code}/use")
@limiter.limit(DEFAULT_LIMIT)
def use_ticket(
    request: Request,
    code: str,
    scanner: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """
    Redeems the ticket once. "result" is this attempt's outcome (valid means it
    was redeemed now); "status" is the ticket state afterwards.
    """
    redemption = tickets.redeem(
        db,
        code,
        scanned_by=scanner.id if scanner else None,
        meta=request.headers.get("user-agent"),
    )
    if redemption.result == ScanResult.NOT_FOUND:
        return _not_found({"result": ScanResult.NOT_FOUND})
    body = _status_body(redemption.state)
    body["result"] = redemption.result
    return body


@router.get("/tickets/{code}")
def scanner_lookup(code: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Staff check before redeeming: full ticket data for the caller's own promos; no scan log."""
    state = tickets.get_owned_ticket(db, user.id, code)
    t = state.ticket
    return {
        "status": state.status,
        "code": t.code,
        "customerName": t.customer_name,
        "customerSurname": t.customer_surname,
        "customerEmail": t.customer_email,
        "createdAt": t.created_at,
        "expiresAt": t.expires_at,
        "usedAt": t.used_at,
        "promoId": t.promo_id,
        "promo": _promo_summary(state),
    }


@router.get("/q/{code}")
def qr_landing(code: str, db: Session = Depends(get_db)):
    """Target of the QR URL: 404 unknown, 410 used or expired."""
    state = tickets.get_status(db, code)
    if state.status == ScanResult.NOT_FOUND:
        return JSONResponse(status_code=404, content={"error": "Code not found.", "status": state.status})
    if state.status == ScanResult.USED:
        return JSONResponse(status_code=410, content={"error": "Code already used.", "status": state.status})
    if state.status == ScanResult.EXPIRED:
        return JSONResponse(status_code=410, content={"error": "Code expired.", "status": state.status})
    return {"ok": True, "code": state.ticket.code, "status": state.ticket.status, "promo": _promo_summary(state)}
