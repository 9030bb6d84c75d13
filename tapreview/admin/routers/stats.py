from fastapi import APIRouter, Depends
from sqlmodel import Session, func, select

from tapreview.admin.deps import require_admin
from tapreview.core.database import get_db
from tapreview.models import Promo, ScanLog, Ticket, TicketStatus, User

router = APIRouter()


def _count(db: Session, stmt) -> int:
    return db.exec(stmt).one() or 0


@router.get("/summary")
def stats_summary(_=Depends(require_admin), db: Session = Depends(get_db)):
    return {
        "users": _count(db, select(func.count(User.id))),
        "promos": _count(db, select(func.count(Promo.id))),
        "activePromos": _count(db, select(func.count(Promo.id)).where(Promo.active == True)),  # noqa: E712
        "tickets": _count(db, select(func.count(Ticket.id))),
        "usedTickets": _count(db, select(func.count(Ticket.id)).where(Ticket.status == TicketStatus.USED)),
        "scans": _count(db, select(func.count(ScanLog.id))),
    }
