from fastapi import APIRouter, Depends
from sqlmodel import Session

from tapreview.api.deps import get_current_user
from tapreview.core.database import get_db
from tapreview.models import User
from tapreview.schemas import ContactResponse
from tapreview.services.contacts import list_contacts

router = APIRouter(prefix="/promotional-contacts", tags=["contacts"])


@router.get("", response_model=list[ContactResponse])
def promotional_contacts(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Customers who claimed the caller's promos, newest first."""
    return [ContactResponse.model_validate(c) for c in list_contacts(db, user.id)]
