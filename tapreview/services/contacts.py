"""Promotional contacts (marketing CRM): one row per (customer email, business owner)."""
from sqlmodel import Session, select

from tapreview.core.security import utcnow
from tapreview.models import PromotionalContact


def upsert_contact(
    db: Session,
    owner_id: int,
    email: str,
    first_name: str | None,
    last_name: str | None,
    promo_title: str | None,
) -> PromotionalContact:
    """New contact starts at 1 request; an existing one is incremented and its names/last promo overwritten."""
    email = email.strip().lower()
    contact = db.exec(
        select(PromotionalContact).where(PromotionalContact.email == email, PromotionalContact.user_id == owner_id)
    ).first()
    if contact:
        contact.first_name = first_name or None
        contact.last_name = last_name or None
        contact.last_promo_requested = promo_title or "Promotion"
        contact.total_promo_requests = (contact.total_promo_requests or 0) + 1
        contact.updated_at = utcnow()
    else:
        contact = PromotionalContact(
            email=email,
            first_name=first_name or None,
            last_name=last_name or None,
            user_id=owner_id,
            last_promo_requested=promo_title or "Promotion",
            total_promo_requests=1,
        )
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return contact


def list_contacts(db: Session, owner_id: int) -> list[PromotionalContact]:
    return list(
        db.exec(
            select(PromotionalContact)
            .where(PromotionalContact.user_id == owner_id)
            .order_by(PromotionalContact.created_at.desc(), PromotionalContact.id.desc())
        ).all()
    )
