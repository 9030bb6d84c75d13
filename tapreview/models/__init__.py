from .contact import PromoEmail, PromotionalContact
from .promo import Promo
from .scan_log import ScanLog, ScanResult
from .ticket import Ticket, TicketStatus
from .user import User, UserRole

__all__ = [
    "PromoEmail",
    "PromotionalContact",
    "Promo",
    "ScanLog",
    "ScanResult",
    "Ticket",
    "TicketStatus",
    "User",
    "UserRole",
]
