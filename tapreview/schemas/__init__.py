from .auth import (
    AdminUserCreate,
    AdminUserItem,
    AdminUserList,
    ChangePasswordRequest,
    Token,
    UserResponse,
)
from .promos import (
    ClaimRequest,
    ClaimResponse,
    ContactResponse,
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

__all__ = [
    "AdminUserCreate",
    "AdminUserItem",
    "AdminUserList",
    "ChangePasswordRequest",
    "ClaimRequest",
    "ClaimResponse",
    "ContactResponse",
    "GeneratedTicket",
    "GenerateTicketRequest",
    "PromoActiveRequest",
    "PromoCreate",
    "PromoDetail",
    "PromoResponse",
    "PromoUpdate",
    "ScanLogResponse",
    "TicketResponse",
    "Token",
    "UserResponse",
]
