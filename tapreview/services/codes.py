"""Short human-readable ticket codes."""
import secrets

from tapreview.core.config import settings

# No 0/O or 1/I look-alikes
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_code(length: int | None = None) -> str:
    n = length or settings.ticket_code_length
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(n))


def normalize_code(code: str) -> str:
    """Scanned/typed codes: trim and uppercase before lookup."""
    return (code or "").strip().upper()


def redemption_url(code: str) -> str:
    return f"{settings.public_origin}/q/{code}"
