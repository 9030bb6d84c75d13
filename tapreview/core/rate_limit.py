"""Per-IP rate limiting (SlowAPI), aware of X-Forwarded-For behind a proxy."""
from fastapi import Request

from slowapi import Limiter

from .config import settings


def get_client_ip(request: Request) -> str:
    """Real client IP behind a proxy (Render, Nginx)."""
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


limiter = Limiter(key_func=get_client_ip)

DEFAULT_LIMIT = f"{settings.rate_limit_per_minute}/minute"
LOGIN_LIMIT = f"{settings.rate_limit_login_per_minute}/minute"
REGISTER_LIMIT = f"{settings.rate_limit_register_per_minute}/minute;100/hour"
CLAIM_LIMIT = f"{settings.rate_limit_claim_per_minute}/minute"
