import logging

from sqlalchemy import text
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from .config import settings

log = logging.getLogger("tapreview.db")


def _normalized_database_url(raw_url: str) -> str:
    """
    DATABASE_URL normalization:
    - postgres:// or postgresql:// is rewritten to the psycopg 3 dialect.
    - Anything else (SQLite etc.) is left as is.
    """
    if not raw_url:
        return "sqlite:///./tapreview.db"
    raw_url = raw_url.strip()
    if raw_url.startswith("postgres://"):
        return "postgresql+psycopg://" + raw_url[len("postgres://") :]
    if raw_url.startswith("postgresql://") and "+psycopg" not in raw_url.split("://", 1)[0]:
        return "postgresql+psycopg://" + raw_url[len("postgresql://") :]
    return raw_url


DATABASE_URL = _normalized_database_url(settings.database_url)

# In-memory SQLite: a single shared connection so tables created by init_db are visible to every request (tests)
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
_use_static_pool = DATABASE_URL.startswith("sqlite") and ":memory:" in DATABASE_URL
engine = create_engine(
    DATABASE_URL,
    connect_args=_connect_args,
    poolclass=StaticPool if _use_static_pool else None,
)


def get_db():
    with Session(engine) as session:
        yield session


def ping_db() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        log.warning("Database ping failed: %s", e)
        return False


def init_db():
    from tapreview import models  # noqa: F401  (registers tables on the metadata)

    SQLModel.metadata.create_all(engine)
    _ensure_bootstrap_admin()


def _ensure_bootstrap_admin() -> None:
    email = (settings.admin_email or "").strip().lower()
    password = settings.admin_password or ""
    if not email or not password:
        return
    from tapreview.core.security import hash_password
    from tapreview.models import User, UserRole

    with Session(engine) as db:
        if db.exec(select(User).where(User.email == email)).first():
            return
        db.add(
            User(
                email=email,
                username=(settings.admin_username or "admin").strip().lower(),
                hashed_password=hash_password(password),
                role=UserRole.ADMIN,
            )
        )
        db.commit()
        log.info("Bootstrap admin created: %s", email)
