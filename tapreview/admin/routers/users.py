"""User management: paginated listing with search, account creation."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlmodel import Session, func, select

from tapreview.admin.deps import require_admin
from tapreview.core.database import get_db
from tapreview.core.security import hash_password
from tapreview.models import Promo, User
from tapreview.schemas import AdminUserCreate, AdminUserItem, AdminUserList, UserResponse

router = APIRouter()
log = logging.getLogger("tapreview.admin")


@router.get("", response_model=AdminUserList)
def users_list(
    _=Depends(require_admin),
    db: Session = Depends(get_db),
    query: str | None = None,
    page: int = 1,
    pageSize: int = 20,
):
    page = max(1, page)
    page_size = min(max(1, pageSize), 100)
    where = None
    if query and query.strip():
        q = f"%{query.strip().lower()}%"
        where = or_(User.email.ilike(q), User.username.ilike(q))
    count_stmt = select(func.count(User.id))
    list_stmt = select(User).order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * page_size).limit(page_size)
    if where is not None:
        count_stmt = count_stmt.where(where)
        list_stmt = list_stmt.where(where)
    total = db.exec(count_stmt).one()
    users = list(db.exec(list_stmt).all())
    promo_count = {}
    user_ids = [u.id for u in users]
    if user_ids:
        for uid, n in db.exec(
            select(Promo.user_id, func.count(Promo.id)).where(Promo.user_id.in_(user_ids)).group_by(Promo.user_id)
        ).all():
            promo_count[uid] = n
    rows = [
        AdminUserItem(
            id=u.id,
            email=u.email,
            username=u.username,
            role=u.role,
            created_at=u.created_at,
            promos_count=promo_count.get(u.id, 0),
        )
        for u in users
    ]
    return AdminUserList(total=total, page=page, page_size=page_size, users=rows)


@router.post("", response_model=UserResponse, status_code=201)
def users_create(
    body: AdminUserCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if db.exec(select(User).where(User.email == body.email)).first():
        raise HTTPException(status_code=409, detail="This email is already registered.")
    if db.exec(select(User).where(User.username == body.username)).first():
        raise HTTPException(status_code=409, detail="This username is already taken.")
    user = User(
        email=body.email,
        username=body.username,
        hashed_password=hash_password(body.temp_password),
        role=body.role,
        must_change_password=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    log.info("Admin %s created user id=%s role=%s", admin.id, user.id, user.role)
    return UserResponse(
        id=user.id,
        email=user.email,
        username=user.username,
        role=user.role,
        must_change_password=user.must_change_password,
    )
