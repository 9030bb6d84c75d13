import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import or_
from sqlmodel import Session, select

from tapreview.core.database import get_db
from tapreview.core.rate_limit import LOGIN_LIMIT, REGISTER_LIMIT, limiter
from tapreview.core.security import create_access_token, hash_password, verify_password
from tapreview.api.deps import get_current_user
from tapreview.models import User
from tapreview.schemas import ChangePasswordRequest, Token, UserResponse
from tapreview.schemas.auth import normalize_username

router = APIRouter(prefix="/auth", tags=["auth"])
log = logging.getLogger("tapreview.auth")


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id or 0,
        email=user.email,
        username=user.username,
        role=user.role,
        must_change_password=bool(user.must_change_password),
    )


@router.post("/register", response_model=UserResponse)
@limiter.limit(REGISTER_LIMIT)
async def register(
    request: Request,
    db: Session = Depends(get_db),
):
    form = await request.form()
    email = (form.get("email") or "").strip().lower()
    username_raw = form.get("username") or ""
    password = form.get("password") or ""
    if not email or "@" not in email:
        raise HTTPException(status_code=400, detail="Enter a valid email address.")
    try:
        username = normalize_username(username_raw)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if len(password) < 6:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters.")
    if db.exec(select(User).where(User.email == email)).first():
        raise HTTPException(status_code=409, detail="This email is already registered.")
    if db.exec(select(User).where(User.username == username)).first():
        raise HTTPException(status_code=409, detail="This username is already taken.")
    user = User(email=email, username=username, hashed_password=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    log.info("User registered id=%s username=%s", user.id, username)
    return user_response(user)


@router.post("/login", response_model=Token)
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request,
    db: Session = Depends(get_db),
):
    """Form fields: login (email or username) and password."""
    form = await request.form()
    login_value = (form.get("login") or form.get("email") or "").strip().lower()
    password = form.get("password") or ""
    if not login_value or not password:
        raise HTTPException(status_code=400, detail="Enter your email or username and password.")
    user = db.exec(select(User).where(or_(User.email == login_value, User.username == login_value))).first()
    if not user or not verify_password(password, user.hashed_password):
        log.info("Failed login for %s", login_value)
        raise HTTPException(status_code=401, detail="Invalid credentials.")
    return Token(access_token=create_access_token({"sub": str(user.id), "role": user.role}))


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return user_response(user)


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not verify_password(body.current_password, user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect.")
    user.hashed_password = hash_password(body.new_password)
    user.must_change_password = False
    db.add(user)
    db.commit()
    return {"message": "Password updated."}
