"""Admin auth: bearer token of a user with role ADMIN."""
from fastapi import Depends, HTTPException, status

from tapreview.api.deps import get_current_user
from tapreview.models import User, UserRole


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required.")
    return user
