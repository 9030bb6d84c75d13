"""Admin API: user management and platform counters, under /admin."""
from fastapi import APIRouter

from tapreview.admin.routers import stats, users

admin_router = APIRouter(prefix="/admin", tags=["admin"])

admin_router.include_router(users.router, prefix="/users", tags=["admin-users"])
admin_router.include_router(stats.router, prefix="/stats", tags=["admin-stats"])
