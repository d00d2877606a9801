"""API v1 routes."""

from fastapi import APIRouter

from gatehouse.api.v1 import admin, audit, auth, health, profile, roles, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(roles.router, prefix="/roles", tags=["roles"])
router.include_router(profile.router, prefix="/profile", tags=["profile"])
router.include_router(audit.router, prefix="/audit", tags=["audit"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
