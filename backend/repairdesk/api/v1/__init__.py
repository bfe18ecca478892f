"""Versioned API router."""

from fastapi import APIRouter

from . import auth, catalog, dashboard, health, inventory, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(catalog.services_router, prefix="/services", tags=["services"])
router.include_router(
    catalog.categories_router,
    prefix="/service-categories",
    tags=["service-categories"],
)
router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
