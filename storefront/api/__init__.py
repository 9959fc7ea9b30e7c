# storefront/api/__init__.py
from fastapi import APIRouter
from storefront.api.routers import addresses, admin, health, orders, users, webhooks

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(users.router)
api_router.include_router(addresses.router)
api_router.include_router(orders.router)
api_router.include_router(admin.router)
api_router.include_router(webhooks.router)
