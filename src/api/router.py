from fastapi import APIRouter

from src.api.billing.router import router as billing_router
from src.api.cleanup.router import router as cleanup_router
from src.api.conversion.router import router as conversion_router
from src.api.credits.router import router as credits_router
from src.api.health.router import router as health_router, root_router
from src.api.webhooks.router import router as webhooks_router

# Main API router
api_router = APIRouter()
api_router.include_router(root_router)
api_router.include_router(health_router)
api_router.include_router(conversion_router)
api_router.include_router(credits_router)
api_router.include_router(billing_router)
api_router.include_router(webhooks_router)
api_router.include_router(cleanup_router)
