"""Health check endpoints for debugging and monitoring."""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from src.api.core.dependencies import AsyncSessionDep
from src.modules.health.service import HealthService, OverallHealthStatus
from src.utils.logger import get_logger
from src.utils.settings.app import AppSettings

logger = get_logger(__name__)

# Create separate routers for root and health endpoints
root_router = APIRouter()
router = APIRouter(prefix="/health", tags=["health"])


@root_router.get("/")
async def root():
    """Root endpoint with minimal HTML landing page."""
    app_url = AppSettings().APP_URL
    html_content = f"""
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>BillToSheet API</title>
        <style>
            body {{
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                min-height: 100vh;
                margin: 0;
                background: #f8f9fa;
                color: #1a1a1a;
                display: flex;
                flex-direction: column;
                justify-content: center;
                align-items: center;
            }}

            .logo {{
                font-size: 3rem;
                font-weight: bold;
                margin-bottom: 1rem;
            }}

            .link {{
                padding: 1rem 2rem;
                background: #1a1a1a;
                color: #ffffff;
                text-decoration: none;
            }}
        </style>
    </head>
    <body>
        <div class="logo">BillToSheet API</div>
        <a href="{app_url}" class="link">Launch App</a>
    </body>
    </html>
    """
    return HTMLResponse(content=html_content, media_type="text/html")


@router.get("/")
async def health_check(db: AsyncSessionDep) -> OverallHealthStatus:
    """Database check plus configuration status of the external services."""
    health_service = HealthService(db)
    return await health_service.run_all_checks()


@router.get("/liveness")
async def liveness_check():
    """Simple liveness check - indicates if service is running."""
    return {"status": "alive", "service": "billtosheet-api"}
