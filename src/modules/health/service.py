import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.utils.logger import get_logger
from src.utils.settings.extraction import extraction_settings
from src.utils.settings.stripe import StripeSettings

logger = get_logger(__name__)


@dataclass
class HealthCheckResult:
    """Result of a health check."""

    service: str
    status: Literal["healthy", "unhealthy", "degraded"]
    connected: bool
    details: dict
    error: str | None = None


@dataclass
class OverallHealthStatus:
    """Overall health status with individual service results."""

    status: Literal["healthy", "degraded", "unhealthy"]
    services: dict[str, HealthCheckResult]
    timestamp: str


class HealthService:
    """Service for performing health checks on various system components."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def check_database_health(self) -> HealthCheckResult:
        """Database connection health check."""
        try:
            result = await self.db.execute(text("SELECT 1 as test"))
            test_value = result.scalar()

            return HealthCheckResult(
                service="database",
                status="healthy",
                connected=True,
                details={"test_query_result": test_value},
            )
        except Exception as e:
            logger.error(f"Database health check error: {e}")
            return HealthCheckResult(
                service="database",
                status="unhealthy",
                connected=False,
                details={},
                error=str(e),
            )

    async def check_extraction_health(self) -> HealthCheckResult:
        """Extraction is degraded, not down, when no API key is configured."""
        configured = bool(extraction_settings.OPENAI_API_KEY.get_secret_value())
        return HealthCheckResult(
            service="extraction",
            status="healthy" if configured else "degraded",
            connected=configured,
            details={"model": extraction_settings.OPENAI_MODEL},
        )

    async def check_payments_health(self) -> HealthCheckResult:
        settings = StripeSettings()
        configured = bool(
            settings.STRIPE_SECRET_KEY.get_secret_value()
            and settings.STRIPE_WEBHOOK_SECRET
        )
        return HealthCheckResult(
            service="payments",
            status="healthy" if configured else "degraded",
            connected=configured,
            details={"currency": settings.STRIPE_CURRENCY},
        )

    async def run_all_checks(self) -> OverallHealthStatus:
        """Run all health checks in parallel and return overall status."""
        tasks = [
            self.check_database_health(),
            self.check_extraction_health(),
            self.check_payments_health(),
        ]

        results = await asyncio.gather(*tasks, return_exceptions=True)

        services = {}
        overall_status: Literal["healthy", "degraded", "unhealthy"] = "healthy"

        for result in results:
            if isinstance(result, Exception):
                service_result = HealthCheckResult(
                    service=result.__class__.__name__,
                    status="unhealthy",
                    connected=False,
                    details={},
                    error=str(result),
                )
                overall_status = "unhealthy"
            else:
                service_result = result
                if service_result.status == "unhealthy":
                    overall_status = "unhealthy"
                elif (
                    service_result.status == "degraded" and overall_status == "healthy"
                ):
                    overall_status = "degraded"

            services[service_result.service] = service_result

        return OverallHealthStatus(
            status=overall_status,
            services=services,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
