"""API router aggregation."""

from fastapi import APIRouter

from commission_engine.api.advisor_commissions import router as advisor_commissions_router
from commission_engine.api.health import router as health_router
from commission_engine.api.sales import router as sales_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(sales_router)
api_router.include_router(advisor_commissions_router)

__all__ = ["api_router"]
