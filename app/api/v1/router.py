from fastapi import APIRouter
from app.api.v1.endpoints import financial, health

# Create API router
api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(financial.router, prefix="/claims", tags=["Financial"])

__all__ = ["api_router"]
