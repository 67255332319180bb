"""
Health check endpoint
"""
import time
from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel, Field

router = APIRouter(prefix="/api/v1/health", tags=["health"])

APP_VERSION = "1.0.0"

# Application start time for uptime calculation
APP_START_TIME = time.time()


class HealthResponse(BaseModel):
    """Basic health check response"""
    status: str = Field(..., description="Overall status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Check timestamp")
    version: str = Field(..., description="Application version")
    uptime_seconds: float = Field(..., description="Application uptime in seconds")


@router.get("", response_model=HealthResponse)
async def health_check():
    """Basic liveness check"""
    return HealthResponse(
        status="healthy",
        version=APP_VERSION,
        uptime_seconds=round(time.time() - APP_START_TIME, 2)
    )
