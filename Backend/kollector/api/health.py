import datetime
from fastapi import APIRouter

router = APIRouter()

SERVICE_NAME = "Kollector Scum API"
SERVICE_VERSION = "1.0.0"


@router.get("/health")
async def health_check():
    """Liveness check."""
    return {
        "status": "Healthy",
        "timestamp": datetime.datetime.now(datetime.timezone.utc),
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }
