from fastapi import APIRouter
from datetime import datetime, timezone

router = APIRouter(tags=["Health"])

SERVICE_NAME = "Blood Connect API"
SERVICE_VERSION = "1.0.0"

@router.get("/health")
async def health():
    return {
        "success": True,
        "message": f"{SERVICE_NAME} is running",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

@router.get("/")
async def root():
    return {
        "success": True,
        "message": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "endpoints": {
            "auth": "/api/auth",
            "donors": "/api/donors",
            "requests": "/api/requests",
            "hospitals": "/api/hospitals",
            "health": "/api/health"
        }
    }
