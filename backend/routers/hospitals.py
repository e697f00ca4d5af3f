from fastapi import APIRouter, Depends, Request
from datetime import timedelta
from typing import Optional

from config import Settings, get_settings
from database import get_db
from middleware import require_hospital
from models import AuditAction, AuditModule, BulkRequestCreate, BulkSearchRequest, DonorSearchFilters, RequestStatus
from services.audit_service import AuditService
from services.donor_search import bulk_search_donors
from services.hospital_stats import blood_type_stats, hospital_dashboard
from services.request_lifecycle import create_bulk_requests, my_requests

router = APIRouter(prefix="/hospitals", tags=["Hospitals"])

@router.get("/dashboard")
async def get_dashboard(current_user: dict = Depends(require_hospital), db=Depends(get_db)):
    stats = await hospital_dashboard(db, current_user)
    return {"success": True, "message": "Dashboard statistics", "stats": stats}

@router.post("/bulk-search")
async def bulk_search(
    search: BulkSearchRequest,
    current_user: dict = Depends(require_hospital),
    db=Depends(get_db)
):
    filters = DonorSearchFilters(
        blood_types=search.blood_types,
        city=search.city or (current_user.get("location") or {}).get("city"),
        state=search.state,
        available_only=search.available_only
    )
    donors = await bulk_search_donors(db, filters)
    return {"success": True, "message": f"Found {len(donors)} donors", "count": len(donors), "donors": donors}

@router.get("/my-requests")
async def get_hospital_requests(
    status: Optional[RequestStatus] = None,
    current_user: dict = Depends(require_hospital),
    db=Depends(get_db)
):
    requests = await my_requests(db, current_user, status)
    return {"success": True, "message": f"Found {len(requests)} requests", "count": len(requests), "requests": requests}

@router.post("/bulk-request", status_code=201)
async def create_bulk_request(
    bulk: BulkRequestCreate,
    request: Request,
    current_user: dict = Depends(require_hospital),
    db=Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    created = await create_bulk_requests(
        db, current_user, bulk.requests, ttl=timedelta(days=settings.request_ttl_days)
    )
    await AuditService.log(
        db, AuditAction.CREATE, AuditModule.HOSPITALS, current_user,
        record_type="blood_request",
        description=f"Created {len(created)} blood requests",
        request=request,
        metadata={"request_ids": [doc["id"] for doc in created]}
    )
    return {
        "success": True,
        "message": f"{len(created)} blood requests created successfully",
        "count": len(created),
        "requests": created
    }

@router.get("/blood-stats")
async def get_blood_stats(
    city: Optional[str] = None,
    current_user: dict = Depends(require_hospital),
    db=Depends(get_db)
):
    stats = await blood_type_stats(db, city or (current_user.get("location") or {}).get("city"))
    return {"success": True, "message": "Blood type statistics", **stats}
