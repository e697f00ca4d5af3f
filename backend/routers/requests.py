from fastapi import APIRouter, Depends, Request
from datetime import timedelta
from typing import Optional

from config import Settings, get_settings
from database import get_db
from middleware import require_donor, require_requester
from models import (
    AuditAction, AuditModule, BloodGroup, BloodRequestCreate, RequestFilters,
    RequestStatus, ResponseCreate, StatusUpdate, Urgency
)
from services import get_current_user
from services.audit_service import audit_create, audit_delete, audit_update
from services.request_lifecycle import (
    add_response, create_request, delete_request, request_detail,
    list_requests, my_requests, transition_status
)

router = APIRouter(prefix="/requests", tags=["Blood Requests"])

@router.post("", status_code=201)
async def create_blood_request(
    request_data: BloodRequestCreate,
    request: Request,
    current_user: dict = Depends(require_requester),
    db=Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    blood_request = await create_request(
        db, current_user, request_data, ttl=timedelta(days=settings.request_ttl_days)
    )
    await audit_create(
        db, AuditModule.REQUESTS, current_user, blood_request["id"], "blood_request",
        {"blood_type": blood_request["blood_type"], "units_needed": blood_request["units_needed"],
         "urgency": blood_request["urgency"]},
        request=request
    )
    return {"success": True, "message": "Blood request created successfully", "request": blood_request}

@router.get("")
async def get_blood_requests(
    blood_type: Optional[BloodGroup] = None,
    city: Optional[str] = None,
    urgency: Optional[Urgency] = None,
    status: Optional[RequestStatus] = None,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_db)
):
    filters = RequestFilters(blood_type=blood_type, city=city, urgency=urgency, status=status)
    requests = await list_requests(db, filters)
    return {"success": True, "message": f"Found {len(requests)} requests", "count": len(requests), "requests": requests}

@router.get("/my-requests")
async def get_my_requests(current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    requests = await my_requests(db, current_user)
    return {"success": True, "message": f"Found {len(requests)} requests", "count": len(requests), "requests": requests}

@router.get("/{request_id}")
async def get_blood_request(request_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    blood_request = await request_detail(db, request_id)
    return {"success": True, "message": "Blood request details", "request": blood_request}

@router.put("/{request_id}/status")
async def update_request_status(
    request_id: str,
    update: StatusUpdate,
    request: Request,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_db)
):
    blood_request = await transition_status(db, current_user, request_id, update.status)
    await audit_update(
        db, AuditAction.STATUS_CHANGE, AuditModule.REQUESTS, current_user,
        request_id, "blood_request", {"status": update.status}, request=request
    )
    return {"success": True, "message": f"Request status updated to {update.status}", "request": blood_request}

@router.post("/{request_id}/respond")
async def respond_to_request(
    request_id: str,
    response: ResponseCreate,
    request: Request,
    current_user: dict = Depends(require_donor),
    db=Depends(get_db)
):
    blood_request = await add_response(db, current_user, request_id, response.status, response.message)
    await audit_update(
        db, AuditAction.RESPOND, AuditModule.REQUESTS, current_user,
        request_id, "blood_request", {"response": response.status.value}, request=request
    )
    return {"success": True, "message": "Response recorded", "request": blood_request}

@router.delete("/{request_id}")
async def remove_request(
    request_id: str,
    request: Request,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_db)
):
    await delete_request(db, current_user, request_id)
    await audit_delete(db, AuditModule.REQUESTS, current_user, request_id, "blood_request", request=request)
    return {"success": True, "message": "Blood request deleted successfully"}
