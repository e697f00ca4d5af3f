from fastapi import APIRouter, Depends, Request
from typing import Optional

from database import get_db
from middleware import require_donor
from models import (
    AuditAction, AuditModule, AvailabilityUpdate, BloodGroup,
    DonationRecord, DonorSearchFilters
)
from services import get_current_user
from services.accounts import donation_stats, get_account, record_donation, set_availability
from services.audit_service import audit_update
from services.compatibility import compatible_donor_types
from services.donor_search import get_donor, relevant_requests, search_donors

router = APIRouter(prefix="/donors", tags=["Donors"])

@router.get("/search")
async def search(
    blood_type: Optional[BloodGroup] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    pincode: Optional[str] = None,
    available_only: bool = True,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_db)
):
    filters = DonorSearchFilters(
        blood_type=blood_type,
        city=city,
        state=state,
        pincode=pincode,
        available_only=available_only
    )
    donors = await search_donors(db, filters)
    return {"success": True, "message": f"Found {len(donors)} donors", "count": len(donors), "donors": donors}

@router.get("/compatible/{blood_type}")
async def compatible_types(blood_type: str, current_user: dict = Depends(get_current_user)):
    return {
        "success": True,
        "message": "Compatible blood types",
        "blood_type": blood_type,
        "compatible_types": compatible_donor_types(blood_type)
    }

@router.get("/my-donations")
async def my_donations(current_user: dict = Depends(require_donor), db=Depends(get_db)):
    donor = await get_account(db, current_user["id"])
    return {
        "success": True,
        "message": "Donation history",
        "donor": {
            "name": donor["name"],
            "blood_type": donor.get("blood_type"),
            "available": donor.get("available"),
            "last_donation_date": donor.get("last_donation_date"),
            "created_at": donor.get("created_at")
        },
        "stats": donation_stats(donor).model_dump()
    }

@router.get("/relevant-requests")
async def my_relevant_requests(current_user: dict = Depends(require_donor), db=Depends(get_db)):
    requests = await relevant_requests(db, current_user)
    return {"success": True, "message": f"Found {len(requests)} requests", "count": len(requests), "requests": requests}

@router.put("/availability")
async def update_availability(
    update: AvailabilityUpdate,
    request: Request,
    current_user: dict = Depends(require_donor),
    db=Depends(get_db)
):
    donor = await set_availability(db, current_user, update.available)
    await audit_update(
        db, AuditAction.AVAILABILITY_CHANGE, AuditModule.DONORS, current_user,
        current_user["id"], "account", {"available": update.available}, request=request
    )
    return {
        "success": True,
        "message": f"Availability updated to {'Available' if update.available else 'Not Available'}",
        "donor": {"name": donor["name"], "blood_type": donor["blood_type"], "available": donor["available"]}
    }

@router.put("/donation")
async def donation(
    record: DonationRecord,
    request: Request,
    current_user: dict = Depends(require_donor),
    db=Depends(get_db)
):
    donor = await record_donation(db, current_user, record.donation_date)
    await audit_update(
        db, AuditAction.RECORD_DONATION, AuditModule.DONORS, current_user,
        current_user["id"], "account", {"last_donation_date": donor["last_donation_date"]}, request=request
    )
    return {
        "success": True,
        "message": "Donation recorded successfully",
        "donor": {
            "name": donor["name"],
            "blood_type": donor["blood_type"],
            "available": donor["available"],
            "last_donation_date": donor["last_donation_date"]
        }
    }

@router.get("/{donor_id}")
async def donor_detail(donor_id: str, current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    donor = await get_donor(db, donor_id)
    return {"success": True, "message": "Donor details", "donor": donor}
