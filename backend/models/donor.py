from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from .enums import BloodGroup

class DonorSearchFilters(BaseModel):
    """Donor lookup parameters shared by the single and hospital bulk searches."""
    blood_type: Optional[BloodGroup] = None
    blood_types: List[BloodGroup] = []
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    available_only: bool = False

class BulkSearchRequest(BaseModel):
    blood_types: List[BloodGroup] = []
    city: Optional[str] = None
    state: Optional[str] = None
    available_only: bool = False

class DonorSummary(BaseModel):
    id: str
    name: str
    blood_type: BloodGroup
    location: dict
    phone: str
    email: str
    available: bool
    can_donate: bool
    last_donation_date: Optional[datetime] = None

class DonationStats(BaseModel):
    total_donations: int = 0
    last_donation_date: Optional[datetime] = None
    can_donate: bool
    days_since_last_donation: Optional[int] = None
    days_until_eligible: int = 0
    next_eligible_date: Optional[datetime] = None

class DonorDetail(DonorSummary):
    member_since: Optional[datetime] = Field(default=None)
