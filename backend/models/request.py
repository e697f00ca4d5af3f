from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime, timezone
import uuid
from .enums import BloodGroup, RequestStatus, ResponseStatus, Urgency
from .user import Coordinates

class LocationSnapshot(BaseModel):
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    coordinates: Optional[Coordinates] = None

class DonorResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", use_enum_values=True)
    donor_id: str
    status: ResponseStatus = ResponseStatus.PENDING
    responded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    message: Optional[str] = None

class BloodRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", use_enum_values=True)
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    requested_by: str
    blood_type: BloodGroup
    units_needed: int = Field(default=1, ge=1)
    urgency: Urgency = Urgency.URGENT
    urgency_rank: int = 1
    location: LocationSnapshot = Field(default_factory=LocationSnapshot)
    hospital_name: Optional[str] = None
    patient_name: str
    contact_number: str
    reason: Optional[str] = None
    notes: Optional[str] = None
    status: RequestStatus = RequestStatus.ACTIVE
    responses: List[DonorResponse] = []
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    expires_at: datetime

class BloodRequestCreate(BaseModel):
    blood_type: BloodGroup
    units_needed: Optional[int] = Field(default=None, ge=1)
    urgency: Optional[Urgency] = None
    hospital_name: Optional[str] = None
    patient_name: str = Field(min_length=1)
    contact_number: str = Field(min_length=1)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None

class BulkRequestItem(BaseModel):
    blood_type: BloodGroup
    units_needed: Optional[int] = Field(default=None, ge=1)
    urgency: Optional[Urgency] = None
    patient_name: str = Field(min_length=1)
    contact_number: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None

class BulkRequestCreate(BaseModel):
    requests: List[BulkRequestItem] = Field(min_length=1)

class StatusUpdate(BaseModel):
    status: str

class ResponseCreate(BaseModel):
    status: ResponseStatus = ResponseStatus.PENDING
    message: Optional[str] = Field(default=None, max_length=500)

class RequestFilters(BaseModel):
    blood_type: Optional[BloodGroup] = None
    city: Optional[str] = None
    urgency: Optional[Urgency] = None
    status: Optional[RequestStatus] = None
