from .enums import (
    UserRole, AuthProvider, BloodGroup, Urgency, URGENCY_RANK,
    RequestStatus, ResponseStatus
)
from .user import (
    Coordinates, Location, DonorAccount, PatientAccount, HospitalAccount,
    Account, account_adapter, RegisterRequest, registration_adapter, DonorRegistration,
    PatientRegistration, HospitalRegistration, UserLogin,
    AvailabilityUpdate, DonationRecord
)
from .donor import DonorSearchFilters, BulkSearchRequest, DonorSummary, DonorDetail, DonationStats
from .request import (
    LocationSnapshot, DonorResponse, BloodRequest, BloodRequestCreate,
    BulkRequestItem, BulkRequestCreate, StatusUpdate, ResponseCreate, RequestFilters
)
from .audit import AuditLog, AuditAction, AuditModule
