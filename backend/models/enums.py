from enum import Enum

class UserRole(str, Enum):
    DONOR = "donor"
    PATIENT = "patient"
    HOSPITAL = "hospital"

class AuthProvider(str, Enum):
    LOCAL = "local"
    GOOGLE = "google"

class BloodGroup(str, Enum):
    A_POSITIVE = "A+"
    A_NEGATIVE = "A-"
    B_POSITIVE = "B+"
    B_NEGATIVE = "B-"
    AB_POSITIVE = "AB+"
    AB_NEGATIVE = "AB-"
    O_POSITIVE = "O+"
    O_NEGATIVE = "O-"

class Urgency(str, Enum):
    CRITICAL = "critical"
    URGENT = "urgent"
    NORMAL = "normal"

# Lower rank sorts first
URGENCY_RANK = {
    Urgency.CRITICAL: 0,
    Urgency.URGENT: 1,
    Urgency.NORMAL: 2,
}

class RequestStatus(str, Enum):
    ACTIVE = "active"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

class ResponseStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
