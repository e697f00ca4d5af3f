from pydantic import BaseModel, Field, ConfigDict, TypeAdapter, field_validator
from typing import Optional, Union, Literal, Annotated
from datetime import datetime, timezone
import uuid
from .enums import AuthProvider, BloodGroup

EMAIL_PATTERN = r"^\w+([\.-]?\w+)*@\w+([\.-]?\w+)*(\.\w{2,3})+$"
PHONE_PATTERN = r"^[6-9]\d{9}$"
PINCODE_PATTERN = r"^\d{6}$"
# bcrypt only hashes the first 72 bytes and rejects longer input
MAX_PASSWORD_BYTES = 72

class Coordinates(BaseModel):
    latitude: float
    longitude: float

class Location(BaseModel):
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    pincode: str = Field(pattern=PINCODE_PATTERN)
    coordinates: Optional[Coordinates] = None

class AccountBase(BaseModel):
    model_config = ConfigDict(extra="ignore", use_enum_values=True)
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    email: str
    phone: str
    password_hash: Optional[str] = None
    auth_provider: AuthProvider = AuthProvider.LOCAL
    google_id: Optional[str] = None
    location: Location
    profile_picture: Optional[str] = None
    is_active: bool = True
    profile_complete: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class DonorAccount(AccountBase):
    role: Literal["donor"] = "donor"
    blood_type: BloodGroup
    available: bool = True
    last_donation_date: Optional[datetime] = None
    total_donations: int = 0

class PatientAccount(AccountBase):
    role: Literal["patient"] = "patient"

class HospitalAccount(AccountBase):
    role: Literal["hospital"] = "hospital"
    hospital_name: str = Field(min_length=1)
    registration_number: str = Field(min_length=1)

Account = Annotated[
    Union[DonorAccount, PatientAccount, HospitalAccount],
    Field(discriminator="role"),
]
account_adapter = TypeAdapter(Account)

class RegistrationBase(BaseModel):
    """Fields every role supplies at sign-up."""
    name: str = Field(min_length=1)
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=6)
    phone: str = Field(pattern=PHONE_PATTERN)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    pincode: str = Field(pattern=PINCODE_PATTERN)
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("password")
    @classmethod
    def check_password_length(cls, value):
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value

    @field_validator("name", "address", "city", "state", mode="before")
    @classmethod
    def strip_text(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    def location(self) -> Location:
        coordinates = None
        if self.latitude is not None and self.longitude is not None:
            coordinates = Coordinates(latitude=self.latitude, longitude=self.longitude)
        return Location(
            address=self.address,
            city=self.city,
            state=self.state,
            pincode=self.pincode,
            coordinates=coordinates,
        )

class DonorRegistration(RegistrationBase):
    role: Literal["donor"]
    blood_type: BloodGroup

class PatientRegistration(RegistrationBase):
    role: Literal["patient"]

class HospitalRegistration(RegistrationBase):
    role: Literal["hospital"]
    hospital_name: str = Field(min_length=1)
    registration_number: str = Field(min_length=1)

RegisterRequest = Annotated[
    Union[DonorRegistration, PatientRegistration, HospitalRegistration],
    Field(discriminator="role"),
]
registration_adapter = TypeAdapter(RegisterRequest)

class UserLogin(BaseModel):
    email: str
    password: str

class AvailabilityUpdate(BaseModel):
    available: bool

class DonationRecord(BaseModel):
    donation_date: Optional[datetime] = None
