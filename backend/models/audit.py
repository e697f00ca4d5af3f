"""
Audit Log Models
Audit trail for account and blood request activity.
"""
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime, timezone
from typing import Optional
from enum import Enum
import uuid


class AuditAction(str, Enum):
    # Record Actions
    CREATE = "create"
    DELETE = "delete"

    # Auth Actions
    REGISTER = "register"
    LOGIN = "login"
    LOGOUT = "logout"
    LOGIN_FAILED = "login_failed"

    # Workflow Actions
    STATUS_CHANGE = "status_change"
    RESPOND = "respond"
    RECORD_DONATION = "record_donation"
    AVAILABILITY_CHANGE = "availability_change"


class AuditModule(str, Enum):
    AUTH = "auth"
    DONORS = "donors"
    REQUESTS = "requests"
    HOSPITALS = "hospitals"


class AuditLog(BaseModel):
    """Single audit trail entry."""
    model_config = ConfigDict(use_enum_values=True)
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    # Who
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None

    # What
    action: AuditAction
    module: AuditModule
    record_id: Optional[str] = None
    record_type: Optional[str] = None
    description: Optional[str] = None
    new_values: Optional[dict] = None

    # Where from
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_method: Optional[str] = None
    request_path: Optional[str] = None

    metadata: Optional[dict] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
