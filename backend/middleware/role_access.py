"""
Role-based access dependencies.

Each dependency resolves the authenticated account and rejects callers whose
role is not allowed for the route.
"""
import logging
from typing import Iterable

from fastapi import Depends

from models import UserRole
from services.auth import get_current_user
from services.exceptions import PermissionDenied

logger = logging.getLogger(__name__)


class RoleAccess:
    """Dependency that admits only the given roles."""

    def __init__(self, roles: Iterable[UserRole], message: str = None):
        self.roles = {UserRole(role).value for role in roles}
        self.message = message or "Insufficient permissions"

    async def __call__(self, current_user: dict = Depends(get_current_user)) -> dict:
        if current_user.get("role") not in self.roles:
            logger.info(
                "Denied %s account %s; requires %s",
                current_user.get("role"), current_user.get("id"), sorted(self.roles)
            )
            raise PermissionDenied(self.message)
        return current_user


def require_role(*roles: UserRole, message: str = None) -> RoleAccess:
    return RoleAccess(roles, message)


require_donor = require_role(UserRole.DONOR, message="Only donors can access this")
require_hospital = require_role(UserRole.HOSPITAL, message="Only hospitals can access this")
require_requester = require_role(
    UserRole.PATIENT, UserRole.HOSPITAL, message="Only patients and hospitals can create requests"
)
