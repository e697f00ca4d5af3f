"""
Middleware package for the Blood Connect API.
"""
from .role_access import (
    RoleAccess,
    require_role,
    require_donor,
    require_hospital,
    require_requester
)
from .error_handlers import register_exception_handlers, error_response

__all__ = [
    'RoleAccess',
    'require_role',
    'require_donor',
    'require_hospital',
    'require_requester',
    'register_exception_handlers',
    'error_response'
]
