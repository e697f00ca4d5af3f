from .auth import (
    hash_password, verify_password, create_access_token,
    decode_access_token, get_current_user
)
from .exceptions import (
    ValidationFailed, AuthenticationFailed, PermissionDenied,
    NotFoundError, ConflictError
)
