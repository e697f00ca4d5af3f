"""
Audit Logging Service
Records account and blood request activity in the audit_logs collection.
"""
import logging
from typing import Optional
from fastapi import Request

from models.audit import AuditLog, AuditAction, AuditModule

logger = logging.getLogger(__name__)


class AuditService:
    """Writes audit_logs entries for account and request activity."""

    SENSITIVE_FIELDS = {"password", "password_hash", "token", "secret", "google_id"}

    @staticmethod
    def _request_context(request: Optional[Request]) -> dict:
        if request is None:
            return {}
        return {
            "ip_address": request.client.host if request.client else None,
            "user_agent": request.headers.get("user-agent", "")[:500],
            "request_method": request.method,
            "request_path": str(request.url.path),
        }

    @staticmethod
    async def log(
        db,
        action: AuditAction,
        module: AuditModule,
        user: Optional[dict] = None,
        record_id: Optional[str] = None,
        record_type: Optional[str] = None,
        description: Optional[str] = None,
        new_values: Optional[dict] = None,
        request: Optional[Request] = None,
        metadata: Optional[dict] = None
    ) -> str:
        """
        Store one audit entry and return its id.

        ``user`` is the acting account as returned by get_current_user; for
        anonymous actions (failed logins) pass a dict holding just the email.
        Sensitive keys in ``new_values`` are redacted before storage.
        """
        user = user or {}
        audit_log = AuditLog(
            user_id=user.get("id"),
            user_name=user.get("name"),
            user_email=user.get("email"),
            user_role=user.get("role"),
            action=action,
            module=module,
            record_id=record_id,
            record_type=record_type,
            description=description,
            new_values=AuditService._clean_sensitive_data(new_values),
            metadata=metadata,
            **AuditService._request_context(request)
        )

        await db.audit_logs.insert_one(audit_log.model_dump())
        return audit_log.id

    @staticmethod
    def _clean_sensitive_data(data: Optional[dict]) -> Optional[dict]:
        """Remove sensitive fields from audit data."""
        if not data:
            return None

        cleaned = {}
        for key, value in data.items():
            if key.lower() in AuditService.SENSITIVE_FIELDS:
                cleaned[key] = "[REDACTED]"
            elif isinstance(value, dict):
                cleaned[key] = AuditService._clean_sensitive_data(value)
            else:
                cleaned[key] = value

        return cleaned

    @staticmethod
    async def log_auth(
        db,
        action: AuditAction,
        user_email: str,
        success: bool,
        request: Optional[Request] = None,
        user: Optional[dict] = None,
        details: Optional[str] = None
    ) -> str:
        """Log authentication-related actions."""
        if not success:
            logger.info("Failed %s for %s", action.value, user_email)
        return await AuditService.log(
            db,
            action,
            AuditModule.AUTH,
            user=user or {"email": user_email},
            record_id=user.get("id") if user else None,
            record_type="account",
            description=details or f"{'Successful' if success else 'Failed'} {action.value}",
            request=request,
            metadata={"success": success},
        )


# Convenience functions
async def audit_create(db, module: AuditModule, user: dict, record_id: str, record_type: str, new_values: dict, **kwargs):
    """Log a CREATE action."""
    return await AuditService.log(
        db, AuditAction.CREATE, module, user,
        record_id=record_id, record_type=record_type,
        new_values=new_values,
        description=f"Created {record_type} {record_id}",
        **kwargs
    )


async def audit_update(db, action: AuditAction, module: AuditModule, user: dict, record_id: str, record_type: str, new_values: dict, **kwargs):
    """Log an update-style workflow action."""
    return await AuditService.log(
        db, action, module, user,
        record_id=record_id, record_type=record_type,
        new_values=new_values,
        description=f"{action.value.replace('_', ' ').capitalize()} on {record_type} {record_id}",
        **kwargs
    )


async def audit_delete(db, module: AuditModule, user: dict, record_id: str, record_type: str, **kwargs):
    """Log a DELETE action."""
    return await AuditService.log(
        db, AuditAction.DELETE, module, user,
        record_id=record_id, record_type=record_type,
        description=f"Deleted {record_type} {record_id}",
        **kwargs
    )
