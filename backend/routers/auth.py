from fastapi import APIRouter, Body, Depends, Request
from pydantic import ValidationError

from config import Settings, get_settings
from database import get_db
from middleware.error_handlers import format_validation_errors
from models import AuditAction, UserLogin, UserRole, registration_adapter
from services import create_access_token, get_current_user, ValidationFailed, AuthenticationFailed
from services.accounts import authenticate, public_profile, register_account
from services.audit_service import AuditService

router = APIRouter(prefix="/auth", tags=["Auth"])

ROLES = {role.value for role in UserRole}

@router.post("/register", status_code=201)
async def register(
    request: Request,
    payload: dict = Body(...),
    db=Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    if payload.get("role") not in ROLES:
        raise ValidationFailed("Please select a role: donor, patient or hospital")
    try:
        data = registration_adapter.validate_python(payload)
    except ValidationError as exc:
        raise ValidationFailed(format_validation_errors(exc.errors()))

    user = await register_account(db, data)
    await AuditService.log_auth(db, AuditAction.REGISTER, user["email"], True, request=request, user=user)
    return {
        "success": True,
        "message": "Registration successful",
        "token": create_access_token(user, settings),
        "user": public_profile(user)
    }

@router.post("/login")
async def login(
    credentials: UserLogin,
    request: Request,
    db=Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    if not credentials.email or not credentials.password:
        raise ValidationFailed("Please provide email and password")
    try:
        user = await authenticate(db, credentials.email, credentials.password)
    except AuthenticationFailed:
        await AuditService.log_auth(db, AuditAction.LOGIN_FAILED, credentials.email, False, request=request)
        raise

    await AuditService.log_auth(db, AuditAction.LOGIN, user["email"], True, request=request, user=user)
    return {
        "success": True,
        "message": "Login successful",
        "token": create_access_token(user, settings),
        "user": public_profile(user)
    }

@router.get("/me")
async def get_me(current_user: dict = Depends(get_current_user)):
    return {"success": True, "message": "Current user", "user": public_profile(current_user)}

@router.post("/logout")
async def logout(request: Request, current_user: dict = Depends(get_current_user), db=Depends(get_db)):
    # Tokens are stateless; the client discards its copy
    await AuditService.log_auth(db, AuditAction.LOGOUT, current_user["email"], True, request=request, user=current_user)
    return {"success": True, "message": "Logged out successfully"}
