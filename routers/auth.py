from fastapi import APIRouter, Depends
from sqlmodel import Session

from core.config import settings
from core.database import get_session
from core.logger import get_logger
from core.permissions import can_choose_client_branch, visible_tabs
from models import User
from schemas.schemas import ChangePasswordRequest, LoginRequest, UserResponse
from services import identity_provider
from services.auth_service import AuthContext, get_auth_context, get_current_user

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=dict)
async def login(
    login_data: LoginRequest,
    session: Session = Depends(get_session)
):
    user, token = identity_provider.sign_in(session, login_data.email, login_data.password)
    return {
        "success": True,
        "token": token,
        "user": UserResponse.from_model(user),
    }


@router.post("/logout", response_model=dict)
async def logout(
    context: AuthContext = Depends(get_auth_context),
    session: Session = Depends(get_session)
):
    identity_provider.sign_out(session, context.token_id, context.expires_at)
    logger.info(f"User signed out: {context.user.username}")
    return {"success": True, "message": "Sesión cerrada"}


@router.get("/me", response_model=dict)
async def get_profile(current_user: User = Depends(get_current_user)):
    return {
        "success": True,
        "data": {
            "user": UserResponse.from_model(current_user),
            "canSelectBranch": can_choose_client_branch(current_user.role),
            "duplicateCheckDebounceMs": settings.DUPLICATE_CHECK_DEBOUNCE_MS,
            **visible_tabs(current_user.role),
        },
    }


@router.post("/change-password", response_model=dict)
async def change_password(
    payload: ChangePasswordRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    identity_provider.change_password(session, current_user.id, payload.newPassword)
    return {"success": True, "message": "Contraseña actualizada correctamente"}
