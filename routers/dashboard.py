from fastapi import APIRouter, Depends
from sqlmodel import Session

from core.database import get_session
from models import User
from services import dashboard_service
from services.auth_service import get_current_user

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/summary", response_model=dict)
async def get_summary(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return {"success": True, "data": dashboard_service.get_summary(session, current_user)}
