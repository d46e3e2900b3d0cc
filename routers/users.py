from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from core.database import get_session
from models import User
from schemas.schemas import UserCreate, UserResponse, UserUpdate
from services import user_service
from services.auth_service import get_master

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/", response_model=dict)
async def list_users(
    branch_id: Optional[str] = Query(None, alias="branchId"),
    session: Session = Depends(get_session),
    master: User = Depends(get_master)
):
    if branch_id:
        users = user_service.list_users_by_branch(session, branch_id)
    else:
        users = user_service.list_users(session)
    return {"success": True, "data": [UserResponse.from_model(u) for u in users]}


@router.get("/{id}", response_model=dict)
async def get_user(
    id: str,
    session: Session = Depends(get_session),
    master: User = Depends(get_master)
):
    user = user_service.get_user(session, id)
    return {"success": True, "data": UserResponse.from_model(user)}


@router.post("/", response_model=dict)
async def create_user(
    user_in: UserCreate,
    session: Session = Depends(get_session),
    master: User = Depends(get_master)
):
    user = user_service.create_user(session, user_in)
    return {
        "success": True,
        "message": f'Usuario "{user.username}" creado exitosamente',
        "data": UserResponse.from_model(user),
    }


@router.put("/{id}", response_model=dict)
async def update_user(
    id: str,
    user_in: UserUpdate,
    session: Session = Depends(get_session),
    master: User = Depends(get_master)
):
    user = user_service.update_user(session, id, user_in)
    return {"success": True, "message": "Usuario actualizado correctamente", "data": UserResponse.from_model(user)}


@router.delete("/{id}", response_model=dict)
async def delete_user(
    id: str,
    session: Session = Depends(get_session),
    master: User = Depends(get_master)
):
    user_service.delete_user(session, id, master)
    return {"success": True, "message": "Usuario eliminado correctamente"}
