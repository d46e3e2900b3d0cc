from fastapi import APIRouter, Depends
from sqlmodel import Session

from core.database import get_session
from models import User
from schemas.schemas import BranchCreate, BranchResponse, BranchUpdate
from services import branch_service
from services.auth_service import get_branch_manager, get_current_user

router = APIRouter(prefix="/api/branches", tags=["branches"])


@router.get("/", response_model=dict)
async def list_branches(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    branches = branch_service.list_branches(session)
    return {"success": True, "data": [BranchResponse.from_model(b) for b in branches]}


@router.get("/{branch_id}", response_model=dict)
async def get_branch(
    branch_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    branch = branch_service.get_branch(session, branch_id)
    return {"success": True, "data": BranchResponse.from_model(branch)}


@router.post("/", response_model=dict)
async def create_branch(
    branch_in: BranchCreate,
    session: Session = Depends(get_session),
    manager: User = Depends(get_branch_manager)
):
    branch = branch_service.create_branch(session, branch_in)
    return {"success": True, "message": "Sucursal creada correctamente", "data": BranchResponse.from_model(branch)}


@router.put("/{branch_id}", response_model=dict)
async def update_branch(
    branch_id: str,
    branch_in: BranchUpdate,
    session: Session = Depends(get_session),
    manager: User = Depends(get_branch_manager)
):
    branch = branch_service.update_branch(session, branch_id, branch_in)
    return {"success": True, "message": "Sucursal actualizada correctamente", "data": BranchResponse.from_model(branch)}


@router.delete("/{branch_id}", response_model=dict)
async def delete_branch(
    branch_id: str,
    session: Session = Depends(get_session),
    manager: User = Depends(get_branch_manager)
):
    branch_service.delete_branch(session, branch_id)
    return {"success": True, "message": "Sucursal eliminada. Los usuarios quedan sin sucursal."}
