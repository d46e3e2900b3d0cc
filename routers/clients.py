from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from core.database import get_session
from models import ClientStatus, User
from schemas.schemas import ClientCreate, ClientResponse, ClientUpdate
from services import client_service
from services.auth_service import get_current_user

router = APIRouter(prefix="/api/clients", tags=["clients"])


@router.get("/", response_model=dict)
async def list_clients(
    search: Optional[str] = None,
    status: Optional[ClientStatus] = None,
    sort_field: Literal["lastName", "createdAt", "investmentAmount"] = Query("createdAt", alias="sortField"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    clients = client_service.list_clients(session, current_user, search, status, sort_field, sort_order)
    return {"success": True, "data": [ClientResponse.from_model(c) for c in clients]}


@router.get("/{client_id}", response_model=dict)
async def get_client(
    client_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    client = client_service.get_client(session, client_id, current_user)
    return {"success": True, "data": ClientResponse.from_model(client)}


@router.post("/", response_model=dict)
async def create_client(
    client_in: ClientCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    client = client_service.create_client(session, client_in, current_user)
    return {"success": True, "message": "Cliente creado correctamente", "data": ClientResponse.from_model(client)}


@router.put("/{client_id}", response_model=dict)
async def update_client(
    client_id: str,
    client_in: ClientUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    client = client_service.update_client(session, client_id, client_in, current_user)
    return {"success": True, "message": "Cliente actualizado correctamente", "data": ClientResponse.from_model(client)}


@router.delete("/{client_id}", response_model=dict)
async def delete_client(
    client_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    client_service.delete_client(session, client_id, current_user)
    return {"success": True, "message": "Cliente eliminado correctamente"}
