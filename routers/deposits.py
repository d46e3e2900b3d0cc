from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from core.database import get_session
from models import User
from schemas.schemas import (
    DepositReceiptCreate,
    DepositReceiptResponse,
    DepositReceiptUpdate,
    DuplicateCheckResponse,
)
from services import deposit_receipt_service
from services.auth_service import get_current_user

router = APIRouter(prefix="/api/deposits", tags=["deposits"])


@router.get("/", response_model=dict)
async def list_receipts(
    search: Optional[str] = None,
    bank: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    receipts = deposit_receipt_service.list_receipts(session, current_user, search, bank)
    return {"success": True, "data": [DepositReceiptResponse.from_model(r) for r in receipts]}


# Interactive, non-blocking check used while the receipt form is being filled in
@router.get("/check-duplicate", response_model=dict)
async def check_duplicate(
    bank: str,
    operation_number: str = Query(..., alias="operationNumber"),
    exclude_id: Optional[str] = Query(None, alias="excludeId"),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    result = deposit_receipt_service.check_duplicate_operation(session, bank, operation_number, exclude_id)
    response = DuplicateCheckResponse(isDuplicate=result.is_duplicate)
    if result.is_duplicate:
        response.existingReceipt = DepositReceiptResponse.from_model(result.existing_receipt)
        response.warning = deposit_receipt_service.duplicate_warning(result.existing_receipt.bank, result.existing_receipt)
    return {"success": True, "data": response}


@router.get("/banks", response_model=dict)
async def list_banks(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return {"success": True, "data": deposit_receipt_service.list_banks(session, current_user)}


@router.get("/{receipt_id}", response_model=dict)
async def get_receipt(
    receipt_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    receipt = deposit_receipt_service.get_receipt(session, receipt_id, current_user)
    return {"success": True, "data": DepositReceiptResponse.from_model(receipt)}


@router.post("/", response_model=dict)
async def create_receipt(
    receipt_in: DepositReceiptCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    receipt = deposit_receipt_service.create_receipt(session, receipt_in, current_user)
    return {"success": True, "message": "Boleta registrada correctamente", "data": DepositReceiptResponse.from_model(receipt)}


@router.put("/{receipt_id}", response_model=dict)
async def update_receipt(
    receipt_id: str,
    receipt_in: DepositReceiptUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    receipt = deposit_receipt_service.update_receipt(session, receipt_id, receipt_in, current_user)
    return {"success": True, "message": "Boleta actualizada correctamente", "data": DepositReceiptResponse.from_model(receipt)}


@router.delete("/{receipt_id}", response_model=dict)
async def delete_receipt(
    receipt_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    deposit_receipt_service.delete_receipt(session, receipt_id, current_user)
    return {"success": True, "message": "Boleta eliminada correctamente"}
