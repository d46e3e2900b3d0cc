"""Deposit receipts and the operation-number fraud check.

An operation number may only be registered once per bank. The check runs
before every create, and before an update that changes the bank or the
operation number. The ``(bank, operation_number)`` unique constraint on the
table catches concurrent writes that both passed the check; the losing write
gets the same ``DuplicateOperationError`` as a sequential one.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, func, or_, select

from core.database import store_errors
from core.errors import DuplicateOperationError, NotFoundError, PermissionDeniedError, StoreUnavailableError, ValidationError
from core.logger import get_logger
from core.permissions import branch_scope, can_access_branch
from models import Client, DepositReceipt, User
from schemas.schemas import DepositReceiptCreate, DepositReceiptUpdate

logger = get_logger(__name__)

# DepositReceiptUpdate field -> DepositReceipt column
FIELD_MAP = {
    "clientName": "client_name",
    "clientId": "client_id",
    "bank": "bank",
    "depositAmount": "deposit_amount",
    "depositCurrency": "deposit_currency",
    "operationNumber": "operation_number",
    "counterpartyCurrency": "counterparty_currency",
    "notes": "notes",
}


@dataclass
class DuplicateCheckResult:
    is_duplicate: bool
    existing_receipt: Optional[DepositReceipt] = None


def _format_date(receipt: DepositReceipt) -> str:
    return receipt.created_at.strftime("%d/%m/%Y %H:%M:%S")


def duplicate_message(bank: str, operation_number: str, existing: DepositReceipt) -> str:
    return (
        f'⚠️ ALERTA DE FRAUDE: El número de operación "{operation_number}" '
        f'ya existe para el banco "{bank}". '
        f"Registrado el {_format_date(existing)} por {existing.client_name}."
    )


def duplicate_warning(bank: str, existing: DepositReceipt) -> str:
    return (
        f"⚠️ ALERTA: Este número de operación ya existe para {bank}. "
        f"Registrado el {_format_date(existing)} por {existing.client_name}."
    )


def check_duplicate_operation(
    session: Session, bank: str, operation_number: str, exclude_id: Optional[str] = None
) -> DuplicateCheckResult:
    """Look up receipts with this exact bank and operation number.

    ``exclude_id`` drops the receipt being edited so it does not collide
    with itself. When several match, the first one the store returns is
    reported. Both values are whitespace-stripped, the same way receipts
    are stored.
    """
    bank = (bank or "").strip()
    operation_number = (operation_number or "").strip()
    stmt = select(DepositReceipt).where(
        DepositReceipt.bank == bank,
        DepositReceipt.operation_number == operation_number,
    )
    with store_errors(session, "Error al verificar el número de operación"):
        matches = session.exec(stmt).all()

    duplicates = [r for r in matches if not exclude_id or r.id != exclude_id]
    if duplicates:
        return DuplicateCheckResult(is_duplicate=True, existing_receipt=duplicates[0])
    return DuplicateCheckResult(is_duplicate=False)


def _ensure_unique(session: Session, bank: str, operation_number: str, exclude_id: Optional[str] = None):
    result = check_duplicate_operation(session, bank, operation_number, exclude_id)
    if result.is_duplicate:
        logger.warning(
            f"Duplicate operation number rejected: bank={bank!r} operation={operation_number!r} "
            f"existing={result.existing_receipt.id}"
        )
        raise DuplicateOperationError(
            duplicate_message(bank, operation_number, result.existing_receipt),
            existing=result.existing_receipt,
        )


def _commit_receipt(session: Session, receipt: DepositReceipt, exclude_id: Optional[str] = None):
    bank, operation_number = receipt.bank, receipt.operation_number
    with store_errors(session, "Error al guardar la boleta."):
        try:
            session.commit()
        except IntegrityError:
            # Lost a race against a concurrent write of the same pair
            session.rollback()
            _ensure_unique(session, bank, operation_number, exclude_id)
            logger.error(f"Integrity error saving receipt for bank={bank!r} operation={operation_number!r}")
            raise StoreUnavailableError("Error al guardar la boleta.")
        session.refresh(receipt)


def validate_receipt(client_name: str, bank: str, deposit_amount: Optional[float], operation_number: str):
    if not (client_name or "").strip():
        raise ValidationError("El nombre del cliente es requerido.", field="clientName")
    if not (bank or "").strip():
        raise ValidationError("El banco es requerido.", field="bank")
    if deposit_amount is None or deposit_amount <= 0:
        raise ValidationError("El monto debe ser mayor a 0.", field="depositAmount")
    if not (operation_number or "").strip():
        raise ValidationError("El número de operación es requerido.", field="operationNumber")


def _client_name_for(session: Session, client_id: Optional[str], client_name: Optional[str]) -> str:
    client_name = (client_name or "").strip()
    if client_id and not client_name:
        client = session.get(Client, client_id)
        if client:
            client_name = f"{client.first_name} {client.last_name}"
    return client_name


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


# --- Queries ---

def _select_receipts(branch_id: Optional[str] = None, search: Optional[str] = None, bank: Optional[str] = None):
    stmt = select(DepositReceipt)
    if branch_id is not None:
        stmt = stmt.where(DepositReceipt.branch_id == branch_id)
    if bank:
        stmt = stmt.where(DepositReceipt.bank == bank)
    if search and search.strip():
        term = f"%{search.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(DepositReceipt.client_name).like(term),
                func.lower(DepositReceipt.operation_number).like(term),
                func.lower(DepositReceipt.bank).like(term),
            )
        )
    return stmt.order_by(col(DepositReceipt.created_at).desc())


def list_all_receipts(session: Session) -> list[DepositReceipt]:
    with store_errors(session, "Error al cargar las boletas"):
        return list(session.exec(_select_receipts()).all())


def list_receipts_by_branch(session: Session, branch_id: str) -> list[DepositReceipt]:
    with store_errors(session, "Error al cargar las boletas"):
        return list(session.exec(_select_receipts(branch_id=branch_id)).all())


def list_receipts_by_bank(session: Session, bank: str) -> list[DepositReceipt]:
    with store_errors(session, "Error al cargar las boletas"):
        return list(session.exec(_select_receipts(bank=bank)).all())


def list_receipts(
    session: Session, current_user: User, search: Optional[str] = None, bank: Optional[str] = None
) -> list[DepositReceipt]:
    """Receipts visible to ``current_user``: all for MASTER, own branch otherwise."""
    scope = branch_scope(current_user)
    if scope == "":
        return []
    with store_errors(session, "Error al cargar las boletas"):
        return list(session.exec(_select_receipts(scope, search, bank)).all())


def list_banks(session: Session, current_user: User) -> list[str]:
    scope = branch_scope(current_user)
    if scope == "":
        return []
    stmt = select(DepositReceipt.bank).distinct()
    if scope is not None:
        stmt = stmt.where(DepositReceipt.branch_id == scope)
    with store_errors(session, "Error al cargar los bancos"):
        return sorted(session.exec(stmt).all())


def get_receipt(session: Session, receipt_id: str, current_user: User) -> DepositReceipt:
    with store_errors(session, "Error al cargar la boleta"):
        receipt = session.get(DepositReceipt, receipt_id)
    if not receipt:
        raise NotFoundError("Boleta no encontrada")
    if not can_access_branch(current_user, receipt.branch_id):
        raise PermissionDeniedError("No tiene acceso a boletas de otra sucursal")
    return receipt


# --- Writes ---

def create_receipt(session: Session, receipt_in: DepositReceiptCreate, current_user: User) -> DepositReceipt:
    client_id = _blank_to_none(receipt_in.clientId)
    client_name = _client_name_for(session, client_id, receipt_in.clientName)
    bank = receipt_in.bank.strip()
    operation_number = receipt_in.operationNumber.strip()
    validate_receipt(client_name, bank, receipt_in.depositAmount, operation_number)

    _ensure_unique(session, bank, operation_number)

    receipt = DepositReceipt(
        client_name=client_name,
        client_id=client_id,
        bank=bank,
        deposit_amount=receipt_in.depositAmount,
        deposit_currency=receipt_in.depositCurrency,
        operation_number=operation_number,
        counterparty_currency=receipt_in.counterpartyCurrency,
        branch_id=current_user.branch_id or "",
        created_by=current_user.id,
        notes=_blank_to_none(receipt_in.notes),
    )
    session.add(receipt)
    _commit_receipt(session, receipt)
    logger.info(f"Deposit receipt created: {receipt.id} ({bank} #{operation_number}) by {current_user.username}")
    return receipt


def update_receipt(
    session: Session, receipt_id: str, receipt_in: DepositReceiptUpdate, current_user: User
) -> DepositReceipt:
    receipt = get_receipt(session, receipt_id, current_user)

    values = {attr: getattr(receipt, attr) for attr in FIELD_MAP.values()}
    for field, value in receipt_in.model_dump(exclude_unset=True).items():
        attr = FIELD_MAP[field]
        if value is None and attr in ("deposit_currency", "counterparty_currency", "deposit_amount"):
            continue
        if attr in ("client_id", "notes"):
            value = _blank_to_none(value)
        elif isinstance(value, str):
            value = value.strip()
        values[attr] = value
    values["client_name"] = _client_name_for(session, values["client_id"], values["client_name"])

    validate_receipt(values["client_name"], values["bank"], values["deposit_amount"], values["operation_number"])

    if values["bank"] != receipt.bank or values["operation_number"] != receipt.operation_number:
        _ensure_unique(session, values["bank"], values["operation_number"], exclude_id=receipt.id)

    for attr, value in values.items():
        setattr(receipt, attr, value)
    session.add(receipt)
    _commit_receipt(session, receipt, exclude_id=receipt.id)
    logger.info(f"Deposit receipt updated: {receipt.id} by {current_user.username}")
    return receipt


def delete_receipt(session: Session, receipt_id: str, current_user: User):
    receipt = get_receipt(session, receipt_id, current_user)
    session.delete(receipt)
    with store_errors(session, "Error al eliminar la boleta"):
        session.commit()
    logger.info(f"Deposit receipt deleted: {receipt_id} by {current_user.username}")
