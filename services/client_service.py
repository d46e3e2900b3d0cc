from typing import Optional
from sqlmodel import Session, col, func, or_, select

from core.database import store_errors
from core.errors import NotFoundError, PermissionDeniedError, ValidationError
from core.logger import get_logger
from core.permissions import branch_scope, can_access_branch, can_choose_client_branch
from models import Client, ClientStatus, User, utc_now
from schemas.schemas import ClientCreate, ClientUpdate

logger = get_logger(__name__)

SORT_FIELDS = {
    "lastName": Client.last_name,
    "createdAt": Client.created_at,
    "investmentAmount": Client.investment_amount,
}

# ClientCreate/ClientUpdate field -> Client column
FIELD_MAP = {
    "firstName": "first_name",
    "lastName": "last_name",
    "mobile": "mobile",
    "landline": "landline",
    "address": "address",
    "email": "email",
    "interestType": "interest_type",
    "investmentAmount": "investment_amount",
    "branchId": "branch_id",
    "status": "status",
}

OPTIONAL_TEXT_FIELDS = ("landline", "address", "email", "interest_type")


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def validate_client(client: Client):
    """Field checks run before anything is written."""
    if not (client.first_name or "").strip():
        raise ValidationError("El nombre es requerido", field="firstName")
    if not (client.last_name or "").strip():
        raise ValidationError("El apellido es requerido", field="lastName")
    if not (client.mobile or "").strip():
        raise ValidationError("El celular es requerido", field="mobile")
    if not client.branch_id:
        raise ValidationError("Debe seleccionar una sucursal", field="branchId")
    if not client.interest_type and client.investment_amount is None:
        raise ValidationError("Debe especificar qué busca o el monto a invertir", field="interestType")
    if client.investment_amount is not None and client.investment_amount <= 0:
        raise ValidationError("El monto a invertir debe ser mayor a 0", field="investmentAmount")


def _select_clients(
    branch_id: Optional[str] = None,
    search: Optional[str] = None,
    status: Optional[ClientStatus] = None,
    sort_field: str = "createdAt",
    sort_order: str = "desc",
):
    column = SORT_FIELDS.get(sort_field)
    if column is None:
        raise ValidationError(f"Campo de orden inválido: {sort_field}", field="sort")

    stmt = select(Client)
    if branch_id is not None:
        stmt = stmt.where(Client.branch_id == branch_id)
    if status is not None:
        stmt = stmt.where(Client.status == status)
    if search and search.strip():
        raw = search.strip()
        term = f"%{raw.lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Client.first_name).like(term),
                func.lower(Client.last_name).like(term),
                col(Client.mobile).like(f"%{raw}%"),
                func.lower(Client.email).like(term),
            )
        )
    order = col(column).asc() if sort_order == "asc" else col(column).desc()
    return stmt.order_by(order)


def list_all_clients(session: Session) -> list[Client]:
    with store_errors(session, "Error al cargar clientes"):
        return list(session.exec(_select_clients()).all())


def list_clients_by_branch(session: Session, branch_id: str) -> list[Client]:
    with store_errors(session, "Error al cargar clientes"):
        return list(session.exec(_select_clients(branch_id=branch_id)).all())


def list_clients(
    session: Session,
    current_user: User,
    search: Optional[str] = None,
    status: Optional[ClientStatus] = None,
    sort_field: str = "createdAt",
    sort_order: str = "desc",
) -> list[Client]:
    """Clients visible to ``current_user``: all for MASTER, own branch otherwise."""
    scope = branch_scope(current_user)
    if scope == "":
        return []
    stmt = _select_clients(scope, search, status, sort_field, sort_order)
    with store_errors(session, "Error al cargar clientes"):
        return list(session.exec(stmt).all())


def get_client(session: Session, client_id: str, current_user: User) -> Client:
    with store_errors(session, "Error al cargar el cliente"):
        client = session.get(Client, client_id)
    if not client:
        raise NotFoundError("Cliente no encontrado")
    if not can_access_branch(current_user, client.branch_id):
        raise PermissionDeniedError("No tiene acceso a clientes de otra sucursal")
    return client


def _resolve_branch(current_user: User, requested: Optional[str]) -> Optional[str]:
    if can_choose_client_branch(current_user.role):
        return _blank_to_none(requested) or current_user.branch_id
    return current_user.branch_id


def create_client(session: Session, client_in: ClientCreate, current_user: User) -> Client:
    client = Client(
        first_name=client_in.firstName.strip(),
        last_name=client_in.lastName.strip(),
        mobile=client_in.mobile.strip(),
        landline=_blank_to_none(client_in.landline),
        address=_blank_to_none(client_in.address),
        email=_blank_to_none(client_in.email),
        interest_type=_blank_to_none(client_in.interestType),
        investment_amount=client_in.investmentAmount,
        branch_id=_resolve_branch(current_user, client_in.branchId),
        status=client_in.status,
        created_by=current_user.id,
    )
    validate_client(client)
    client.updated_at = client.created_at

    session.add(client)
    with store_errors(session, "Error al guardar el cliente"):
        session.commit()
        session.refresh(client)
    logger.info(f"Client created: {client.id} by {current_user.username}")
    return client


def update_client(session: Session, client_id: str, client_in: ClientUpdate, current_user: User) -> Client:
    client = get_client(session, client_id, current_user)
    changes = client_in.model_dump(exclude_unset=True)
    if not can_choose_client_branch(current_user.role):
        changes.pop("branchId", None)

    for field, value in changes.items():
        attr = FIELD_MAP[field]
        if attr in OPTIONAL_TEXT_FIELDS or attr == "branch_id":
            value = _blank_to_none(value)
        elif attr == "status" and value is None:
            continue
        elif isinstance(value, str):
            value = value.strip()
        setattr(client, attr, value)

    try:
        validate_client(client)
    except ValidationError:
        session.expire(client)
        raise
    client.updated_at = utc_now()

    session.add(client)
    with store_errors(session, "Error al guardar el cliente"):
        session.commit()
        session.refresh(client)
    logger.info(f"Client updated: {client.id} by {current_user.username}")
    return client


def delete_client(session: Session, client_id: str, current_user: User):
    client = get_client(session, client_id, current_user)
    session.delete(client)
    with store_errors(session, "Error al eliminar el cliente"):
        session.commit()
    logger.info(f"Client deleted: {client_id} by {current_user.username}")
