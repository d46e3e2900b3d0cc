from sqlmodel import Session, select

from core.database import store_errors
from core.errors import NotFoundError, ValidationError
from core.logger import get_logger
from models import Branch
from schemas.schemas import BranchCreate, BranchUpdate

logger = get_logger(__name__)


def list_branches(session: Session) -> list[Branch]:
    with store_errors(session, "Error al cargar sucursales"):
        return list(session.exec(select(Branch).order_by(Branch.name)).all())


def get_branch(session: Session, branch_id: str) -> Branch:
    with store_errors(session, "Error al cargar la sucursal"):
        branch = session.get(Branch, branch_id)
    if not branch:
        raise NotFoundError("Sucursal no encontrada")
    return branch


def _clean_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("El nombre de la sucursal es requerido", field="name")
    return name


def create_branch(session: Session, branch_in: BranchCreate) -> Branch:
    branch = Branch(name=_clean_name(branch_in.name))
    session.add(branch)
    with store_errors(session, "Error al crear sucursal"):
        session.commit()
        session.refresh(branch)
    logger.info(f"Branch created: {branch.id} ({branch.name})")
    return branch


def update_branch(session: Session, branch_id: str, branch_in: BranchUpdate) -> Branch:
    branch = get_branch(session, branch_id)
    if branch_in.name is not None:
        branch.name = _clean_name(branch_in.name)
    session.add(branch)
    with store_errors(session, "Error al actualizar sucursal"):
        session.commit()
        session.refresh(branch)
    logger.info(f"Branch updated: {branch.id}")
    return branch


def delete_branch(session: Session, branch_id: str):
    # Users, clients and receipts keep their branch_id: they stay without a branch
    branch = get_branch(session, branch_id)
    session.delete(branch)
    with store_errors(session, "Error al eliminar sucursal"):
        session.commit()
    logger.info(f"Branch deleted: {branch_id}")
