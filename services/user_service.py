from typing import Optional
from sqlmodel import Session, select

from core.database import store_errors
from core.errors import NotFoundError, ValidationError
from core.logger import get_logger
from models import Branch, Role, User
from schemas.schemas import UserCreate, UserUpdate
from services import identity_provider

logger = get_logger(__name__)


def list_users(session: Session) -> list[User]:
    with store_errors(session, "Error al cargar usuarios"):
        return list(session.exec(select(User).order_by(User.username)).all())


def list_users_by_branch(session: Session, branch_id: str) -> list[User]:
    with store_errors(session, "Error al cargar usuarios"):
        stmt = select(User).where(User.branch_id == branch_id).order_by(User.username)
        return list(session.exec(stmt).all())


def get_user(session: Session, user_id: str) -> User:
    with store_errors(session, "Error al cargar el usuario"):
        user = session.get(User, user_id)
    if not user:
        raise NotFoundError("Usuario no encontrado")
    return user


def _validate_branch(session: Session, branch_id: Optional[str]) -> Optional[str]:
    branch_id = (branch_id or "").strip() or None
    if branch_id and not session.get(Branch, branch_id):
        raise ValidationError(f"Sucursal inválida: {branch_id}", field="branchId")
    return branch_id


def create_user(session: Session, user_in: UserCreate) -> User:
    """Create the identity account and its user record in one commit.

    The acting MASTER's own session is never touched.
    """
    username = user_in.username.strip()
    if not username or not user_in.email.strip() or not user_in.password:
        raise ValidationError("Complete todos los campos requeridos")
    branch_id = _validate_branch(session, user_in.branchId)
    if user_in.role == Role.USER and not branch_id:
        logger.warning(f"User {username} created with role USER and no branch")

    subject_id = identity_provider.create_account(session, user_in.email, user_in.password)
    user = User(
        id=subject_id,
        email=identity_provider.normalize_email(user_in.email),
        username=username,
        role=user_in.role,
        branch_id=branch_id,
    )
    session.add(user)
    with store_errors(session, "Error al crear usuario"):
        session.commit()
        session.refresh(user)
    logger.info(f"User created: {user.username} ({user.role.value})")
    return user


def update_user(session: Session, user_id: str, user_in: UserUpdate) -> User:
    user = get_user(session, user_id)
    changes = user_in.model_dump(exclude_unset=True)

    if "username" in changes:
        username = (user_in.username or "").strip()
        if not username:
            raise ValidationError("El nombre de usuario es requerido", field="username")
        user.username = username
    if user_in.role is not None:
        user.role = user_in.role
    if "branchId" in changes:
        user.branch_id = _validate_branch(session, user_in.branchId)

    session.add(user)
    with store_errors(session, "Error al actualizar usuario"):
        session.commit()
        session.refresh(user)
    logger.info(f"User updated: {user.id}")
    return user


def delete_user(session: Session, user_id: str, acting_user: User):
    user = get_user(session, user_id)
    if user.id == acting_user.id:
        raise ValidationError("No puede eliminar su propio usuario")
    # The credential is kept; signing in with it yields PROFILE_NOT_FOUND
    session.delete(user)
    with store_errors(session, "Error al eliminar usuario"):
        session.commit()
    logger.info(f"User deleted: {user_id}")


def ensure_master(session: Session, email: str, password: str, username: str = "master") -> Optional[User]:
    """Create the first MASTER account when the users table is still empty."""
    with store_errors(session, "Error al cargar usuarios"):
        has_users = session.exec(select(User)).first() is not None
    if has_users:
        return None
    user = create_user(session, UserCreate(email=email, password=password, username=username, role=Role.MASTER))
    logger.info(f"Bootstrap MASTER account created: {user.email}")
    return user
