"""Local identity provider.

Owns the ``credentials`` table and token issuance. Application user records
(``models.User``) reference a credential by sharing its id (the subject id).
``create_account`` never issues a token, so an administrator creating an
account keeps their own session untouched.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlmodel import Session, col, select

from core.config import settings
from core.database import store_errors
from core.errors import IdentityError
from core.logger import get_logger
from core.security import create_access_token, get_password_hash, verify_password
from models import Credential, RevokedToken, User, utc_now

logger = get_logger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _check_password_strength(password: Optional[str]):
    if len(password or "") < settings.MIN_PASSWORD_LENGTH:
        raise IdentityError("WEAK_PASSWORD", min_length=settings.MIN_PASSWORD_LENGTH)


def create_account(session: Session, email: str, password: str) -> str:
    """Register a credential and return its subject id.

    The credential is flushed, not committed: the caller commits it together
    with whatever record it maps the subject to.
    """
    email = normalize_email(email)
    if not EMAIL_RE.match(email):
        raise IdentityError("INVALID_EMAIL")
    _check_password_strength(password)

    existing = session.exec(select(Credential).where(Credential.email == email)).first()
    if existing:
        raise IdentityError("EMAIL_ALREADY_IN_USE")

    credential = Credential(email=email, password_hash=get_password_hash(password))
    session.add(credential)
    with store_errors(session, "Error al crear la cuenta"):
        session.flush()
    logger.info(f"Credential created for {email}")
    return credential.id


def verify_credentials(session: Session, email: str, password: str) -> Credential:
    email = normalize_email(email)
    credential = session.exec(select(Credential).where(Credential.email == email)).first()
    if credential is None:
        logger.warning(f"Failed login attempt for unknown email: {email}")
        raise IdentityError("INVALID_CREDENTIAL")

    now = utc_now()
    if credential.locked_until and credential.locked_until > now:
        logger.warning(f"Login attempt on locked credential: {email}")
        raise IdentityError("TOO_MANY_REQUESTS")

    if not verify_password(password, credential.password_hash):
        credential.failed_attempts += 1
        code = "INVALID_CREDENTIAL"
        if credential.failed_attempts >= settings.MAX_FAILED_LOGINS:
            credential.locked_until = now + timedelta(minutes=settings.LOGIN_LOCKOUT_MINUTES)
            credential.failed_attempts = 0
            code = "TOO_MANY_REQUESTS"
        session.add(credential)
        with store_errors(session, "Error al iniciar sesión"):
            session.commit()
        logger.warning(f"Failed login attempt for {email} ({code})")
        raise IdentityError(code)

    if credential.failed_attempts or credential.locked_until:
        credential.failed_attempts = 0
        credential.locked_until = None
        session.add(credential)
        with store_errors(session, "Error al iniciar sesión"):
            session.commit()
    return credential


def issue_token(user: User) -> str:
    return create_access_token(
        data={"sub": user.id, "role": user.role.value, "branch": user.branch_id}
    )


def sign_in(session: Session, email: str, password: str) -> tuple[User, str]:
    credential = verify_credentials(session, email, password)
    user = session.get(User, credential.id)
    if user is None:
        logger.warning(f"Credential {credential.id} has no user record")
        raise IdentityError("PROFILE_NOT_FOUND")
    logger.info(f"User signed in: {user.username}")
    return user, issue_token(user)


def sign_out(session: Session, token_id: str, expires_at: Optional[datetime] = None):
    """Revoke ``token_id`` and drop revocations whose token has expired anyway."""
    with store_errors(session, "Error al cerrar sesión"):
        expired = session.exec(
            select(RevokedToken).where(col(RevokedToken.expires_at) < utc_now())
        ).all()
    for row in expired:
        session.delete(row)
    session.merge(RevokedToken(jti=token_id, expires_at=expires_at))
    with store_errors(session, "Error al cerrar sesión"):
        session.commit()


def is_revoked(session: Session, token_id: str) -> bool:
    return session.get(RevokedToken, token_id) is not None


def change_password(session: Session, subject_id: str, new_password: str):
    _check_password_strength(new_password)
    credential = session.get(Credential, subject_id)
    if credential is None:
        raise IdentityError("NOT_AUTHENTICATED")
    credential.password_hash = get_password_hash(new_password)
    session.add(credential)
    with store_errors(session, "Error al cambiar la contraseña"):
        session.commit()
    logger.info(f"Password changed for subject {subject_id}")


def token_expiry(payload: dict) -> Optional[datetime]:
    exp = payload.get("exp")
    if exp is None:
        return None
    return datetime.fromtimestamp(exp, tz=timezone.utc)
