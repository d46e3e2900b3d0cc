from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from core.database import get_session
from core.errors import IdentityError, PermissionDeniedError
from core.permissions import Capability, has_capability
from core.security import decode_token
from models import User
from services.identity_provider import is_revoked, token_expiry

# JWT handling
# auto_error off so a missing token gets the same envelope as a bad one
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)


def _credentials_error() -> IdentityError:
    error = IdentityError("NOT_AUTHENTICATED")
    error.headers = {"WWW-Authenticate": "Bearer"}
    return error


@dataclass
class AuthContext:
    """The authenticated session of the current request."""
    user: User
    token_id: str
    expires_at: Optional[datetime] = None


# Dependency
async def get_auth_context(token: Optional[str] = Depends(oauth2_scheme), session: Session = Depends(get_session)) -> AuthContext:
    if not token:
        raise _credentials_error()

    payload = decode_token(token)
    if payload is None:
        raise _credentials_error()

    subject: str = payload.get("sub")
    token_id: str = payload.get("jti")
    if subject is None or token_id is None:
        raise _credentials_error()

    if is_revoked(session, token_id):
        raise _credentials_error()

    user = session.get(User, subject)
    if user is None:
        raise _credentials_error()

    return AuthContext(user=user, token_id=token_id, expires_at=token_expiry(payload))


async def get_current_user(context: AuthContext = Depends(get_auth_context)) -> User:
    return context.user


def require_capability(capability: Capability):
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_capability(current_user.role, capability):
            raise PermissionDeniedError("No tiene permisos para realizar esta acción")
        return current_user
    return dependency


get_branch_manager = require_capability(Capability.MANAGE_BRANCHES)
get_master = require_capability(Capability.MANAGE_USERS)
