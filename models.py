import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend.

    SQLite keeps no offset, so values are written as UTC and get
    ``timezone.utc`` attached again when read back. Naive input is taken
    to be UTC already.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class Role(str, Enum):
    MASTER = "MASTER"
    ADMIN = "ADMIN"
    USER = "USER"


class ClientStatus(str, Enum):
    PENDING = "PENDING"
    CONTACTED = "CONTACTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    ARS = "ARS"
    BRL = "BRL"
    OTHER = "OTHER"


class Branch(SQLModel, table=True):
    __tablename__ = "branches"
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str = Field(index=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)


class User(SQLModel, table=True):
    __tablename__ = "users"
    # Same value as the identity subject (Credential.id)
    id: str = Field(primary_key=True)
    email: str = Field(index=True)
    username: str = Field(index=True)
    role: Role = Field(default=Role.USER)
    # Not a foreign key: deleting a branch leaves this dangling on purpose
    branch_id: Optional[str] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)


class Client(SQLModel, table=True):
    __tablename__ = "clients"
    id: str = Field(default_factory=new_id, primary_key=True)
    first_name: str
    last_name: str = Field(index=True)
    mobile: str
    landline: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    interest_type: Optional[str] = None
    investment_amount: Optional[float] = None
    branch_id: str = Field(index=True)
    status: ClientStatus = Field(default=ClientStatus.PENDING, index=True)
    created_by: str
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime, index=True)
    updated_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)


class DepositReceipt(SQLModel, table=True):
    __tablename__ = "deposit_receipts"
    __table_args__ = (
        UniqueConstraint("bank", "operation_number", name="uq_deposit_receipts_bank_operation"),
    )
    id: str = Field(default_factory=new_id, primary_key=True)
    client_name: str
    client_id: Optional[str] = None
    bank: str = Field(index=True)
    deposit_amount: float
    deposit_currency: Currency
    operation_number: str = Field(index=True)
    counterparty_currency: Currency
    branch_id: str = Field(default="", index=True)
    created_by: str
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime, index=True)
    notes: Optional[str] = None


# --- Identity provider ---

class Credential(SQLModel, table=True):
    __tablename__ = "credentials"
    id: str = Field(default_factory=new_id, primary_key=True)
    email: str = Field(unique=True, index=True)
    password_hash: str
    failed_attempts: int = Field(default=0)
    locked_until: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)


class RevokedToken(SQLModel, table=True):
    __tablename__ = "revoked_tokens"
    jti: str = Field(primary_key=True)
    revoked_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    expires_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
