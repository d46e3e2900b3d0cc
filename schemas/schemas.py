from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from models import Branch, Client, ClientStatus, Currency, DepositReceipt, Role, User

# --- Auth Schemas ---
class LoginRequest(BaseModel):
    email: str
    password: str

class ChangePasswordRequest(BaseModel):
    newPassword: str

# --- Branch Schemas ---
class BranchCreate(BaseModel):
    name: str

class BranchUpdate(BaseModel):
    name: Optional[str] = None

class BranchResponse(BaseModel):
    id: str
    name: str
    createdAt: datetime

    @classmethod
    def from_model(cls, branch: Branch) -> "BranchResponse":
        return cls(id=branch.id, name=branch.name, createdAt=branch.created_at)

# --- User Schemas ---
class UserCreate(BaseModel):
    email: str
    password: str
    username: str
    role: Role = Role.USER
    branchId: Optional[str] = None

class UserUpdate(BaseModel):
    username: Optional[str] = None
    role: Optional[Role] = None
    branchId: Optional[str] = None

class UserResponse(BaseModel):
    id: str
    email: str
    username: str
    role: Role
    branchId: Optional[str] = None
    createdAt: datetime

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            username=user.username,
            role=user.role,
            branchId=user.branch_id,
            createdAt=user.created_at,
        )

# --- Client Schemas ---
class ClientCreate(BaseModel):
    firstName: str = ""
    lastName: str = ""
    mobile: str = ""
    landline: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    interestType: Optional[str] = None
    investmentAmount: Optional[float] = None
    branchId: Optional[str] = None
    status: ClientStatus = ClientStatus.PENDING

class ClientUpdate(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    mobile: Optional[str] = None
    landline: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    interestType: Optional[str] = None
    investmentAmount: Optional[float] = None
    branchId: Optional[str] = None
    status: Optional[ClientStatus] = None

class ClientResponse(BaseModel):
    id: str
    firstName: str
    lastName: str
    mobile: str
    landline: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    interestType: Optional[str] = None
    investmentAmount: Optional[float] = None
    branchId: str
    status: ClientStatus
    createdBy: str
    createdAt: datetime
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, client: Client) -> "ClientResponse":
        return cls(
            id=client.id,
            firstName=client.first_name,
            lastName=client.last_name,
            mobile=client.mobile,
            landline=client.landline,
            address=client.address,
            email=client.email,
            interestType=client.interest_type,
            investmentAmount=client.investment_amount,
            branchId=client.branch_id,
            status=client.status,
            createdBy=client.created_by,
            createdAt=client.created_at,
            updatedAt=client.updated_at,
        )

# --- Deposit Receipt Schemas ---
class DepositReceiptCreate(BaseModel):
    clientName: str = ""
    clientId: Optional[str] = None
    bank: str = ""
    depositAmount: float = 0
    depositCurrency: Currency = Currency.ARS
    operationNumber: str = ""
    counterpartyCurrency: Currency = Currency.USD
    notes: Optional[str] = None

class DepositReceiptUpdate(BaseModel):
    clientName: Optional[str] = None
    clientId: Optional[str] = None
    bank: Optional[str] = None
    depositAmount: Optional[float] = None
    depositCurrency: Optional[Currency] = None
    operationNumber: Optional[str] = None
    counterpartyCurrency: Optional[Currency] = None
    notes: Optional[str] = None

class DepositReceiptResponse(BaseModel):
    id: str
    clientName: str
    clientId: Optional[str] = None
    bank: str
    depositAmount: float
    depositCurrency: Currency
    operationNumber: str
    counterpartyCurrency: Currency
    branchId: str
    createdBy: str
    createdAt: datetime
    notes: Optional[str] = None

    @classmethod
    def from_model(cls, receipt: DepositReceipt) -> "DepositReceiptResponse":
        return cls(
            id=receipt.id,
            clientName=receipt.client_name,
            clientId=receipt.client_id,
            bank=receipt.bank,
            depositAmount=receipt.deposit_amount,
            depositCurrency=receipt.deposit_currency,
            operationNumber=receipt.operation_number,
            counterpartyCurrency=receipt.counterparty_currency,
            branchId=receipt.branch_id,
            createdBy=receipt.created_by,
            createdAt=receipt.created_at,
            notes=receipt.notes,
        )

class DuplicateCheckResponse(BaseModel):
    isDuplicate: bool
    existingReceipt: Optional[DepositReceiptResponse] = None
    warning: Optional[str] = None

# --- Dashboard Schemas ---
class CurrencyTotal(BaseModel):
    currency: Currency
    count: int
    totalAmount: float

class DashboardSummary(BaseModel):
    totalClients: int
    clientsByStatus: dict[str, int]
    totalDeposits: int
    depositsByCurrency: list[CurrencyTotal]
    lastUpdated: datetime
