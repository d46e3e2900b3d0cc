from sqlmodel import Session, func, select

from core.database import store_errors
from core.permissions import branch_scope
from models import Client, ClientStatus, DepositReceipt, User, utc_now
from schemas.schemas import CurrencyTotal, DashboardSummary


def get_summary(session: Session, current_user: User) -> DashboardSummary:
    """Client and deposit totals within the caller's visible scope."""
    scope = branch_scope(current_user)
    by_status = {status.value: 0 for status in ClientStatus}
    currencies: list[CurrencyTotal] = []

    if scope != "":
        client_stmt = select(Client.status, func.count(Client.id)).group_by(Client.status)
        deposit_stmt = select(
            DepositReceipt.deposit_currency,
            func.count(DepositReceipt.id),
            func.coalesce(func.sum(DepositReceipt.deposit_amount), 0),
        ).group_by(DepositReceipt.deposit_currency)
        if scope is not None:
            client_stmt = client_stmt.where(Client.branch_id == scope)
            deposit_stmt = deposit_stmt.where(DepositReceipt.branch_id == scope)

        with store_errors(session, "Error al cargar el resumen"):
            for status, count in session.exec(client_stmt).all():
                by_status[ClientStatus(status).value] = int(count)
            for currency, count, total in session.exec(deposit_stmt).all():
                currencies.append(CurrencyTotal(currency=currency, count=int(count), totalAmount=float(total or 0)))

    return DashboardSummary(
        totalClients=sum(by_status.values()),
        clientsByStatus=by_status,
        totalDeposits=sum(c.count for c in currencies),
        depositsByCurrency=sorted(currencies, key=lambda c: c.currency.value),
        lastUpdated=utc_now(),
    )
