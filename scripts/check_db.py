from sqlmodel import Session, select, func
import sys
import os

# Add project root to sys.path to resolve imports
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.config import settings
from core.database import engine
from models import Branch, User, Client, DepositReceipt, Credential


def check_table(model, model_name):
    try:
        with Session(engine) as session:
            statement = select(func.count()).select_from(model)
            count = session.exec(statement).one()
            print(f"--- {model_name} ({count} rows) ---")

            if count > 0:
                statement = select(model).limit(5)
                results = session.exec(statement).all()
                for row in results:
                    if isinstance(row, Credential):
                        print(f"Credential(id={row.id}, email={row.email}, failed_attempts={row.failed_attempts})")
                    else:
                        print(row)
            else:
                print("No data.")
            print("\n")
    except Exception as e:
        print(f"Error checking {model_name}: {e}")


def check_dangling_branches():
    # Deleting a branch does not cascade; list who was left without one
    with Session(engine) as session:
        branch_ids = set(session.exec(select(Branch.id)).all())
        users = session.exec(select(User).where(User.branch_id.is_not(None))).all()
        orphans = [u for u in users if u.branch_id not in branch_ids]
        print(f"--- Users without an existing branch ({len(orphans)}) ---")
        for u in orphans:
            print(f"{u.username:<20} {u.role.value:<8} branch_id={u.branch_id}")


if __name__ == "__main__":
    print(f"Checking database at: {settings.DATABASE_URL}\n")
    check_table(Branch, "Branch")
    check_table(User, "User")
    check_table(Client, "Client")
    check_table(DepositReceipt, "DepositReceipt")
    check_table(Credential, "Credential")
    check_dangling_branches()
