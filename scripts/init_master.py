import sys
import os
import argparse
import getpass

# Add project root to sys.path to resolve imports
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from sqlmodel import Session

from core.database import create_db_and_tables, engine
from core.errors import AppError
from models import Role
from schemas.schemas import UserCreate
from services.user_service import create_user


def add_user(email, password, username, role, branch_id=None):
    create_db_and_tables()
    with Session(engine) as session:
        try:
            user = create_user(session, UserCreate(
                email=email,
                password=password,
                username=username,
                role=role,
                branchId=branch_id,
            ))
        except AppError as e:
            print(f"Error: {e.message}")
            return None
        print(f"Successfully created user: {user.username} ({user.role.value}) id={user.id}")
        return user


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a CRM account (MASTER by default)")
    parser.add_argument("--email", help="Email")
    parser.add_argument("--password", help="Password")
    parser.add_argument("--username", help="Username", default="master")
    parser.add_argument("--role", help="Role (MASTER/ADMIN/USER)", default="MASTER", choices=[r.value for r in Role])
    parser.add_argument("--branch-id", help="Branch id (required for USER accounts)", default=None)
    parser.add_argument("--interactive", action="store_true", help="Run in interactive mode")

    args = parser.parse_args()

    if args.interactive:
        print("--- Create Account ---")
        email = input("Email: ")
        password = getpass.getpass("Password: ")
        username = input("Username [master]: ") or "master"
        role = input("Role (MASTER/ADMIN/USER) [MASTER]: ") or "MASTER"
        branch_id = input("Branch id (optional): ") or None
        add_user(email, password, username, Role(role.upper()), branch_id)

    elif args.email and args.password:
        add_user(args.email, args.password, args.username, Role(args.role), args.branch_id)
    else:
        print("Error: Please provide --email and --password, or use --interactive")
        parser.print_help()
