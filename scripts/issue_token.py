import argparse
import os
import sys

# Add current directory to path
sys.path.append(os.getcwd())

from budget_tracker.core.config import settings
from budget_tracker.core.security import create_access_token
from budget_tracker.models.user import UserCreate, UserRole
from budget_tracker.persistence import build_adapter
from budget_tracker.services.store import EntityStore


def issue_token(email: str, name: str) -> None:
    print("--- Access Token ---")

    store = EntityStore(build_adapter(settings), settings)
    store.load()

    user = store.find_user_by_email(email)
    if user:
        print(f"Using existing user {email} ({user.role.value}).")
    elif any(u.role == UserRole.SUPER_ADMIN for u in store.list_users()):
        print(f"No user with email {email}; ask a super admin to create it.")
        store.close()
        sys.exit(1)
    else:
        print(f"Creating super admin {email}...")
        user = store.create_user(UserCreate(name=name, email=email, role=UserRole.SUPER_ADMIN))

    store.close()
    print(f"User id: {user.id}")
    print(f"Token: {create_access_token(user.id)}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Mint a bearer token, bootstrapping the first super admin.")
    parser.add_argument("--email", default="admin@example.com")
    parser.add_argument("--name", default="Super Admin")
    args = parser.parse_args()
    issue_token(args.email, args.name)
