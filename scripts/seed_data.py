"""
Development seed data

Creates an admin (also used as the platform commission account), a seller with
a payout account and a buyer, then prints a bearer token for each.
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from walletapi.core.security import create_access_token
from walletapi.database.session import get_db_context
from walletapi.models import User, UserRole
from walletapi.repositories.user_repository import UserRepository

SEED_USERS = [
    {"email": "admin@example.com", "username": "admin", "role": UserRole.ADMIN},
    {
        "email": "seller@example.com",
        "username": "seller",
        "role": UserRole.SELLER,
        "bank_name": "Vietcombank",
        "bank_account_number": "0011001234567",
        "bank_account_holder": "NGUYEN VAN SELLER",
        "bank_branch": "Ho Chi Minh",
    },
    {"email": "buyer@example.com", "username": "buyer", "role": UserRole.USER},
]


def seed_users():
    try:
        with get_db_context() as db:
            user_repo = UserRepository(db)
            seeded = []
            for data in SEED_USERS:
                user = user_repo.get_by_email(data["email"])
                if user is None:
                    user = user_repo.add(User(**dict(data, role=data["role"].value)), commit=False)
                seeded.append((user.id, UserRole(user.role).value, user.email))

        print(f"Seeded {len(seeded)} users")
        for user_id, role, email in seeded:
            token = create_access_token({"sub": user_id, "role": role})
            print(f"  {role:<7} id={user_id} {email}")
            print(f"          Bearer {token}")

    except Exception as e:
        print(f"Seeding failed: {str(e)}")
        raise


if __name__ == "__main__":
    seed_users()
