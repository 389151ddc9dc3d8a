"""
Landing CMS - Database Seed Script

Creates the initial super admin account.

Usage:
    SEED_ADMIN_EMAIL=owner@example.com python scripts/seed_users.py

The password is read from SEED_ADMIN_PASSWORD or prompted for.
"""

import getpass
import os
import sys

from sqlmodel import Session, select

from landing_cms.config import get_settings
from landing_cms.auth.database import get_engine, init_db
from landing_cms.auth.models import User, Role
from landing_cms.auth.password import PasswordHasher
from landing_cms.auth.schemas import CreateUserRequest


def seed_super_admin(email: str, password: str, full_name: str = "") -> bool:
    """
    Create a super admin unless the email is already taken.

    Returns:
        True if an account was created
    """
    # Reuse the API's email and password rules
    request = CreateUserRequest(email=email, password=password, full_name=full_name, role=Role.SUPER_ADMIN)

    settings = get_settings()
    engine = get_engine(settings.DATABASE_URL)
    init_db(engine)

    try:
        with Session(engine) as session:
            existing = session.exec(select(User).where(User.email == request.email)).first()
            if existing:
                print(f"User {request.email} already exists.")
                return False

            hasher = PasswordHasher(rounds=settings.BCRYPT_COST)
            session.add(User(
                email=request.email,
                password_hash=hasher.hash(request.password),
                full_name=request.full_name,
                role=Role.SUPER_ADMIN,
            ))
            session.commit()
    finally:
        engine.dispose()

    print("Super admin created successfully!")
    print(f"  Email: {request.email}")
    print(f"  Role: {Role.SUPER_ADMIN.value}")
    return True


if __name__ == "__main__":
    print("=" * 50)
    print("Landing CMS - User Seed Script")
    print("=" * 50)

    email = os.environ.get("SEED_ADMIN_EMAIL") or input("Admin email: ").strip()
    password = os.environ.get("SEED_ADMIN_PASSWORD") or getpass.getpass("Admin password: ")

    try:
        seed_super_admin(email, password, os.environ.get("SEED_ADMIN_NAME", ""))
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print()
    print("Done!")
