#!/usr/bin/env python3
"""
Create the storefront schema and optionally seed an admin account
==================================================================

Tables come from the SQLAlchemy models in storefront.models; existing tables
are left untouched. The chat settings row is created with its defaults.

Usage:
    python -m storefront.scripts.init_db
    python -m storefront.scripts.init_db --admin-email admin@luxefashion.com --admin-password Secret123

Author: TM3
Date: 2025-10-17
"""
import os
import sys
import logging
from typing import Optional

from storefront.core.auth import hash_password
from storefront.core.database import Base, get_engine
from storefront.domain.user import check_password_strength
from storefront.repositories.chat_repository import ChatRepository
from storefront.repositories.user_repository import UserRepository
import storefront.models  # noqa: F401  (registers every table on Base.metadata)

logger = logging.getLogger(__name__)


def create_tables() -> None:
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    print(f"  ✅ {len(Base.metadata.tables)} tables ready")


def seed_admin(email: str, password: str, name: str = "Admin") -> Optional[int]:
    """Create the admin, or promote an existing account with that email"""
    repo = UserRepository()
    email = email.strip().lower()

    existing = repo.find_by_email(email)
    if existing:
        if existing.role != "admin":
            repo.update(existing.id, {"role": "admin", "is_active": True})
            print(f"  ✅ Promoted {email} to admin")
        else:
            print(f"  ⏭️  Admin {email} already exists")
        return existing.id

    check_password_strength(password)
    user = repo.create(name=name, email=email, password_hash=hash_password(password), role="admin")
    print(f"  ✅ Created admin {email} (id={user.id})")
    return user.id


def main() -> int:
    import argparse

    parser = argparse.ArgumentParser(description='Create storefront tables and seed an admin')
    parser.add_argument('--admin-email', default=os.getenv('ADMIN_EMAIL'), help='Admin email (or ADMIN_EMAIL)')
    parser.add_argument('--admin-password', default=os.getenv('ADMIN_PASSWORD'), help='Admin password (or ADMIN_PASSWORD)')
    parser.add_argument('--admin-name', default=os.getenv('ADMIN_NAME', 'Admin'))
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)

    print("=" * 80)
    print("INIT STOREFRONT DATABASE")
    print("=" * 80)

    try:
        create_tables()
        ChatRepository().get_settings()
        print("  ✅ Chat settings ready")

        if args.admin_email and args.admin_password:
            seed_admin(args.admin_email, args.admin_password, args.admin_name)
        elif args.admin_email or args.admin_password:
            print("  ⚠️  Both --admin-email and --admin-password are needed to seed an admin")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        return 1

    print("\n" + "=" * 80)
    print("DONE")
    print("=" * 80)
    return 0


if __name__ == "__main__":
    sys.exit(main())
