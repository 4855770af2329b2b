#!/usr/bin/env python
"""
Create (or promote) an admin account. Admins cannot self-register.

Usage:
    python -m medibook.scripts.create_admin --email admin@example.com --password Secret123
    medibook-create-admin  # falls back to ADMIN_EMAIL / ADMIN_PASSWORD settings
"""
import argparse
import logging
import sys

from medibook.core.config import settings
from medibook.core.database import SessionLocal, init_db
from medibook.services.auth_service import AuthService

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create a MediBook admin account")
    parser.add_argument("--email", default=settings.ADMIN_EMAIL)
    parser.add_argument("--password", default=settings.ADMIN_PASSWORD)
    parser.add_argument("--name", default="Administrator")
    args = parser.parse_args(argv)

    if not args.email or not args.password:
        parser.error("--email and --password are required (or set ADMIN_EMAIL / ADMIN_PASSWORD)")

    init_db()
    db = SessionLocal()
    try:
        user = AuthService(db).create_admin(args.email, args.password, args.name)
        logger.info(f"Admin account ready: {user.email} (id={user.id})")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
