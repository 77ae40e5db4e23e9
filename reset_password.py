#!/usr/bin/env python3
"""
Reset a user's password.

This script DOES NOT read or reveal any existing passwords.  It sets a
new PBKDF2-HMAC-SHA256 hash (format "salthex$hashhex") for the active
user with the given email in the database named by ``DATABASE_URL``
(or ``--db-url``).

Usage:
    python reset_password.py --email admin@example.com --password "NewStrongPass!234"

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import getpass
import sys

from project_manager_api.app.core.config import settings
from project_manager_api.app.core.db import make_engine, make_sessionmaker
from project_manager_api.app.core.errors import DomainError
from project_manager_api.app.core.security import hash_password
from project_manager_api.app.repositories.user import UserRepository


def main():
    ap = argparse.ArgumentParser(description="Reset a user's password.")
    ap.add_argument("--db-url", default=settings.database_url, help="SQLAlchemy database URL")
    ap.add_argument("--email", required=True, help="User email to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args()

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if not new_password:
        print("[!] Empty password is not allowed.", file=sys.stderr)
        sys.exit(1)

    session = make_sessionmaker(make_engine(args.db_url))()
    try:
        repo = UserRepository(session)
        user = repo.find_by_email(args.email)
        if user is None:
            print(f"[!] No user found with email: {args.email}", file=sys.stderr)
            sys.exit(2)
        repo.update(user.id, {"password": hash_password(new_password)})
        print(f"[+] Password updated for user: {args.email}")
    except DomainError as exc:
        print(f"[!] {exc.message}", file=sys.stderr)
        sys.exit(1)
    finally:
        session.close()


if __name__ == "__main__":
    main()
