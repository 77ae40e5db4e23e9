"""Mint a long-lived access token for an existing account.

Usage:
    python create_token.py --user-id 1 --email admin@example.com --role ADMIN [--days 365]
"""
import argparse

from project_manager_api.app.core.security import create_access_token, principal_claims
from project_manager_api.app.models.enums import UserRole


def main() -> None:
    ap = argparse.ArgumentParser(description="Create a signed access token.")
    ap.add_argument("--user-id", type=int, required=True)
    ap.add_argument("--email", required=True)
    ap.add_argument("--role", choices=[r.value for r in UserRole], default=UserRole.ADMIN.value)
    ap.add_argument("--days", type=int, default=365, help="Token lifetime in days")
    args = ap.parse_args()

    token = create_access_token(
        principal_claims(args.user_id, UserRole(args.role), args.email),
        expires_delta=args.days * 24 * 60 * 60,
    )
    print(token)


if __name__ == "__main__":
    main()
