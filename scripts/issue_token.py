"""
개발/운영용 액세스 토큰 발급

usage: python scripts/issue_token.py <username>
"""

import argparse
import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from partnerapi.config import settings
from partnerapi.database.connection import SessionLocal
from partnerapi.repositories.user_repository import UserRepository
from partnerapi.services.auth_service import AuthService


def main() -> int:
    parser = argparse.ArgumentParser(description="Issue a bearer token for a user")
    parser.add_argument("username")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        user = UserRepository(db).get_by_username(args.username)
        if user is None:
            print(f"User '{args.username}' not found")
            return 1
        token = AuthService(db, settings=settings).issue_token(user)
        print(token.access_token)
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
