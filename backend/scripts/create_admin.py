"""CLI script to create an admin account, or promote an existing user.
Usage: python scripts/create_admin.py EMAIL [--password PW] [--name NAME]
"""
import sys
import argparse
import pathlib
from datetime import datetime, timezone
from typing import Optional
# Ensure `backend/` is on sys.path so `pethub` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from pethub.database import engine, create_db_and_tables
from pethub import models, repositories
from pethub.services import PWD_CTX


def main(email: str, password: Optional[str] = None, name: str = 'Administrator') -> int:
    """Promote `email` to admin, creating the account when it is missing.

    A password is only required for a new account. Returns a process
    exit code.
    """
    create_db_and_tables()
    with Session(engine) as session:
        repo = repositories.UserRepository(session)
        user = repo.get_by_email(email)
        if user:
            if user.is_admin:
                print(f'{user.email} is already an admin')
                return 0
            user.is_admin = True
            repo.save(user)
            print(f'Promoted {user.email} to admin')
            return 0
        if not password or len(password) < 6:
            print('A password of at least 6 characters is required for a new account')
            return 1
        user = models.User(
            full_name=name,
            email=email.strip().lower(),
            password_hash=PWD_CTX.hash(password),
            gender='unspecified',
            birthdate=datetime(1970, 1, 1, tzinfo=timezone.utc),
            is_admin=True,
        )
        repo.save(user)
        print(f'Created admin {user.email} (id {user.id})')
        return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('email', help='Email of the account to create or promote')
    parser.add_argument('--password', help='Password for a new account')
    parser.add_argument('--name', default='Administrator', help='Full name for a new account')
    args = parser.parse_args()
    sys.exit(main(args.email, password=args.password, name=args.name))
