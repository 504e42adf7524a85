"""
TravelHub - Create Admin
==========================
Registration over HTTP always creates CLIENT accounts; admins are made here.

Usage:
    python scripts/create_admin.py <email> <password> [name]
    python scripts/create_admin.py <email> --promote   # existing user -> ADMIN
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.database import SessionLocal, Base, engine
from config.settings import PASSWORD_MIN_LENGTH
from common.exceptions import TravelHubError
from common.helpers import normalize_email
from modules.user.models import User, UserRole
from modules.auth.service import auth_service


def create_admin(email: str, password: str, name: str = "Admin"):
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        _, user = auth_service.register(db, email, password, name, role=UserRole.ADMIN)
        db.commit()
        print(f"Admin created: {user.email} (id={user.id})")
    except TravelHubError as e:
        db.rollback()
        print(f"Failed: {e.message}")
        sys.exit(1)
    finally:
        db.close()


def promote(email: str):
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == normalize_email(email)).first()
        if not user:
            print(f"No user with email {email}")
            sys.exit(1)
        user.role = UserRole.ADMIN.value
        db.commit()
        print(f"{user.email} is now ADMIN")
    finally:
        db.close()


if __name__ == "__main__":
    args = sys.argv[1:]
    if len(args) == 2 and args[1] == "--promote":
        promote(args[0])
    elif len(args) in (2, 3):
        if len(args[1]) < PASSWORD_MIN_LENGTH:
            print(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
            sys.exit(1)
        create_admin(*args)
    else:
        print(__doc__)
        sys.exit(1)
