#!/usr/bin/env python3
"""Create (or reset) an admin account; admins cannot sign up through the API."""
import argparse

from common.auth import get_password_hash
from common.database import Base, SessionLocal, engine
from common.models import RoleEnum, User


def create_admin(email: str, password: str, name: str) -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            existing.hashed_password = get_password_hash(password)
            existing.role = RoleEnum.ADMIN
            existing.name = name
            db.commit()
            print(f"Updated existing admin user: {email}")
        else:
            db.add(User(name=name, email=email, role=RoleEnum.ADMIN, hashed_password=get_password_hash(password)))
            db.commit()
            print(f"Created admin user: {email}")
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create an admin user")
    parser.add_argument("--email", default="admin@campus.edu", help="Admin email")
    parser.add_argument("--password", required=True, help="Admin password")
    parser.add_argument("--name", default="Administrator", help="Display name")
    args = parser.parse_args()

    create_admin(email=args.email, password=args.password, name=args.name)
