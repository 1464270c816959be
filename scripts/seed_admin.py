#!/usr/bin/env python3
"""Seed script to create the initial dashboard admin"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from sqlalchemy.orm import Session
from app.db.session import SessionLocal
from app.models.admin import Admin
from app.core.security import get_password_hash
from app.core.config import settings


def seed_admin(db: Session = None, email: str = None, password: str = None) -> bool:
    """Create the admin account if missing. Returns True when one was created."""
    owns_session = db is None
    db = db or SessionLocal()
    email = (email or settings.SUDO_ADMIN_EMAIL).lower().strip()
    password = password or settings.SUDO_ADMIN_PASSWORD
    try:
        # Check if admin already exists
        admin = db.query(Admin).filter(Admin.email == email).first()
        if admin:
            print(f"Admin user {email} already exists")
            return False

        admin = Admin(
            email=email,
            hashed_password=get_password_hash(password),
            role="admin",
        )
        db.add(admin)
        db.commit()
        print(f"Admin user created: {email}")
        print("Password: (use SUDO_ADMIN_PASSWORD from env)")
        return True
    except Exception as e:
        db.rollback()
        print(f"Error creating admin user: {e}")
        raise
    finally:
        if owns_session:
            db.close()


if __name__ == "__main__":
    seed_admin()
