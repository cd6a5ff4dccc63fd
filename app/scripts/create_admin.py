"""
Create the first admin account.

Usage:
    python -m app.scripts.create_admin [username] [email] [password] [first_name] [last_name]

Does nothing when an admin already exists.
"""

import argparse
import logging
import sys

from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.models import RoleName, User
from app.utils.security import hash_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def create_admin(
    db: Session, username: str, email: str, password: str,
    first_name: str = "System", last_name: str = "Administrator",
) -> User | None:
    """Create an admin user unless one exists. Returns the new user, or None if skipped."""
    existing = db.query(User).filter(User.role == RoleName.ADMIN).first()
    if existing:
        logger.info(f"Admin already exists: {existing.username} <{existing.email}>")
        return None

    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    admin = User(
        username=username,
        email=email,
        password=hash_password(password),
        firstName=first_name,
        lastName=last_name,
        role=RoleName.ADMIN,
        isActive=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"Admin user created: {admin.username} <{admin.email}>")
    return admin


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create the first admin account")
    parser.add_argument("username", nargs="?", default="admin")
    parser.add_argument("email", nargs="?", default="admin@university.ac.uk")
    parser.add_argument("password", nargs="?", default="admin123")
    parser.add_argument("first_name", nargs="?", default="System")
    parser.add_argument("last_name", nargs="?", default="Administrator")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    try:
        with SessionLocal() as db:
            create_admin(db, args.username, args.email, args.password, args.first_name, args.last_name)
    except ValueError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
