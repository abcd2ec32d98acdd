# billed/seed_users.py
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from billed.db import SessionLocal
from billed import models
from billed.auth import get_password_hash

logger = logging.getLogger(__name__)

DEMO_USERS = (
    # (email, password, role)
    ("employee@test.tld", "employee", "Employee"),
    ("admin@test.tld", "admin", "Admin"),
)

def ensure_user(db: Session, email: str, password: str, role: str) -> models.User:
    existing = db.execute(
        select(models.User).where(models.User.email == email)
    ).scalar_one_or_none()

    if existing:
        logger.info("User already exists: %s", email)
        return existing

    user = models.User(
        email=email,
        hashed_password=get_password_hash(password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User created: %s (%s)", email, role)
    return user

def ensure_demo_users() -> None:
    db = SessionLocal()
    try:
        for email, password, role in DEMO_USERS:
            ensure_user(db, email, password, role)
    finally:
        db.close()
