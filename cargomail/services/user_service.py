from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import get_password_hash, verify_password
from ..database import User
from ..errors import DuplicateKeyError, NotFoundError
from .history import HistorySequencer

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def register(
        self,
        username: str,
        email: str,
        password: str,
        full_name: Optional[str] = None,
    ) -> User:
        existing = (
            self.db.query(User)
            .filter((User.username == username) | (User.email == email))
            .first()
        )
        if existing:
            raise DuplicateKeyError("Username or email already registered")

        user = User(
            username=username,
            email=email,
            full_name=full_name,
            hashed_password=get_password_hash(password),
        )
        try:
            self.db.add(user)
            self.db.flush()
            HistorySequencer(self.db).ensure_sequences(user.id)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateKeyError("Username or email already registered")

        logger.info(f"Registered user {user.username} (ID: {user.id})")
        return user

    def authenticate(self, username: str, password: str) -> Optional[User]:
        # Username first, then email
        user = self.get_by_username(username)
        if not user:
            user = self.db.query(User).filter(User.email == username).first()
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    def update_profile(self, user_id: int, data: dict) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")

        for field in ("email", "full_name"):
            if field in data and data[field] is not None:
                setattr(user, field, data[field])
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateKeyError("Email already registered")
        return user
