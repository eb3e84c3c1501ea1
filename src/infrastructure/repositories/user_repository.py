# src/infrastructure/repositories/user_repository.py

from sqlalchemy.orm import Session
from sqlalchemy import select

from src.infrastructure.db.models import User


class UserRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: str) -> User | None:
        stmt = select(User).where(User.id == user_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return self.db.execute(stmt).scalar_one_or_none()

    def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        contact_number: str | None,
    ) -> User:
        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            contact_number=contact_number,
        )
        self.db.add(user)
        self.db.flush()
        return user
