import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.domain.exceptions import (
    DuplicateEmailError,
    InvalidCredentialError,
    NotFoundError,
    UnavailableError,
    ValidationFailureError,
)
from src.infrastructure.db.models import User
from src.infrastructure.db.session import run_atomic
from src.infrastructure.repositories.user_repository import UserRepository
from src.infrastructure.security.passwords import (
    MAX_PASSWORD_BYTES,
    hash_password,
    verify_password,
)
from src.infrastructure.security.tokens import create_access_token

logger = logging.getLogger(__name__)


class AuthService:
    """Registration, login and profile lookup."""

    def __init__(self, db: Session):
        self.db = db
        self.user_repository = UserRepository(db)

    def register(
        self,
        name: str,
        email: str,
        password: str,
        contact_number: str | None = None,
    ) -> tuple[User, str]:
        if not name.strip() or not email or not password:
            raise ValidationFailureError("Name, email and password are required")

        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationFailureError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
            )

        if self.user_repository.get_by_email(email):
            raise DuplicateEmailError()

        password_hash = hash_password(password)
        try:
            (user,) = run_atomic(
                self.db,
                [
                    lambda: self.user_repository.create_user(
                        name=name.strip(),
                        email=email,
                        password_hash=password_hash,
                        contact_number=contact_number,
                    ),
                ],
            )
        except UnavailableError as exc:
            # A concurrent registration took the email after the check above.
            if isinstance(exc.__cause__, IntegrityError):
                raise DuplicateEmailError() from exc
            raise

        logger.info("User registered. user_id=%s", user.id)
        return user, create_access_token(user.id, user.email)

    def login(self, email: str, password: str) -> tuple[User, str]:
        user = self.user_repository.get_by_email(email)

        if not user or not verify_password(password, user.password_hash):
            logger.warning("Login rejected: invalid credentials.")
            raise InvalidCredentialError("Invalid credentials")

        return user, create_access_token(user.id, user.email)

    def get_profile(self, user_id: str) -> User:
        user = self.user_repository.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user
