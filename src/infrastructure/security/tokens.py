import os
from datetime import datetime, timedelta, timezone
from typing import Optional, TypedDict

from dotenv import load_dotenv
from jose import ExpiredSignatureError, JWTError, jwt

from src.domain.exceptions import ExpiredCredentialError, InvalidCredentialError

load_dotenv()

JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production")
ALGORITHM = "HS256"
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "1440"))  # 24 hours


class Identity(TypedDict):
    user_id: str
    email: str


def create_access_token(
    user_id: str,
    email: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed bearer token for the given user.
    """
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + (expires_delta or timedelta(minutes=JWT_EXPIRE_MINUTES))
    claims = {
        "sub": user_id,
        "email": email,
        "iat": issued_at,
        "exp": expire,
    }
    return jwt.encode(claims, JWT_SECRET, algorithm=ALGORITHM)


def verify_token(token: str) -> Identity:
    """
    Verify a bearer token and return the identity it carries.

    Raises ExpiredCredentialError when the token is past its expiry and
    InvalidCredentialError for anything else that fails verification.
    """
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[ALGORITHM])
    except ExpiredSignatureError as exc:
        raise ExpiredCredentialError() from exc
    except JWTError as exc:
        raise InvalidCredentialError("Invalid token. Please login again.") from exc

    user_id = payload.get("sub")
    if not user_id:
        raise InvalidCredentialError("Invalid token. Please login again.")

    return Identity(user_id=user_id, email=payload.get("email", ""))
