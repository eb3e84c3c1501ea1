import bcrypt

# bcrypt refuses inputs longer than this many bytes.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """
    Hash a password with a fresh bcrypt salt.
    """
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

    hashed = bcrypt.hashpw(encoded, bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    encoded = plain_password.encode("utf-8")
    # Nothing that long could have been hashed.
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False

    return bcrypt.checkpw(encoded, hashed_password.encode("utf-8"))
