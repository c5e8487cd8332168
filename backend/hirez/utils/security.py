import logging

import bcrypt

from .error_handlers import ValidationError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of the secret.
BCRYPT_MAX_BYTES = 72
BCRYPT_ROUNDS = 10


def hash_password(password: str) -> str:
    """Hash an account password with bcrypt (10 rounds)."""
    if not password:
        raise ValidationError("Password is required")

    pw_bytes = password.encode("utf-8")
    if len(pw_bytes) > BCRYPT_MAX_BYTES:
        raise ValidationError(f"Password must be {BCRYPT_MAX_BYTES} bytes or less")

    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    pw_bytes = password.encode("utf-8")
    if len(pw_bytes) > BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        logger.warning("Stored password hash is malformed")
        return False
