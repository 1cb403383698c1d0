"""Password hashing for protected shares."""

import bcrypt

# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def get_password_hash(password: str) -> str:
    """
    Hash a share password using bcrypt.

    Passwords longer than 72 bytes are truncated, so any suffix past that
    point is ignored on verification as well.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hash of the password
    """
    hashed = bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=10))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check a plain password against a stored bcrypt hash.

    Args:
        password: Plain text password supplied by the caller
        password_hash: Hash stored on the share record

    Returns:
        True if the password matches, False otherwise
    """
    if not password or not password_hash:
        return False
    return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
