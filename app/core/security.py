import secrets

from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(plain: str) -> str:
    return generate_password_hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """Constant-time check of ``plain`` against a stored salted hash."""
    if not hashed:
        return False
    return check_password_hash(hashed, plain)


def new_session_token() -> str:
    return secrets.token_urlsafe(32)
