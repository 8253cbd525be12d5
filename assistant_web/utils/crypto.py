"""Fernet-based access tokens."""

from cryptography.fernet import Fernet, InvalidToken

from assistant_web.config import settings


def _get_fernet() -> Fernet:
    key = settings.secret_key.encode()
    # Fernet key must be 32-byte base64-encoded. If the user hasn't set a real
    # key, generate a deterministic one from the raw value (dev convenience).
    try:
        return Fernet(key)
    except ValueError:
        import base64
        import hashlib

        derived = base64.urlsafe_b64encode(hashlib.sha256(key).digest())
        return Fernet(derived)


def issue_token(user_id: str) -> str:
    return _get_fernet().encrypt(user_id.encode()).decode()


def verify_token(token: str) -> str | None:
    """Return the user the token was issued to, or None if invalid or expired."""
    try:
        return _get_fernet().decrypt(token.encode(), ttl=settings.token_ttl).decode()
    except (InvalidToken, UnicodeError):
        return None
