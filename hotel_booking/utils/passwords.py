"""
Guest and staff password hashing.

Kept apart from ``utils.auth`` so the ``User`` mapper hooks can hash on
insert and update without importing the token code, which imports ``User``.
"""
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, stored_hash: str) -> bool:
    """Check a login attempt against the hash stored on the user row."""
    return pwd_context.verify(plain_password, stored_hash)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)
