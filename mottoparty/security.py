from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken
from flask import current_app
from passlib.context import CryptContext


pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, stored_hash: str) -> bool:
    return pwd_context.verify(password, stored_hash)


# ---------------------------------------------------------------------------
# Assignment encryption-at-rest
#
# Assigned mottos are stored as Fernet tokens so a peek at the database does
# not reveal who drew which motto before they look it up themselves.
#
# NOTE: anyone holding ASSIGNMENT_ENC_KEY or SECRET_KEY can still decrypt.
# ---------------------------------------------------------------------------


def _assignment_fernet() -> Fernet:
    """Returns a Fernet keyed by ASSIGNMENT_ENC_KEY or derived from SECRET_KEY."""
    explicit = (current_app.config.get("ASSIGNMENT_ENC_KEY") or "").strip()
    if explicit:
        # urlsafe base64-encoded 32-byte key
        return Fernet(explicit.encode("utf-8"))

    # Stable across restarts as long as SECRET_KEY is.
    secret = (current_app.config.get("SECRET_KEY") or "").encode("utf-8")
    digest = hashlib.sha256(b"mottoparty-assignments|" + secret).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def encrypt_assignment_text(text: str) -> str:
    return _assignment_fernet().encrypt(text.encode("utf-8")).decode("utf-8")


def decrypt_assignment_text(token: str) -> str:
    """Raises ValueError if the token was not produced with the current key."""
    try:
        return _assignment_fernet().decrypt(token.encode("utf-8")).decode("utf-8")
    except (InvalidToken, ValueError, TypeError) as e:
        raise ValueError("Invalid assignment token") from e
