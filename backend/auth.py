"""
Login check for the back-office screens.

Verification is behind CredentialVerifier so a real user store can replace
FixedAccountVerifier later. The fixed account is a single shared admin login
taken from config and is not meant for production use. No token or session is
issued; the client keeps its own logged-in flag.
"""
import logging
import secrets
from typing import Optional

from passlib.context import CryptContext

from config import ADMIN_PASSWORD, ADMIN_USERNAME

logger = logging.getLogger(__name__)

try:
    pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
    pwd_context.hash("test")
except Exception as e:
    logger.warning("bcrypt not available (%s), using pbkdf2_sha256", e)
    pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


class CredentialVerifier:
    def authenticate(self, username: str, password: str) -> Optional[dict]:
        """Return the public user record on success, None otherwise."""
        raise NotImplementedError

    def current_user(self) -> dict:
        """Public record of the account this verifier reports as signed in."""
        raise NotImplementedError


class FixedAccountVerifier(CredentialVerifier):
    def __init__(self, username: str, password: str):
        self.username = username
        self.password_hash = get_password_hash(password)

    def authenticate(self, username: str, password: str) -> Optional[dict]:
        if not secrets.compare_digest(username.encode(), self.username.encode()):
            return None
        if not verify_password(password, self.password_hash):
            return None
        return {"username": self.username}

    def current_user(self) -> dict:
        return {"username": self.username}


verifier = FixedAccountVerifier(ADMIN_USERNAME, ADMIN_PASSWORD)


def get_verifier() -> CredentialVerifier:
    return verifier
