"""
PlantDex Backend — Account Service
===================================

What:  Registration and credential checks for session login.
How:   passlib CryptContext with salted pbkdf2_sha256 hashes; verification
       goes through passlib, which compares digests in constant time.
Who:   /api/register and /api/login route handlers.
"""

import logging

from passlib.context import CryptContext

from plantdex.exceptions import ConflictError, UnauthenticatedError
from plantdex.schemas.user import UserRecord
from plantdex.stores.base import RecordStore

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # Unrecognized hash format in the users table
        logger.error("Stored password hash could not be parsed")
        return False


class AuthService:
    def __init__(self, store: RecordStore):
        self.store = store

    async def register(self, username: str, password: str) -> UserRecord:
        """
        Create an account.

        Raises:
            ConflictError: username taken
        """
        if await self.store.get_user_by_username(username) is not None:
            raise ConflictError(message="Username already exists", context={"username": username})
        user = await self.store.create_user(username, hash_password(password))
        logger.info("Registered user %d", user.id)
        return user

    async def authenticate(self, username: str, password: str) -> UserRecord:
        """
        Check credentials.

        Raises:
            UnauthenticatedError: unknown username or wrong password (same
                message for both)
        """
        user = await self.store.get_user_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt for username '%s'", username)
            raise UnauthenticatedError(message="Invalid username or password")
        return user
