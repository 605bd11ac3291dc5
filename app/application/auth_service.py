import logging
from typing import Optional, Tuple

from app.core.security import hash_password, verify_password
from app.domain.errors import Unauthenticated, UsernameTaken, ValidationError
from app.domain.models import Actor, Role, User
from app.infrastructure.session_store import SessionStore
from app.interfaces.IInventoryRepository import IInventoryRepository

logger = logging.getLogger(__name__)

MAX_USERNAME_LENGTH = 50


class AuthService:
    def __init__(self, user_repo: IInventoryRepository, sessions: SessionStore):
        self.user_repo = user_repo
        self.sessions = sessions

    @staticmethod
    def _check_credentials(username: Optional[str], password: Optional[str]) -> str:
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError("Username and password are required")
        if len(username) > MAX_USERNAME_LENGTH:
            raise ValidationError(f"Username must be at most {MAX_USERNAME_LENGTH} characters")
        return username

    def register(self, username: Optional[str], password: Optional[str]) -> Tuple[User, str]:
        """Create a customer account and log it in. Roles are never taken from the caller."""
        username = self._check_credentials(username, password)
        user = self.user_repo.insert_user(
            User(username=username, password_hash=hash_password(password), role=Role.CUSTOMER)
        )
        logger.info(f"👤 User registered: {username}")
        return user, self.sessions.create(Actor(username=user.username, role=user.role))

    def login(self, username: Optional[str], password: Optional[str]) -> Tuple[User, str]:
        username = self._check_credentials(username, password)
        user = self.user_repo.get_user(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.info(f"🔒 Login failed for {username}")
            raise Unauthenticated("Invalid username or password")
        logger.info(f"🔓 Login successful for {username}")
        return user, self.sessions.create(Actor(username=user.username, role=user.role))

    def logout(self, token: str) -> None:
        self.sessions.delete(token)

    def resolve(self, token: Optional[str]) -> Optional[Actor]:
        if not token:
            return None
        return self.sessions.get(token)

    def seed_admin(self, username: Optional[str], password: Optional[str]) -> Optional[User]:
        """Create the configured admin account if it does not exist yet."""
        if not username or not password:
            return None
        existing = self.user_repo.get_user(username)
        if existing is not None:
            return existing
        try:
            user = self.user_repo.insert_user(
                User(username=username, password_hash=hash_password(password), role=Role.ADMIN)
            )
        except UsernameTaken:
            return self.user_repo.get_user(username)
        logger.info(f"👑 Admin account '{username}' seeded")
        return user
