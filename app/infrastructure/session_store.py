import json
import logging
import time
from typing import Optional

import redis
from redis.exceptions import RedisError

from app.core.security import new_session_token
from app.domain.models import Actor

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Maps opaque session tokens to the logged-in user.

    Redis is the primary store; when it is missing or fails, sessions live in
    process memory until Redis is configured again.
    """

    def __init__(self, redis_url: Optional[str] = None, ttl: int = 24 * 60 * 60):
        self.ttl = ttl
        self.redis = None
        self.redis_available = False

        # 1. Primary Memory (Redis)
        if redis_url:
            try:
                self.redis = redis.from_url(
                    redis_url,
                    decode_responses=True,
                    socket_connect_timeout=1  # Fail fast if Redis is down
                )
                self.redis.ping()
                self.redis_available = True
                logger.info("✅ SessionStore: Connected to Redis.")
            except RedisError as e:
                logger.warning(f"⚠️ SessionStore: Redis unreachable ({e}). Using RAM fallback.")
        else:
            logger.info("ℹ️ SessionStore: REDIS_URL not set. Using RAM sessions.")

        # 2. Fallback Memory (RAM): token -> (expires_at, payload)
        self._memory_store = {}

    @staticmethod
    def _key(token: str) -> str:
        return f"session:{token}"

    def create(self, actor: Actor) -> str:
        """Start a session for ``actor`` and return its token."""
        token = new_session_token()
        payload = json.dumps({"username": actor.username, "role": actor.role.value})
        key = self._key(token)

        if self.redis_available:
            try:
                self.redis.setex(key, self.ttl, payload)
                return token
            except RedisError as e:
                self._handle_redis_error(e)

        self._memory_store[key] = (time.monotonic() + self.ttl, payload)
        return token

    def get(self, token: str) -> Optional[Actor]:
        """The actor behind ``token``, or None if unknown or expired."""
        if not token:
            return None
        key = self._key(token)
        data = None

        if self.redis_available:
            try:
                data = self.redis.get(key)
            except RedisError as e:
                self._handle_redis_error(e)

        if data is None:
            entry = self._memory_store.get(key)
            if entry:
                expires_at, payload = entry
                if expires_at > time.monotonic():
                    data = payload
                else:
                    self._memory_store.pop(key, None)

        if not data:
            return None
        return Actor.model_validate(json.loads(data))

    def delete(self, token: str) -> None:
        key = self._key(token)
        if self.redis_available:
            try:
                self.redis.delete(key)
            except RedisError as e:
                self._handle_redis_error(e)
        self._memory_store.pop(key, None)

    def _handle_redis_error(self, e):
        """Log error and stop trying Redis; sessions fall back to RAM."""
        logger.error(f"❌ Redis Error: {e}. Switching to RAM mode.")
        self.redis_available = False
