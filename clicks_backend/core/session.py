"""
Session provider: turns a Supabase access token into the current user.

Resolved sessions are cached for a short TTL to avoid a round trip to Supabase
Auth on every request. The cache follows the auth-state-change events the
shared Supabase client emits for the whole process lifetime.
"""

import hashlib
import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel
from supabase import Client

from clicks_backend.config.settings import settings
from clicks_backend.core.exceptions import Unauthenticated

logger = logging.getLogger(__name__)

# Events after which cached identities may be stale
_INVALIDATING_EVENTS = {"SIGNED_OUT", "USER_UPDATED", "USER_DELETED"}
# Events that hand us a fresh session worth caching
_SEEDING_EVENTS = {"SIGNED_IN", "TOKEN_REFRESHED"}


class UserSession(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = {}
    app_metadata: Dict[str, Any] = {}
    created_at: Optional[Any] = None
    updated_at: Optional[Any] = None

    @classmethod
    def from_user(cls, user) -> "UserSession":
        return cls(
            id=user.id,
            email=user.email,
            user_metadata=user.user_metadata or {},
            app_metadata=user.app_metadata or {},
            created_at=user.created_at,
            updated_at=getattr(user, "updated_at", None),
        )


def _cache_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class SessionProvider:
    def __init__(self, ttl_sec: int = 60, max_size: int = 500, clock=time.monotonic):
        self.ttl_sec = ttl_sec
        self.max_size = max_size
        self._clock = clock
        self._cache: Dict[str, Tuple[UserSession, float]] = {}
        self._lock = threading.Lock()
        self._subscription = None

    def resolve(self, supabase: Client, token: str) -> UserSession:
        """Return the user behind an access token, or raise Unauthenticated."""
        if not token:
            raise Unauthenticated()
        key = _cache_key(token)
        now = self._clock()
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                session, expiry = cached
                if now < expiry:
                    return session
                del self._cache[key]
        try:
            user_response = supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.info(f"Token rejected by Supabase Auth: {e}")
            raise Unauthenticated("Invalid or expired token")
        if not user_response or not user_response.user:
            raise Unauthenticated("Invalid or expired token")
        session = UserSession.from_user(user_response.user)
        self._store(key, session, now)
        return session

    def _store(self, key: str, session: UserSession, now: float) -> None:
        if self.max_size <= 0:
            return
        with self._lock:
            if key not in self._cache and len(self._cache) >= self.max_size:
                for stale in [k for k, (_, expiry) in self._cache.items() if expiry <= now]:
                    del self._cache[stale]
                if len(self._cache) >= self.max_size:
                    # Oldest entry first; dicts keep insertion order
                    del self._cache[next(iter(self._cache))]
            self._cache[key] = (session, now + self.ttl_sec)

    def invalidate(self, token: Optional[str] = None) -> None:
        """Drop one cached token, or every cached session when no token is given."""
        with self._lock:
            if token is None:
                self._cache.clear()
            else:
                self._cache.pop(_cache_key(token), None)

    def handle_auth_event(self, event, session) -> None:
        name = getattr(event, "value", event)
        if name in _INVALIDATING_EVENTS:
            logger.info(f"Auth state changed ({name}); clearing cached sessions")
            self.invalidate()
        elif name in _SEEDING_EVENTS and session is not None and session.user:
            self._store(
                _cache_key(session.access_token),
                UserSession.from_user(session.user),
                self._clock(),
            )

    def subscribe(self, supabase: Client) -> None:
        if self._subscription is not None:
            return
        self._subscription = supabase.auth.on_auth_state_change(self.handle_auth_event)
        logger.info("Subscribed to Supabase auth state changes")

    def unsubscribe(self) -> None:
        if self._subscription is None:
            return
        self._subscription.unsubscribe()
        self._subscription = None


session_provider = SessionProvider(
    ttl_sec=settings.session_cache_ttl_sec,
    max_size=settings.session_cache_max_size,
)


def get_session_provider() -> SessionProvider:
    return session_provider
