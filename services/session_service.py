# services/session_service.py
"""
Admin session handling.

The browser holds a signed cookie carrying nothing but a random session id;
the session record itself lives server-side in SessionStore. Logging out
destroys the record, which invalidates the cookie even if it is replayed.
"""
import hmac
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from jose import JWTError, jwt

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
REMEMBER_VALUES = ("1", "on", "true", "yes")


@dataclass
class AdminSession:
     sid: str
     remember: bool
     created_at: float
     expires_at: float
     is_admin: bool = True


class SessionStore:
     """Thread-safe in-memory session records keyed by session id."""

     def __init__(
          self,
          ttl_seconds: float,
          remember_seconds: float,
          clock: Callable[[], float] = time.time
     ):
          self.ttl_seconds = ttl_seconds
          self.remember_seconds = remember_seconds
          self._clock = clock
          self._sessions: Dict[str, AdminSession] = {}
          self._lock = threading.Lock()

     def create(self, remember: bool = False) -> AdminSession:
          now = self._clock()
          lifetime = self.remember_seconds if remember else self.ttl_seconds
          session = AdminSession(
               sid=secrets.token_urlsafe(32),
               remember=remember,
               created_at=now,
               expires_at=now + lifetime,
          )
          with self._lock:
               self._prune(now)
               self._sessions[session.sid] = session
          return session

     def get(self, sid: Optional[str]) -> Optional[AdminSession]:
          if not sid:
               return None
          now = self._clock()
          with self._lock:
               session = self._sessions.get(sid)
               if session is None:
                    return None
               if session.expires_at <= now:
                    del self._sessions[sid]
                    return None
               return session

     def destroy(self, sid: Optional[str]) -> bool:
          if not sid:
               return False
          with self._lock:
               return self._sessions.pop(sid, None) is not None

     def __len__(self) -> int:
          with self._lock:
               return len(self._sessions)

     def _prune(self, now: float) -> None:
          expired = [sid for sid, s in self._sessions.items() if s.expires_at <= now]
          for sid in expired:
               del self._sessions[sid]


def sign_session_id(sid: str, secret: str) -> str:
     """Cookie value: an HS256 token wrapping the session id."""
     return jwt.encode({"sid": sid}, secret, algorithm=ALGORITHM)


def read_session_id(cookie: Optional[str], secret: str) -> Optional[str]:
     """Session id from a cookie value, or None if missing, tampered or foreign."""
     if not cookie:
          return None
     try:
          payload = jwt.decode(cookie, secret, algorithms=[ALGORITHM])
     except JWTError:
          return None
     sid = payload.get("sid")
     return sid if isinstance(sid, str) else None


def check_password(submitted: str, expected: str) -> bool:
     """Exact match against the shared admin secret."""
     if not expected:
          return False
     return hmac.compare_digest(submitted.encode("utf-8"), expected.encode("utf-8"))


def wants_remember(value: Optional[str]) -> bool:
     return (value or "").strip().lower() in REMEMBER_VALUES


class SessionGatekeeper:
     """
     Resolves the admin session for a cookie, for both HTTP requests and
     WebSocket upgrades.
     """

     def __init__(self, store: SessionStore, secret: str, cookie_name: str):
          self.store = store
          self.secret = secret
          self.cookie_name = cookie_name

     def login(self, remember: bool = False) -> Tuple[AdminSession, str]:
          """Create a session record; returns (session, signed cookie value)."""
          session = self.store.create(remember=remember)
          logger.info("Admin session started (remember=%s)", remember)
          return session, sign_session_id(session.sid, self.secret)

     def lookup(self, cookies: Dict[str, str]) -> Optional[AdminSession]:
          sid = read_session_id(cookies.get(self.cookie_name), self.secret)
          session = self.store.get(sid)
          if session is None or not session.is_admin:
               return None
          return session

     def logout(self, cookies: Dict[str, str]) -> None:
          sid = read_session_id(cookies.get(self.cookie_name), self.secret)
          if self.store.destroy(sid):
               logger.info("Admin session ended")
