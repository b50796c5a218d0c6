import logging
import secrets
import threading

from errors import AuthError

logger = logging.getLogger(__name__)


class SessionRegistry:
    """In-memory token -> userId map. Sessions never expire; a restart drops them all."""

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions = {}

    def __len__(self):
        with self._lock:
            return len(self._sessions)

    def create(self, user_id):
        token = secrets.token_hex(16)
        with self._lock:
            self._sessions[token] = user_id
        return token

    def resolve(self, token):
        if not token:
            raise AuthError("Unauthorized")
        with self._lock:
            user_id = self._sessions.get(token)
        if user_id is None:
            raise AuthError("Unauthorized")
        return user_id

    def destroy(self, token):
        if not token:
            return
        with self._lock:
            self._sessions.pop(token, None)

    def clear(self):
        with self._lock:
            count = len(self._sessions)
            self._sessions.clear()
        if count:
            logger.info(f"Dropped {count} session(s)")
