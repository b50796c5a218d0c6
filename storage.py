import contextlib
import json
import logging
import os
import tempfile
import threading

from errors import UserNotFoundError, ValidationError
from models import User

logger = logging.getLogger(__name__)


class UserStore:
    """
    One pretty-printed JSON file per user, named ``<userId>.json``.

    Every call hits the disk: ``load`` reads the whole record and ``save``
    overwrites it. There is no cache, so callers that mutate a record should
    hold the user's lock from ``UserLocks`` across load and save.
    """

    def __init__(self, folder):
        self.folder = folder
        os.makedirs(self.folder, exist_ok=True)
        logger.info(f"UserStore ready folder={self.folder}")

    def _path(self, user_id):
        if not user_id or user_id.startswith('.') or os.path.basename(user_id) != user_id:
            raise ValidationError("Invalid userId")
        return os.path.join(self.folder, user_id + '.json')

    def exists(self, user_id):
        return os.path.exists(self._path(user_id))

    def load(self, user_id):
        path = self._path(user_id)
        if not os.path.exists(path):
            raise UserNotFoundError("User not found")
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return User.model_validate(data)

    def save(self, user):
        path = self._path(user.user_id)
        # write beside the record then swap it in, so readers never see a partial file
        fd, tmp_path = tempfile.mkstemp(dir=self.folder, prefix='.' + user.user_id + '.', suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(user.to_json())
            os.replace(tmp_path, path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.remove(tmp_path)
            raise


class UserLocks:
    """Hands out one lock per userId so load/mutate/save runs as a unit."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}

    def _lock_for(self, user_id):
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
            return lock

    @contextlib.contextmanager
    def hold(self, user_id):
        lock = self._lock_for(user_id)
        with lock:
            yield
