import logging
from contextlib import contextmanager
from threading import Lock
from typing import Dict, Iterator

from timekeeper.config import settings
from timekeeper.core.errors import ConflictError

logger = logging.getLogger(__name__)


class UserLockRegistry:
    """
    One mutex per user id, so timers of different users never contend.
    A user's entry lives only while someone holds or waits on it.
    """

    def __init__(self, timeout: float, retries: int):
        self.timeout = timeout
        self.retries = retries
        self._locks: Dict[int, Lock] = {}
        self._users: Dict[int, int] = {}
        self._guard = Lock()

    def _checkout(self, user_id: int) -> Lock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = Lock()
                self._locks[user_id] = lock
            self._users[user_id] = self._users.get(user_id, 0) + 1
            return lock

    def _checkin(self, user_id: int) -> None:
        with self._guard:
            remaining = self._users.get(user_id, 1) - 1
            if remaining > 0:
                self._users[user_id] = remaining
                return
            self._users.pop(user_id, None)
            self._locks.pop(user_id, None)

    @contextmanager
    def hold(self, user_id: int) -> Iterator[None]:
        lock = self._checkout(user_id)
        try:
            attempts = max(self.retries, 1)
            for attempt in range(1, attempts + 1):
                if lock.acquire(timeout=self.timeout):
                    break
                logger.warning("Timer lock busy for user %s (attempt %s/%s)", user_id, attempt, attempts)
            else:
                raise ConflictError("Another timer operation is in progress, please retry")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(user_id)


timer_locks = UserLockRegistry(
    timeout=settings.TIMER_LOCK_TIMEOUT_SECONDS,
    retries=settings.TIMER_LOCK_RETRIES,
)
