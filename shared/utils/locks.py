"""
Calculation Locks

Serializes readiness calculation per (user, category) so two concurrent
requests cannot both pass the recalculation guard and both write a row.

Backends:
- redis: SET NX PX token lock shared by every API process
- local: per-key threading.Lock for single-process deployments and tests
"""

import threading
import time
from contextlib import AbstractContextManager, contextmanager
from typing import Iterator, Protocol
from uuid import uuid4

import redis

from shared.utils.config import get_settings
from shared.utils.errors import CalculationInProgressError
from shared.utils.logging import get_logger

logger = get_logger(__name__)

# Release only if we still own the lock
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


def lock_key(user_id: int, category_id: int) -> str:
    return f"lock:readiness:{user_id}:{category_id}"


class CalculationLock(Protocol):
    def hold(self, user_id: int, category_id: int) -> AbstractContextManager[None]:
        ...


class RedisCalculationLock:
    """
    Distributed lock using Redis.

    The TTL bounds how long a crashed holder can block a key.
    """

    def __init__(
        self,
        client: redis.Redis,
        timeout: float = 30,
        max_wait: float = 10.0,
        poll_interval: float = 0.1,
    ):
        self._redis = client
        self.timeout = timeout
        self.max_wait = max_wait
        self.poll_interval = poll_interval

    @contextmanager
    def hold(self, user_id: int, category_id: int) -> Iterator[None]:
        """
        Acquire the (user, category) lock, waiting up to max_wait seconds.

        Raises:
            CalculationInProgressError: If the wait exceeds max_wait
        """
        key = lock_key(user_id, category_id)
        token = str(uuid4())
        start_time = time.monotonic()
        acquired = False

        try:
            while not acquired:
                acquired = bool(
                    self._redis.set(key, token, nx=True, px=int(self.timeout * 1000))
                )
                if acquired:
                    logger.debug("Calculation lock acquired", key=key)
                    break

                if time.monotonic() - start_time > self.max_wait:
                    raise CalculationInProgressError(
                        "A readiness calculation for this role is already running",
                        user_id=user_id,
                        category_id=category_id,
                    )
                time.sleep(self.poll_interval)

            yield

        finally:
            if acquired:
                self._redis.eval(_RELEASE_SCRIPT, 1, key, token)
                logger.debug("Calculation lock released", key=key)


class LocalCalculationLock:
    """
    In-process lock per key.

    A key's lock lives only while some thread holds or waits on it, so the
    table stays as small as the number of calculations in flight.
    """

    def __init__(self, max_wait: float = 10.0):
        self.max_wait = max_wait
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._users: dict[str, int] = {}

    def _checkout(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: str) -> None:
        with self._guard:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def hold(self, user_id: int, category_id: int) -> Iterator[None]:
        key = lock_key(user_id, category_id)
        lock = self._checkout(key)
        try:
            if not lock.acquire(timeout=self.max_wait):
                raise CalculationInProgressError(
                    "A readiness calculation for this role is already running",
                    user_id=user_id,
                    category_id=category_id,
                )
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)


# Lazy lock instance
_calculation_lock: CalculationLock | None = None


def get_calculation_lock() -> CalculationLock:
    """Get or create the configured calculation lock."""
    global _calculation_lock
    if _calculation_lock is None:
        settings = get_settings()
        if settings.calc_lock_backend == "redis":
            _calculation_lock = RedisCalculationLock(
                redis.from_url(settings.redis_url, decode_responses=True),
                timeout=settings.calc_lock_timeout_seconds,
                max_wait=settings.calc_lock_max_wait_seconds,
            )
        else:
            _calculation_lock = LocalCalculationLock(
                max_wait=settings.calc_lock_max_wait_seconds,
            )
        logger.info("Calculation lock configured", backend=settings.calc_lock_backend)
    return _calculation_lock
