import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager

import redis
from redis.exceptions import LockError

from app.core.config import settings
from app.core.exceptions import HallBusyError
from app.core.metrics import HALL_LOCK_WAIT


def normalize_hall(hall_name: str | None) -> str:
    return (hall_name or "").strip().lower()


class HallLocks(ABC):
    """Mutual exclusion per hall, held across conflict check and persist."""

    backend = "abstract"

    @abstractmethod
    def hold(self, hall_name: str):
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        raise NotImplementedError


class InMemoryHallLocks(HallLocks):
    backend = "memory"

    def __init__(self, wait_seconds: float) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._wait_seconds = wait_seconds

    def _lock_for(self, key: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, hall_name: str) -> Iterator[None]:
        lock = self._lock_for(normalize_hall(hall_name))
        started = time.perf_counter()
        acquired = lock.acquire(timeout=self._wait_seconds)
        HALL_LOCK_WAIT.labels(backend=self.backend).observe(time.perf_counter() - started)
        if not acquired:
            raise HallBusyError()
        try:
            yield
        finally:
            lock.release()

    def reset(self) -> None:
        with self._registry_lock:
            self._locks.clear()


class RedisHallLocks(HallLocks):
    backend = "redis"

    def __init__(
        self,
        redis_url: str,
        timeout_seconds: int,
        wait_seconds: float,
        prefix: str = "hall-lock",
    ) -> None:
        self._client = redis.Redis.from_url(
            redis_url,
            socket_connect_timeout=0.5,
            socket_timeout=0.5,
        )
        self._timeout_seconds = timeout_seconds
        self._wait_seconds = wait_seconds
        self._prefix = prefix

    @contextmanager
    def hold(self, hall_name: str) -> Iterator[None]:
        lock = self._client.lock(
            f"{self._prefix}:{normalize_hall(hall_name)}",
            timeout=self._timeout_seconds,
            blocking_timeout=self._wait_seconds,
        )
        started = time.perf_counter()
        acquired = lock.acquire()
        HALL_LOCK_WAIT.labels(backend=self.backend).observe(time.perf_counter() - started)
        if not acquired:
            raise HallBusyError()
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                # lock expired before release
                pass

    def reset(self) -> None:
        keys = self._client.keys(f"{self._prefix}:*")
        if keys:
            self._client.delete(*keys)


def _build_hall_locks() -> HallLocks:
    backend = settings.hall_lock_backend.strip().lower()
    if backend == "redis":
        return RedisHallLocks(
            redis_url=settings.hall_lock_redis_url,
            timeout_seconds=settings.hall_lock_timeout_seconds,
            wait_seconds=settings.hall_lock_wait_seconds,
        )
    return InMemoryHallLocks(wait_seconds=settings.hall_lock_wait_seconds)


hall_locks: HallLocks = _build_hall_locks()
