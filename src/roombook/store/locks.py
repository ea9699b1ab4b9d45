#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import contextlib
import logging
import threading
from collections.abc import Hashable
from typing import Iterator

from roombook.constants import DEFAULT_LOCK_TIMEOUT_SECONDS
from roombook.exceptions import ResourceLocked

logger = logging.getLogger(__name__)


class ResourceLock:
    """Locks a resource (any hashable key, typically a room id) using a
    dictionary of low level thread locks.

    Holding the lock of a room across the conflict check and the insert of a
    reservation serializes concurrent booking requests for that room, while
    requests for different rooms proceed independently.
    """

    def __init__(self, timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS):
        self.timeout = timeout
        self._registry_lock = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}
        self._owners: dict[Hashable, int] = {}

    def _lock_for(self, resource: Hashable) -> threading.Lock:
        with self._registry_lock:
            if resource not in self._locks:
                self._locks[resource] = threading.Lock()
            return self._locks[resource]

    def acquire(self, resource: Hashable, blocking: bool = True) -> bool:
        """Try to acquire the lock of `resource`, waiting at most `timeout`
        seconds when `blocking`. Returns False if the lock could not be acquired."""
        lock = self._lock_for(resource)
        if not blocking:
            acquired = lock.acquire(blocking=False)
        else:
            acquired = lock.acquire(timeout=self.timeout)
        if acquired:
            with self._registry_lock:
                self._owners[resource] = threading.get_ident()
        return acquired

    def release(self, resource: Hashable) -> None:
        """Release the lock of `resource`. Releasing an unlocked resource does
        nothing.

        Raises
        ------
        RuntimeError
            If the lock is held by another thread.
        """
        lock = self._lock_for(resource)
        with self._registry_lock:
            owner = self._owners.get(resource)
            if owner is None:
                return
            if owner != threading.get_ident():
                raise RuntimeError(
                    f"Cannot release the lock on {resource}, it is held by another thread"
                )
            del self._owners[resource]
            lock.release()

    def is_locked(self, resource: Hashable) -> bool:
        return self._lock_for(resource).locked()

    @contextlib.contextmanager
    def hold(self, resource: Hashable) -> Iterator[None]:
        """Context manager holding the lock of `resource` for the duration of the block.

        Raises
        ------
        ResourceLocked
            If the lock could not be acquired within `timeout` seconds.
        """
        if not self.acquire(resource):
            logger.warning(f"Timed out waiting for the lock on {resource}")
            raise ResourceLocked(str(resource))
        try:
            yield
        finally:
            self.release(resource)
