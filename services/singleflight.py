"""Request de-duplication keyed by (operation, entity id).

A key is held for as long as its request is outstanding. A second caller
with the same key is turned away instead of queued, which is what a disabled
button does in a browser; calls with other keys are unaffected.
"""
from contextlib import contextmanager

from core.imports import threading, logging

logger = logging.getLogger(__name__)


class SingleFlight:
    def __init__(self):
        self._pending = set()
        self._lock = threading.Lock()

    def try_acquire(self, operation, entity_id=None):
        key = (operation, entity_id)
        with self._lock:
            if key in self._pending:
                return False
            self._pending.add(key)
            return True

    def release(self, operation, entity_id=None):
        with self._lock:
            self._pending.discard((operation, entity_id))

    def pending(self, operation, entity_id=None):
        with self._lock:
            return (operation, entity_id) in self._pending

    @contextmanager
    def hold(self, operation, entity_id=None):
        """Yields True while holding the key, False if it was already in flight."""
        acquired = self.try_acquire(operation, entity_id)
        if not acquired:
            logger.debug("%s %s already in flight, ignoring", operation, entity_id)
            yield False
            return
        try:
            yield True
        finally:
            self.release(operation, entity_id)
