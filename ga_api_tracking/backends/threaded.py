import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from .base import BaseTrackingBackend

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


class ThreadPoolTrackingBackend(BaseTrackingBackend):
    """Default backend: one request per hit on a pool of worker threads."""

    def __init__(self, max_workers=DEFAULT_MAX_WORKERS, **options):
        try:
            self.max_workers = int(max_workers)
        except (TypeError, ValueError):
            raise ValueError("max_workers must be an integer")
        self._executor = None
        self._lock = threading.Lock()

    @property
    def executor(self):
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers, thread_name_prefix="ga-api-tracking")
            return self._executor

    def submit(self, url, payload, user_agent="", debug=False, timeout=8):
        return self.executor.submit(self.run, url, payload, user_agent, debug, timeout)

    def shutdown(self, wait=True):
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            logger.debug("shutting down tracking thread pool")
            executor.shutdown(wait=wait)


_default_backend = None
_default_lock = threading.Lock()


def get_default_backend():
    """Return the pool shared by trackers created without a backend."""
    global _default_backend
    with _default_lock:
        if _default_backend is None:
            _default_backend = ThreadPoolTrackingBackend()
        return _default_backend
