from concurrent.futures import Future

from .base import BaseTrackingBackend


class DirectTrackingBackend(BaseTrackingBackend):
    """Send immediately in the calling thread, useful for testing."""

    def __init__(self, **options):
        pass

    def submit(self, url, payload, user_agent="", debug=False, timeout=8):
        future = Future()
        future.set_running_or_notify_cancel()
        future.set_result(self.run(url, payload, user_agent, debug, timeout))
        return future
