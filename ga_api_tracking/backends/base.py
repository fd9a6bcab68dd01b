from concurrent.futures import Future

from ..transport import send_hit


class BaseTrackingBackend:
    """Base class for tracking backends.

    A backend decides where the HTTP request of a hit runs. ``submit`` must
    return a future resolving to a :class:`~ga_api_tracking.results.HitResult`.
    """

    def submit(self, url: str, payload: dict, user_agent: str = "", debug: bool = False,
               timeout: float = 8) -> Future:
        raise NotImplementedError("Tracking backends must implement submit()")

    def shutdown(self, wait=True):
        pass

    @staticmethod
    def run(url, payload, user_agent, debug, timeout):
        return send_hit(url, payload, user_agent=user_agent, debug=debug, timeout=timeout)
