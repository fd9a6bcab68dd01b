import logging

from .config import get_settings_dict
from .dispatcher import get_tracker
from .utils import COOKIE_MAX_AGE, COOKIE_NAME, get_client_id, get_page_title, set_cookie

logger = logging.getLogger(__name__)


def _log_failure(future):
    if future.cancelled():
        logger.warning("pageview hit was cancelled before it was sent")
        return
    try:
        result = future.result()
    except Exception as exc:
        logger.error("cannot send tracking hit: %s", exc)
        return
    if not result.ok:
        logger.warning("pageview hit for client %s failed: %s", result.client_id, result.error)


class GoogleAnalyticsApiTrackingMiddleware:
    """Record a pageview hit for every response, server side."""

    def __init__(self, get_response=None):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        response = self.process_response(request, response)
        return response

    def process_response(self, request, response):
        config = get_settings_dict()
        ignore_paths = config.get("ignore_paths", [])
        cookie_name = config.get("cookie_name", COOKIE_NAME)
        cookie_max_age = config.get("cookie_max_age", COOKIE_MAX_AGE)

        # do not log pages that start with an ignore_path url
        if any(p for p in ignore_paths if request.path.startswith(p)):
            return response

        tracker = get_tracker()
        client_id = get_client_id(request, cookie_name)
        title = get_page_title(response)
        try:
            future = tracker.pageview(request.get_host(), request.path, title, client_id)
        except RuntimeError as exc:
            # executor already shut down
            logger.error("cannot send tracking hit: %s", exc)
        else:
            future.add_done_callback(_log_failure)

        return set_cookie(response, client_id, cookie_name, cookie_max_age)
