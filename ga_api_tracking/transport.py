import logging
import requests

from .errors import RemoteError, TransportError, ValidationError
from .results import HitResult

logger = logging.getLogger(__name__)


def _is_image(response) -> bool:
    return response.headers.get("Content-Type", "").lower().startswith("image/")


def _form_value(value):
    if isinstance(value, bool):
        return int(value)
    return value


def send_hit(url: str, payload: dict, user_agent: str = "", debug: bool = False,
             timeout: float = 8) -> HitResult:
    """
    POST a single form-encoded hit to the collector and interpret the answer.

    Never raises: failures are returned as the ``error`` of the result.
    The regular collect endpoint answers 200 with a tracking pixel whatever
    it thinks of the hit, so outside of debug mode a 200 is all the
    confirmation there is.
    """
    client_id = payload["cid"]
    headers = {"User-Agent": user_agent} if user_agent else {}
    data = {key: _form_value(value) for key, value in payload.items()}
    try:
        resp = requests.post(url, data=data, headers=headers, timeout=timeout)
    except requests.exceptions.Timeout as exc:
        logger.warning("tracking request timed out: %s", url)
        return HitResult(client_id, TransportError(exc))
    except requests.RequestException as exc:
        logger.warning("Google Analytics tracking error: %s", exc)
        return HitResult(client_id, TransportError(exc))

    return interpret_response(resp, client_id, debug)


def interpret_response(resp, client_id: str, debug: bool = False) -> HitResult:
    if resp.status_code == 200 and not debug:
        # the collect endpoint only ever answers with a pixel, nothing to check
        logger.debug("Google Analytics tracking sent successfully.")
        return HitResult(client_id)

    body = {}
    if not _is_image(resp) and resp.text:
        try:
            body = resp.json()
        except ValueError:
            logger.warning("Google Analytics returned an unparsable body (status %s)",
                           resp.status_code)
            return HitResult(client_id, RemoteError(resp.text, resp.status_code))

    if resp.status_code == 200:
        try:
            valid = body["hitParsingResult"][0]["valid"]
        except (KeyError, IndexError, TypeError):
            logger.warning("Google Analytics validation response is malformed: %s", body)
            return HitResult(client_id, RemoteError(body, resp.status_code))
        if valid:
            logger.debug("Google Analytics hit validated.")
            return HitResult(client_id)
        logger.warning("Google Analytics hit failed validation: %s", body)
        return HitResult(client_id, ValidationError(body))

    logger.warning("Google Analytics tracking failed: %s", resp.reason)
    if not _is_image(resp):
        return HitResult(client_id, RemoteError(body, resp.status_code))
    return HitResult(client_id, RemoteError(resp.text, resp.status_code))
