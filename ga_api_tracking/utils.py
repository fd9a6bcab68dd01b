import uuid

from bs4 import BeautifulSoup

COOKIE_NAME = "ga_api_cid"
COOKIE_MAX_AGE = 60 * 60 * 24 * 365 * 2


def generate_client_id() -> str:
    """Return a new random (version 4) client id."""
    return str(uuid.uuid4())


def is_valid_client_id(value) -> bool:
    try:
        return uuid.UUID(str(value)).version == 4
    except ValueError:
        return False


def get_client_id(request, cookie_name=COOKIE_NAME):
    """
    Return the client id stored in the request's tracking cookie, or a fresh
    one when the cookie is missing or does not hold a UUID.
    """
    client_id = request.COOKIES.get(cookie_name)
    if client_id and is_valid_client_id(client_id):
        return client_id
    return generate_client_id()


def set_cookie(response, client_id, cookie_name=COOKIE_NAME, max_age=COOKIE_MAX_AGE):
    response.set_cookie(cookie_name, client_id, max_age=max_age, samesite="Lax")
    return response


def get_page_title(response):
    """Title of an HTML response, ``None`` when there is none."""
    content_type = response.get("Content-Type", "")
    content = getattr(response, "content", b"")
    if "text/html" not in content_type and content[:100].lower().find(b"<html") < 0:
        return None
    html = content.decode(getattr(response, "charset", None) or "utf-8", errors="replace")
    try:
        return BeautifulSoup(html, "html.parser").html.head.title.text
    except AttributeError:
        return None
