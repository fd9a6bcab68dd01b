from dataclasses import dataclass, replace

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

DEFAULT_BASE_URL = "https://www.google-analytics.com"
DEFAULT_TIMEOUT = 8


@dataclass(frozen=True)
class TrackerConfig:
    """Immutable tracker configuration.

    ``tracking_id`` is the property id assigned by Google Analytics
    (``UA-XXXXX-Y``). An empty ``user_agent`` means no User-Agent header is
    sent. ``batch_path`` is kept as part of the configuration but no hit
    uses it.
    """

    tracking_id: str
    version: int = 1
    debug: bool = False
    user_agent: str = ""
    base_url: str = DEFAULT_BASE_URL
    debug_path: str = "/debug"
    collect_path: str = "/collect"
    batch_path: str = "/batch"
    timeout: float = DEFAULT_TIMEOUT

    @property
    def collect_url(self) -> str:
        if self.debug:
            return f"{self.base_url}{self.debug_path}{self.collect_path}"
        return f"{self.base_url}{self.collect_path}"

    def replace(self, **changes) -> "TrackerConfig":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, config: dict) -> "TrackerConfig":
        """Build a configuration from a ``GA_API_TRACKING``-style dict."""
        try:
            tracking_id = config["tracking_id"]
        except (KeyError, TypeError):
            raise ImproperlyConfigured("Google Analytics configuration incomplete")
        if not tracking_id:
            raise ImproperlyConfigured("Google Analytics configuration incomplete")
        try:
            timeout = float(config.get("timeout", DEFAULT_TIMEOUT))
        except (TypeError, ValueError):
            raise ImproperlyConfigured("Google Analytics timeout must be a numeric value")

        return cls(
            tracking_id=tracking_id,
            version=config.get("version", 1),
            debug=bool(config.get("debug", False)),
            user_agent=config.get("user_agent", ""),
            base_url=config.get("base_url", DEFAULT_BASE_URL),
            debug_path=config.get("debug_path", "/debug"),
            collect_path=config.get("collect_path", "/collect"),
            batch_path=config.get("batch_path", "/batch"),
            timeout=timeout,
        )


def get_settings_dict() -> dict:
    try:
        return settings.GA_API_TRACKING
    except AttributeError:
        raise ImproperlyConfigured("Google Analytics configuration incomplete")


def load_config() -> TrackerConfig:
    """Read the tracker configuration from ``settings.GA_API_TRACKING``."""
    return TrackerConfig.from_dict(get_settings_dict())
