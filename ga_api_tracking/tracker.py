import logging
from concurrent.futures import Future
from typing import Optional

from .config import TrackerConfig, load_config
from .hits import (CustomHit, Event, ExceptionHit, Hit, Item, Pageview, Refund, Screenview,
                   Social, Timing, Transaction)
from .utils import generate_client_id

logger = logging.getLogger(__name__)


def _config_property(name, doc):
    def fget(self):
        return getattr(self._config, name)

    def fset(self, value):
        self._config = self._config.replace(**{name: value})

    return property(fget, fset, doc=doc)


class Tracker:
    """
    Sends hits to the Google Analytics measurement protocol.

    Every hit method returns a :class:`concurrent.futures.Future` resolving
    to a :class:`~ga_api_tracking.results.HitResult`; failures are reported
    in the result and never raised from the future.

    The configuration is an immutable :class:`TrackerConfig`. The setters
    below swap in a new one, and each hit reads the configuration exactly
    once when it is sent, so hits already in flight keep the settings they
    started with.

    Trackers created without a backend share one thread pool. A tracker
    given its own backend owns it: call ``tracker.backend.shutdown()`` when
    done with it.
    """

    def __init__(self, tracking_id: Optional[str] = None, *, user_agent: str = "",
                 debug: bool = False, version: int = 1, backend=None,
                 config: Optional[TrackerConfig] = None):
        if config is None:
            if not tracking_id:
                raise ValueError("a tracking id is required")
            config = TrackerConfig(tracking_id, version=version, debug=debug,
                                   user_agent=user_agent)
        if backend is None:
            from .backends.threaded import get_default_backend
            backend = get_default_backend()
        self._config = config
        self.backend = backend

    @classmethod
    def from_settings(cls, backend=None):
        """Build a tracker from ``settings.GA_API_TRACKING``."""
        if backend is None:
            from .dispatcher import get_backend
            backend = get_backend()
        return cls(config=load_config(), backend=backend)

    def __repr__(self):
        return "<Tracker %s debug=%s>" % (self.tracking_id, self.debug)

    @property
    def config(self) -> TrackerConfig:
        return self._config

    def replace(self, **changes) -> "Tracker":
        """Return a tracker sharing this backend with some settings changed."""
        return type(self)(config=self._config.replace(**changes), backend=self.backend)

    tracking_id = _config_property("tracking_id", "Google Analytics property id.")
    version = _config_property("version", "Measurement protocol version.")
    debug = _config_property("debug", "Send hits to the validation endpoint.")
    user_agent = _config_property("user_agent", "User-Agent header, empty to omit it.")
    base_url = _config_property("base_url", "Collector base URL.")
    debug_url = _config_property("debug_path", "Path segment of the validation endpoint.")
    collect_url = _config_property("collect_path", "Path segment of the collect endpoint.")
    batch_url = _config_property("batch_path", "Path segment of the batch endpoint.")
    timeout = _config_property("timeout", "Socket timeout of a hit request, in seconds.")

    def pageview(self, hostname, url, title, client_id=None) -> Future:
        return self.send(Pageview(hostname, url, title), client_id)

    def event(self, category, action, *, label=None, value=None, client_id=None) -> Future:
        return self.send(Event(category, action, label=label, value=value), client_id)

    def screen(self, app_name, app_version, app_id, app_installer_id, screen_name,
               client_id=None) -> Future:
        hit = Screenview(app_name, app_version, app_id, app_installer_id, screen_name)
        return self.send(hit, client_id)

    def transaction(self, txn_id, *, affiliation=None, revenue=None, shipping=None, tax=None,
                    currency=None, client_id=None) -> Future:
        hit = Transaction(txn_id, affiliation=affiliation, revenue=revenue,
                          shipping=shipping, tax=tax, currency=currency)
        return self.send(hit, client_id)

    def social(self, action, network, target, client_id=None) -> Future:
        return self.send(Social(action, network, target), client_id)

    def exception(self, description, fatal, client_id=None) -> Future:
        return self.send(ExceptionHit(description, fatal), client_id)

    def refund(self, txn_id, category="Ecommerce", action="Refund", non_interaction=1,
               client_id=None) -> Future:
        return self.send(Refund(txn_id, category, action, non_interaction), client_id)

    def item(self, txn_id, item_name, *, price=None, qty=None, sku=None, variation=None,
             currency=None, client_id=None) -> Future:
        hit = Item(txn_id, item_name, price=price, qty=qty, sku=sku,
                   variation=variation, currency=currency)
        return self.send(hit, client_id)

    def timing_trk(self, category, variable, time, *, label=None, dns=None, page_download=None,
                   redirect=None, tcp_connect=None, server_response=None,
                   client_id=None) -> Future:
        hit = Timing(category, variable, time, label=label, dns=dns,
                     page_download=page_download, redirect=redirect,
                     tcp_connect=tcp_connect, server_response=server_response)
        return self.send(hit, client_id)

    def build_payload(self, hit: Hit, client_id: str, config: Optional[TrackerConfig] = None):
        config = config or self._config
        payload = {
            "v": config.version,
            "tid": config.tracking_id,
            "cid": client_id,
            "t": hit.hit_type.value,
        }
        payload.update(hit.to_params())
        return payload

    def send(self, hit: Hit, client_id: Optional[str] = None) -> Future:
        """Send any hit. A new client id is generated when none is given."""
        config = self._config
        client_id = client_id or generate_client_id()
        payload = self.build_payload(hit, client_id, config)
        logger.debug("sending %s hit to %s", payload["t"], config.collect_url)
        return self.backend.submit(config.collect_url, payload, user_agent=config.user_agent,
                                   debug=config.debug, timeout=config.timeout)

    def send_params(self, hit_type, params=None, client_id=None) -> Future:
        """Send prebuilt protocol parameters under ``hit_type``."""
        return self.send(CustomHit(hit_type, params or {}), client_id)
