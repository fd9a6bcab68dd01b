"""
Server-side Google Analytics (measurement protocol) hit tracking.

Usage::

    from ga_api_tracking import Tracker

    tracker = Tracker("UA-XXXXX-Y")
    result = tracker.pageview("example.com", "/home", "Home Page").result()
    client_id = result.unwrap()
"""
from .config import TrackerConfig
from .errors import RemoteError, TrackingError, TransportError, ValidationError
from .hits import (CustomHit, Event, ExceptionHit, Hit, HitType, Item, Pageview, Refund,
                   Screenview, Social, Timing, Transaction)
from .results import HitResult
from .tracker import Tracker

__version__ = "0.1.0"
__all__ = [
    "Tracker", "TrackerConfig", "HitResult", "HitType", "Hit", "Pageview", "Event",
    "Screenview", "Transaction", "Social", "ExceptionHit", "Refund", "Item", "Timing",
    "CustomHit", "TrackingError", "TransportError", "ValidationError", "RemoteError",
]
