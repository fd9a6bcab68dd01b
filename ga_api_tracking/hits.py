"""
Hit types of the measurement protocol.

Each hit is a frozen dataclass knowing its protocol ``hit_type`` and how to
map its fields onto the protocol's short parameter keys. Optional fields are
only sent when truthy, so ``0`` or ``""`` are left out of the request.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional


class HitType(str, Enum):
    PAGEVIEW = "pageview"
    EVENT = "event"
    SCREENVIEW = "screenview"
    TRANSACTION = "transaction"
    SOCIAL = "social"
    EXCEPTION = "exception"
    ITEM = "item"
    TIMING = "timing"


def _sparse(params: Dict[str, Any], **optional) -> Dict[str, Any]:
    """Add the truthy ``optional`` values to ``params``."""
    params.update((key, value) for key, value in optional.items() if value)
    return params


class Hit:
    hit_type: ClassVar[HitType]

    def to_params(self) -> Dict[str, Any]:
        raise NotImplementedError("Hits must implement to_params()")


@dataclass(frozen=True)
class Pageview(Hit):
    hit_type: ClassVar[HitType] = HitType.PAGEVIEW

    hostname: str
    url: str
    title: str

    def to_params(self):
        return {"dh": self.hostname, "dp": self.url, "dt": self.title}


@dataclass(frozen=True)
class Event(Hit):
    hit_type: ClassVar[HitType] = HitType.EVENT

    category: str
    action: str
    label: Optional[str] = None
    value: Optional[int] = None

    def to_params(self):
        return _sparse({"ec": self.category, "ea": self.action},
                       el=self.label, ev=self.value)


@dataclass(frozen=True)
class Screenview(Hit):
    hit_type: ClassVar[HitType] = HitType.SCREENVIEW

    app_name: str
    app_version: str
    app_id: str
    app_installer_id: str
    screen_name: str

    def to_params(self):
        return {
            "an": self.app_name,
            "av": self.app_version,
            "aid": self.app_id,
            "aiid": self.app_installer_id,
            "cd": self.screen_name,
        }


@dataclass(frozen=True)
class Transaction(Hit):
    hit_type: ClassVar[HitType] = HitType.TRANSACTION

    txn_id: str
    affiliation: Optional[str] = None
    revenue: Optional[float] = None
    shipping: Optional[float] = None
    tax: Optional[float] = None
    currency: Optional[str] = None

    def to_params(self):
        return _sparse({"ti": self.txn_id},
                       ta=self.affiliation, tr=self.revenue, ts=self.shipping,
                       tt=self.tax, cu=self.currency)


@dataclass(frozen=True)
class Social(Hit):
    hit_type: ClassVar[HitType] = HitType.SOCIAL

    action: str
    network: str
    target: str

    def to_params(self):
        return {"sa": self.action, "sn": self.network, "st": self.target}


@dataclass(frozen=True)
class ExceptionHit(Hit):
    hit_type: ClassVar[HitType] = HitType.EXCEPTION

    description: str
    fatal: Any

    def to_params(self):
        return {"exd": self.description, "exf": self.fatal}


@dataclass(frozen=True)
class Refund(Hit):
    """Full refund of a transaction, sent as a non-interactive event."""

    hit_type: ClassVar[HitType] = HitType.EVENT

    txn_id: str
    category: str = "Ecommerce"
    action: str = "Refund"
    non_interaction: Any = 1

    def to_params(self):
        return {
            "ec": self.category,
            "ea": self.action,
            "ni": self.non_interaction,
            "ti": self.txn_id,
            "pa": "refund",
        }


@dataclass(frozen=True)
class Item(Hit):
    hit_type: ClassVar[HitType] = HitType.ITEM

    txn_id: str
    item_name: str
    price: Optional[float] = None
    qty: Optional[int] = None
    sku: Optional[str] = None
    variation: Optional[str] = None
    currency: Optional[str] = None

    def to_params(self):
        return _sparse({"ti": self.txn_id, "in": self.item_name},
                       ip=self.price, iq=self.qty, ic=self.sku,
                       iv=self.variation, cu=self.currency)


@dataclass(frozen=True)
class Timing(Hit):
    hit_type: ClassVar[HitType] = HitType.TIMING

    category: str
    variable: str
    time: int
    label: Optional[str] = None
    dns: Optional[int] = None
    page_download: Optional[int] = None
    redirect: Optional[int] = None
    tcp_connect: Optional[int] = None
    server_response: Optional[int] = None

    def to_params(self):
        # "url" is the protocol's key for the timing label
        return _sparse({"utc": self.category, "utv": self.variable, "utt": self.time},
                       url=self.label, dns=self.dns, pdt=self.page_download,
                       rrt=self.redirect, tcp=self.tcp_connect,
                       srt=self.server_response)


@dataclass(frozen=True)
class CustomHit(Hit):
    """Prebuilt parameters sent under one of the protocol hit types."""

    kind: HitType
    params: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "kind", HitType(self.kind))

    @property
    def hit_type(self):
        return self.kind

    def to_params(self):
        return dict(self.params or {})
