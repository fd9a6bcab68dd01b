from dataclasses import dataclass
from typing import Optional

from .errors import TrackingError


@dataclass(frozen=True)
class HitResult:
    """Outcome of a single hit: the client id used, and the error if it failed."""

    client_id: str
    error: Optional[TrackingError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        """Return the client id, or raise the error the hit failed with."""
        if self.error is not None:
            raise self.error
        return self.client_id

    def as_dict(self) -> dict:
        return {"clientID": self.unwrap()}
