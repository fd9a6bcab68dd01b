class TrackingError(Exception):
    """Base class for failed hits."""


class TransportError(TrackingError):
    """The request never got a response (connection error, timeout, ...)."""

    def __init__(self, cause):
        super().__init__(str(cause))
        self.cause = cause


class ValidationError(TrackingError):
    """The debug endpoint reported the hit as invalid.

    ``body`` holds the full parsed validation response.
    """

    def __init__(self, body):
        super().__init__("hit failed validation")
        self.body = body


class RemoteError(TrackingError):
    """The collector answered with an error status or an unusable body.

    ``body`` is the parsed JSON when there was some, the raw text otherwise.
    """

    def __init__(self, body, status_code=None):
        super().__init__("collector responded with status %s" % status_code)
        self.body = body
        self.status_code = status_code
