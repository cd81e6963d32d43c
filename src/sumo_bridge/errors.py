"""Exception hierarchy for the push bridge."""

from typing import List, Optional

from prometheus_client import Metric


class BridgeError(Exception):
    """Base class for all bridge errors."""


class ConfigError(BridgeError):
    """Invalid construction input (bad URL, negative interval, ...)."""


class GatherError(BridgeError):
    """The metric source failed for a tick.

    ``families`` holds whatever the source managed to produce before failing,
    which may be empty.
    """

    def __init__(self, message: str, families: Optional[List[Metric]] = None):
        super().__init__(message)
        self.families = list(families or [])


class EncodeError(BridgeError):
    """A single metric family could not be serialized."""

    def __init__(self, family: Metric, cause: Exception):
        # Anything handed to the encoder may turn up here, not only Metric.
        self.name = getattr(family, "name", repr(family))
        super().__init__(f"failed to encode metric family {self.name!r}: {cause}")
        self.family = family
        self.cause = cause


class SubmissionError(BridgeError):
    """Delivery of a payload to the collector failed."""


class TransportError(SubmissionError):
    """Network level failure: DNS, connect, or timeout."""


class StatusError(SubmissionError):
    """The collector answered with a non-2xx status."""

    def __init__(self, status: int, url: str = ""):
        super().__init__(f"non-2xx response code: {status}")
        self.status = status
        self.url = url
