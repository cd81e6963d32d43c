"""
Sumo Bridge - push Prometheus metrics to a Sumo Logic HTTP source.

Gathers metric families from a prometheus_client registry on a fixed interval,
encodes them in the text exposition format and POSTs them to the collector.
"""

from .bridge import BridgeConfig, ErrorHandling, PushBridge
from .errors import (
    BridgeError,
    ConfigError,
    EncodeError,
    GatherError,
    StatusError,
    SubmissionError,
    TransportError,
)
from .gatherer import Gatherer, RegistryGatherer

__version__ = "1.0.0"
__author__ = "Sumo Bridge Team"

__all__ = [
    "BridgeConfig",
    "BridgeError",
    "ConfigError",
    "EncodeError",
    "ErrorHandling",
    "GatherError",
    "Gatherer",
    "PushBridge",
    "RegistryGatherer",
    "StatusError",
    "SubmissionError",
    "TransportError",
]
