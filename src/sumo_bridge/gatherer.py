"""Metric sources consumed by the bridge."""

import logging
from typing import List, Optional, Protocol, runtime_checkable

from prometheus_client import REGISTRY, CollectorRegistry, Metric

from .errors import GatherError


logger = logging.getLogger(__name__)


@runtime_checkable
class Gatherer(Protocol):
    """Anything that can produce the current set of metric families.

    Implementations either return the families or raise. Raising a
    :class:`GatherError` allows handing back a partial result through its
    ``families`` attribute.
    """

    def gather(self) -> List[Metric]:
        ...


class RegistryGatherer:
    """Gatherer backed by a ``prometheus_client`` collector registry."""

    def __init__(self, registry: Optional[CollectorRegistry] = None, log: Optional[logging.Logger] = None):
        self.registry = registry if registry is not None else REGISTRY
        self.log = log if log is not None else logger

    def gather(self) -> List[Metric]:
        """Collect every registered collector, in registration order."""
        families: List[Metric] = []
        try:
            for family in self.registry.collect():
                families.append(family)
        except Exception as e:
            raise GatherError(f"registry collection failed: {e}", families) from e

        self.log.debug(f"Gathered {len(families)} metric families from registry")
        return families
