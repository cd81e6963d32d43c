"""Text exposition encoder for gathered metric families."""

import io
import logging
from typing import Iterable, List, Optional

from prometheus_client import Metric
from prometheus_client.exposition import generate_latest
from prometheus_client.registry import Collector

from .errors import EncodeError


logger = logging.getLogger(__name__)


class _SingleFamily(Collector):
    """Collector exposing exactly one already gathered family."""

    def __init__(self, family: Metric):
        self.family = family

    def collect(self) -> Iterable[Metric]:
        return [self.family]


class TextEncoder:
    """
    Incremental encoder producing Prometheus text format 0.0.4.

    Each family is rendered on its own, so a malformed family is reported
    and skipped without touching the families around it. Call ``close()``
    once all families are written to obtain the finished payload.
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger
        self._buffer = io.BytesIO()
        self._closed = False
        self.encoded = 0
        self.skipped: List[str] = []

    def encode(self, family: Metric) -> None:
        """Append one family to the buffer, raising EncodeError on failure."""
        if self._closed:
            raise RuntimeError("Encoder already closed")

        try:
            chunk = generate_latest(_SingleFamily(family))
        except Exception as e:
            raise EncodeError(family, e) from e

        self._buffer.write(chunk)
        self.encoded += 1

    def encode_all(self, families: Iterable[Metric]) -> None:
        """Encode families in order, skipping the ones that fail."""
        for family in families:
            try:
                self.encode(family)
            except EncodeError as e:
                self.skipped.append(e.name)
                self.log.warning(f"[WARN] failed to encode: {e}")

    def close(self) -> bytes:
        """Finish the payload and return it."""
        if not self._closed:
            self._closed = True
            self._buffer.flush()
        return self._buffer.getvalue()


def encode_families(families: Iterable[Metric], log: Optional[logging.Logger] = None) -> bytes:
    """Encode a sequence of families into a single payload."""
    encoder = TextEncoder(log)
    encoder.encode_all(families)
    return encoder.close()
