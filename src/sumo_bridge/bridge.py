"""Push bridge: periodically gathers metrics and pushes them to Sumo Logic."""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from prometheus_client import Metric
from yarl import URL

from .clients.sumo_client import SumoClient
from .errors import BridgeError, ConfigError, GatherError
from .exposition import TextEncoder
from .gatherer import Gatherer, RegistryGatherer

DEFAULT_INTERVAL_SECONDS = 15.0
DEFAULT_TIMEOUT_SECONDS = 15.0


class ErrorHandling(Enum):
    """What a push cycle does when gathering fails or yields nothing."""

    CONTINUE_ON_ERROR = "continue_on_error"
    ABORT_ON_ERROR = "abort_on_error"


@dataclass(frozen=True)
class BridgeConfig:
    """Construction-time settings of a :class:`PushBridge`.

    ``interval`` and ``timeout`` are in seconds; ``None`` or ``0`` selects the
    15 second default.
    """
    url: str
    interval: Optional[float] = None
    timeout: Optional[float] = None
    gatherer: Optional[Gatherer] = None
    error_handling: ErrorHandling = ErrorHandling.CONTINUE_ON_ERROR
    logger: Optional[logging.Logger] = None

    # Optional source metadata headers
    category: str = ""
    source_name: str = ""
    source_host: str = ""
    source_client: str = ""


def _silent_logger() -> logging.Logger:
    silent = logging.getLogger(f"{__name__}.silent")
    if not silent.handlers:
        silent.addHandler(logging.NullHandler())
    silent.propagate = False
    return silent


def _resolve_duration(name: str, value: Optional[float], default: float) -> float:
    if value is None or value == 0:
        return default
    if value < 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return float(value)


def _validate_url(url: str) -> str:
    if not url or not url.strip():
        raise ConfigError("collector URL is required")

    # Scheme and host are checked when the request is built, not here.
    try:
        URL(url.strip())
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid collector URL {url!r}: {e}") from e

    return url.strip()


class PushBridge:
    """
    Adapts a pull-based metric source to push delivery.

    ``run()`` ticks every ``interval`` seconds; each tick gathers, encodes and
    submits once. Failures of a single tick are logged and never stop the
    loop; only the stop event (or cancelling the running task) does.
    """

    def __init__(self, config: BridgeConfig):
        self.url = _validate_url(config.url)
        self.interval = _resolve_duration("interval", config.interval, DEFAULT_INTERVAL_SECONDS)
        self.timeout = _resolve_duration("timeout", config.timeout, DEFAULT_TIMEOUT_SECONDS)

        try:
            self.error_handling = ErrorHandling(config.error_handling)
        except ValueError as e:
            raise ConfigError(f"unrecognized error handling value: {config.error_handling!r}") from e

        self.log = config.logger if config.logger is not None else _silent_logger()
        self.gatherer = config.gatherer if config.gatherer is not None else RegistryGatherer(log=self.log)

        self.client = SumoClient(
            self.url,
            self.timeout,
            category=config.category,
            source_name=config.source_name,
            source_host=config.source_host,
            source_client=config.source_client,
            log=self.log,
        )

        self.log.info(
            f"Bridge initialized: interval={self.interval}s, timeout={self.timeout}s, "
            f"error_handling={self.error_handling.value}"
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Release the HTTP session held by the submission client."""
        await self.client.close()

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Push on a fixed interval until ``stop_event`` is set.

        Fires missed while a slow tick was running are dropped; the next tick
        is then scheduled one full interval after the slow one finished.
        """
        if stop_event is None:
            stop_event = asyncio.Event()

        loop = asyncio.get_running_loop()
        next_fire = loop.time() + self.interval
        self.log.info(f"Starting bridge, pushing every {self.interval}s to {self.url}")

        try:
            while not stop_event.is_set():
                delay = next_fire - loop.time()
                if delay > 0 and await self._wait_for_stop(stop_event, delay):
                    break

                if not await self._tick(stop_event):
                    break

                now = loop.time()
                next_fire += self.interval
                if next_fire <= now:
                    next_fire = now + self.interval
        finally:
            self.log.info("Bridge stopped")

    async def _wait_for_stop(self, stop_event: asyncio.Event, delay: float) -> bool:
        """Sleep up to ``delay`` seconds; True when the stop event fired."""
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=delay)
            return True
        except asyncio.TimeoutError:
            return False

    async def _tick(self, stop_event: asyncio.Event) -> bool:
        """Run one push racing the stop event; False when stopped mid-push."""
        push_task = asyncio.create_task(self.push())
        stop_task = asyncio.create_task(stop_event.wait())

        try:
            await asyncio.wait({push_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop_task.cancel()
            if not push_task.done():
                # Abandon the in-flight submission, its result is discarded.
                push_task.cancel()
                await asyncio.gather(push_task, stop_task, return_exceptions=True)

        if push_task.cancelled():
            return False

        error = push_task.exception()
        if isinstance(error, BridgeError):
            self.log.error(f"error pushing to Sumo: {error}")
        elif error is not None:
            self.log.error(f"unexpected error pushing to Sumo: {error}", exc_info=error)

        return True

    async def push(self) -> None:
        """
        Run a single gather, encode and submit cycle.

        Raises:
            GatherError: Gathering failed under ABORT_ON_ERROR
            SubmissionError: The collector could not be reached or refused
        """
        tick_ts = time.time()
        error: Optional[GatherError] = None
        families: List[Metric] = []

        try:
            families = list(self.gatherer.gather())
        except GatherError as e:
            error = e
            families = e.families
        except Exception as e:
            error = GatherError(f"gather failed: {e}")
            error.__cause__ = e

        # An error takes precedence over any partial result.
        if error is not None or not families:
            if self.error_handling is ErrorHandling.ABORT_ON_ERROR:
                if error is not None:
                    raise error
                self.log.info("no metric families gathered, skipping push")
                return
            elif self.error_handling is ErrorHandling.CONTINUE_ON_ERROR:
                self.log.warning(f"continue on error: {error or 'no metric families gathered'}")
            else:
                raise ValueError(f"unrecognized error handling value: {self.error_handling!r}")

        await self._write_metrics(families, tick_ts)

    async def _write_metrics(self, families: List[Metric], tick_ts: float) -> None:
        self.log.info(f"collected metrics: {len(families)} (tick at {tick_ts:.3f})")

        encoder = TextEncoder(self.log)
        encoder.encode_all(families)
        payload = encoder.close()

        self.log.debug(f"metrics payload:\n{payload.decode('utf-8')}")

        await self.client.submit(payload)
