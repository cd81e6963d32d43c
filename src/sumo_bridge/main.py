"""Sumo Bridge Service - pushes process metrics to a Sumo Logic collector."""

import asyncio
import logging
import os
import signal
import sys
from datetime import datetime
from typing import Optional

from prometheus_client import CollectorRegistry, Counter

from .bridge import PushBridge
from .config.settings import BridgeSettings, load_settings
from .gatherer import RegistryGatherer
from .utils.logging import setup_logging


logger = logging.getLogger(__name__)


class SumoBridgeService:
    """Runs a push bridge over a dedicated registry until shutdown."""

    def __init__(self, settings: BridgeSettings):
        self.settings = settings
        self.registry = CollectorRegistry()
        self.ops_processed = Counter(
            'bridge_counter',
            'The total number of processed events',
            ['name'],
            registry=self.registry,
        )
        self.bridge: Optional[PushBridge] = None
        self._shutdown_event = asyncio.Event()

    async def start(self):
        """Start the bridge and block until a shutdown signal arrives."""
        logger.info("Starting Sumo Bridge Service")

        bridge_config = self.settings.to_bridge_config(
            gatherer=RegistryGatherer(self.registry),
            logger=logging.getLogger("sumo_bridge.push"),
        )
        self.bridge = PushBridge(bridge_config)

        self._setup_signal_handlers()

        recorder_task = None
        if self.settings.demo.enabled:
            recorder_task = asyncio.create_task(self.record_metrics())

        try:
            async with self.bridge:
                await self.bridge.run(self._shutdown_event)
        finally:
            if recorder_task:
                recorder_task.cancel()
                try:
                    await recorder_task
                except asyncio.CancelledError:
                    pass

        logger.info("Sumo Bridge Service stopped")

    def shutdown(self):
        """Request a graceful stop."""
        self._shutdown_event.set()

    def _setup_signal_handlers(self):
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}, initiating shutdown")
            self.shutdown()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    async def record_metrics(self):
        """Increment the demo counter, labelled by the current hour and minute."""
        interval = self.settings.demo.record_interval_seconds
        while not self._shutdown_event.is_set():
            now = datetime.now()
            self.ops_processed.labels(name=f"{now.hour}-{now.minute}").inc()
            await asyncio.sleep(interval)


async def main():
    """Main entry point."""
    config_file = os.getenv("CONFIG_FILE", "config/local.yaml")

    try:
        settings = load_settings(config_file if os.path.exists(config_file) else None)
        setup_logging(settings.logging, settings.service_name)
        service = SumoBridgeService(settings)
        await service.start()
    except Exception as e:
        logger.error(f"Service failed: {e}", exc_info=True)
        sys.exit(1)


def run():
    """Console script wrapper."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
