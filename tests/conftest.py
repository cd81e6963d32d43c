"""Pytest configuration and shared fixtures."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from prometheus_client import Metric
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily


class FakeGatherer:
    """Gatherer returning canned families or raising a canned error."""

    def __init__(self, families: Optional[List[Metric]] = None, error: Optional[Exception] = None):
        self.families = families or []
        self.error = error
        self.calls = 0

    def gather(self) -> List[Metric]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.families)


class RecordingCollector:
    """Local HTTP collector that records every request it receives."""

    def __init__(self, status: int = 200, delay: float = 0.0):
        self.status = status
        self.delay = delay
        self.requests = []
        self.moved_hits = 0

    async def handle(self, request: web.Request) -> web.Response:
        body = await request.read()
        self.requests.append({
            'method': request.method,
            'headers': request.headers.copy(),
            'body': body,
        })

        if self.delay:
            await asyncio.sleep(self.delay)

        if 300 <= self.status < 400:
            return web.Response(status=self.status, headers={'Location': '/moved'})
        return web.Response(status=self.status)

    async def moved(self, request: web.Request) -> web.Response:
        self.moved_hits += 1
        return web.Response(status=200)

    @asynccontextmanager
    async def serve(self):
        """Run the collector and yield its receiver URL."""
        app = web.Application()
        app.router.add_post('/receiver', self.handle)
        app.router.add_route('*', '/moved', self.moved)

        async with TestServer(app) as server:
            yield str(server.make_url('/receiver'))


@pytest.fixture
def collector() -> RecordingCollector:
    """Collector answering 200 OK."""
    return RecordingCollector()


@pytest.fixture
def counter_family() -> Metric:
    """requests_total{method="GET"} = 5."""
    family = CounterMetricFamily('requests', 'Total requests handled', labels=['method'])
    family.add_metric(['GET'], 5)
    return family


@pytest.fixture
def gauge_family() -> Metric:
    """A single unlabelled gauge."""
    family = GaugeMetricFamily('queue_depth', 'Items waiting in the queue')
    family.add_metric([], 3)
    return family


@pytest.fixture
def broken_family() -> Metric:
    """Gauge whose sample value cannot be rendered as a number."""
    family = Metric('broken_gauge', 'Gauge with a non-numeric value', 'gauge')
    family.add_sample('broken_gauge', {}, 'not-a-number')
    return family


@pytest.fixture
def bridge_logger() -> logging.Logger:
    """Logger handed to bridges under test; captured through caplog."""
    return logging.getLogger('tests.bridge')


@pytest.fixture
def make_gatherer():
    """Factory for FakeGatherer instances."""
    return FakeGatherer


@pytest.fixture
def make_collector():
    """Factory for collectors with a custom status or response delay."""
    return RecordingCollector


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way the test found it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
