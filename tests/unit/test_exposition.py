"""Tests for the text exposition encoder."""

import logging

import pytest
from prometheus_client.core import GaugeMetricFamily, HistogramMetricFamily

from sumo_bridge.errors import EncodeError
from sumo_bridge.exposition import TextEncoder, encode_families


@pytest.mark.unit
class TestEncodeFamilies:
    """Test encoding whole gathers."""

    def test_empty_sequence_gives_empty_payload(self):
        """Nothing gathered encodes to an empty, well-formed buffer."""
        assert encode_families([]) == b""

    def test_counter_family(self, counter_family):
        """Counter renders HELP, TYPE and a labelled sample line."""
        payload = encode_families([counter_family]).decode('utf-8')

        assert "# HELP requests_total Total requests handled\n" in payload
        assert "# TYPE requests_total counter\n" in payload
        assert 'requests_total{method="GET"} 5' in payload
        assert payload.endswith("\n")

    def test_input_order_is_preserved(self, counter_family, gauge_family):
        """Families are written in the order given, not sorted."""
        payload = encode_families([gauge_family, counter_family]).decode('utf-8')

        assert payload.index("queue_depth") < payload.index("requests_total")

    def test_malformed_family_is_skipped(self, counter_family, gauge_family, broken_family, caplog):
        """A broken family is logged and the others are still encoded in order."""
        log = logging.getLogger('tests.encoder')

        with caplog.at_level(logging.WARNING, logger='tests.encoder'):
            payload = encode_families([counter_family, broken_family, gauge_family], log).decode('utf-8')

        assert "broken_gauge" not in payload
        assert 'requests_total{method="GET"} 5' in payload
        assert "queue_depth 3" in payload
        assert payload.index("requests_total") < payload.index("queue_depth")

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "broken_gauge" in warnings[0].getMessage()

    def test_non_metric_item_is_skipped(self, counter_family, gauge_family):
        """Items without a family name are skipped, not raised."""
        encoder = TextEncoder()

        encoder.encode_all([counter_family, None, gauge_family])
        payload = encoder.close().decode('utf-8')

        assert encoder.encoded == 2
        assert encoder.skipped == ['None']
        assert payload.index("requests_total") < payload.index("queue_depth")

    def test_timestamps_are_milliseconds(self):
        """Sample timestamps are written as integer milliseconds."""
        family = GaugeMetricFamily('temperature', 'Current temperature')
        family.add_metric([], 21.5, timestamp=1700000000.5)

        payload = encode_families([family]).decode('utf-8')

        assert "temperature 21.5 1700000000500\n" in payload

    def test_histogram_family(self):
        """Histograms expand into bucket, count and sum lines."""
        family = HistogramMetricFamily(
            'latency_seconds',
            'Request latency',
            buckets=[('0.5', 1), ('+Inf', 3)],
            sum_value=2.0,
        )

        payload = encode_families([family]).decode('utf-8')

        assert "# TYPE latency_seconds histogram\n" in payload
        assert 'latency_seconds_bucket{le="0.5"} 1.0' in payload
        assert 'latency_seconds_bucket{le="+Inf"} 3.0' in payload
        assert "latency_seconds_count 3.0" in payload
        assert "latency_seconds_sum 2.0" in payload

    def test_help_text_is_escaped(self):
        """Newlines and backslashes in help text are escaped."""
        family = GaugeMetricFamily('escaped', 'line one\nline two \\ end')
        family.add_metric([], 1)

        payload = encode_families([family]).decode('utf-8')

        assert "# HELP escaped line one\\nline two \\\\ end\n" in payload


@pytest.mark.unit
class TestTextEncoder:
    """Test the incremental encoder."""

    def test_encode_raises_for_malformed_family(self, broken_family):
        """Single-family encode surfaces the failure as EncodeError."""
        encoder = TextEncoder()

        with pytest.raises(EncodeError) as exc_info:
            encoder.encode(broken_family)

        assert exc_info.value.family is broken_family
        assert encoder.close() == b""

    def test_tracks_encoded_and_skipped(self, counter_family, broken_family):
        """Encoder counts what it wrote and remembers what it skipped."""
        encoder = TextEncoder(logging.getLogger('tests.encoder'))
        encoder.encode_all([counter_family, broken_family])

        assert encoder.encoded == 1
        assert encoder.skipped == ['broken_gauge']

    def test_closed_encoder_rejects_families(self, counter_family):
        """No families can be added once the payload is finished."""
        encoder = TextEncoder()
        encoder.encode(counter_family)
        first = encoder.close()

        with pytest.raises(RuntimeError):
            encoder.encode(counter_family)

        assert encoder.close() == first
