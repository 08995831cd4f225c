"""Tests for the HTTP endpoints.

Uses the fake span source from conftest.py; the default source returns a
single one-hour span ten days ago.
"""

import pytest

from spanheat.errors import UpstreamFetchError, UpstreamParseError, UpstreamTimeoutError
from spanheat.heatmap.levels import get_palette, to_hex
from spanheat.server.metrics import HeatmapMetrics

LEVEL_4_DARK = to_hex(get_palette("dark").color_for(4))


def sample(metrics, name, **labels):
    """Current value of one Prometheus series, 0 if never touched."""
    return metrics.registry.get_sample_value(name, labels) or 0.0


@pytest.mark.asyncio
class TestHealthEndpoint:
    """Test /health endpoint."""

    async def test_health_returns_ok(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert "uptime_seconds" in data
        assert "version" in data

    async def test_health_reports_caches(self, client):
        await client.get("/?id=alice&timezone=UTC")
        resp = await client.get("/health")
        caches = {c["name"]: c for c in resp.json()["caches"]}
        assert caches["response"]["size"] == 1
        assert caches["request"]["size"] == 1
        assert caches["response"]["capacity"] == 200
        assert caches["request"]["capacity"] == 25


@pytest.mark.asyncio
class TestHeatmapValidation:
    """Input errors are 400s and never reach the upstream."""

    async def test_missing_id(self, client, span_source):
        resp = await client.get("/")
        assert resp.status_code == 400
        assert resp.text == "Missing required parameter: id"
        assert span_source.calls == 0

    async def test_bad_ranges(self, client, span_source):
        for ranges in ("10,30,70", "70,30,0", "70,130,10", "70,30"):
            resp = await client.get("/", params={"id": "alice", "ranges": ranges})
            assert resp.status_code == 400, ranges
            assert "Invalid ranges parameter" in resp.text
        assert span_source.calls == 0

    async def test_bad_timezone(self, client, span_source):
        resp = await client.get("/", params={"id": "alice", "timezone": "Mars/Olympus"})
        assert resp.status_code == 400
        assert resp.text == "Unsupported timezone"
        assert span_source.calls == 0

    async def test_bad_year(self, client, span_source):
        for year in ("last", "0", "12345"):
            resp = await client.get("/", params={"id": "alice", "year": year})
            assert resp.status_code == 400, year
            assert resp.text == "Invalid year parameter"
        assert span_source.calls == 0

    async def test_bad_integer_parameter(self, client, span_source):
        resp = await client.get("/", params={"id": "alice", "cell_size": "big"})
        assert resp.status_code == 400
        assert "cell_size" in resp.text

    async def test_non_positive_cell_size(self, client):
        resp = await client.get("/", params={"id": "alice", "cell_size": "0"})
        assert resp.status_code == 400

    async def test_rounding_above_255_rejected(self, client, span_source):
        resp = await client.get("/", params={"id": "alice", "rounding": "256"})
        assert resp.status_code == 400
        assert "rounding" in resp.text
        assert span_source.calls == 0

        resp = await client.get("/", params={"id": "alice", "rounding": "255"})
        assert resp.status_code == 200


@pytest.mark.asyncio
class TestHeatmapRendering:
    """Successful renders."""

    async def test_svg_response_headers(self, client):
        resp = await client.get("/", params={"id": "alice"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("image/svg+xml")
        assert resp.headers["cache-control"] == "public, max-age=900"
        assert resp.text.startswith("<svg ")

    async def test_standalone_html(self, client):
        resp = await client.get("/", params={"id": "alice", "standalone": "true"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert "<!DOCTYPE html>" in resp.text
        assert "<svg " in resp.text

    async def test_single_span_single_active_cell(self, client):
        """One hour of activity lights exactly one cell with a 1h tooltip."""
        resp = await client.get("/", params={"id": "alice", "timezone": "UTC"})
        body = resp.text

        assert body.count("<rect") == 366
        assert body.count("<title>1h on ") == 1
        assert body.count("<title>No activity on ") == 365
        assert body.count(f'fill="{LEVEL_4_DARK}"') == 1

    async def test_labels(self, client):
        resp = await client.get("/", params={"id": "alice", "labels": "true"})
        assert ">Less</text>" in resp.text
        assert ">Mon</text>" in resp.text

    async def test_year_current(self, client):
        resp = await client.get("/", params={"id": "alice", "year": "current"})
        assert resp.status_code == 200

    async def test_explicit_past_year_has_no_activity(self, client):
        resp = await client.get("/", params={"id": "alice", "year": "2001", "timezone": "UTC"})
        assert resp.status_code == 200
        assert resp.text.count("<rect") == 365
        assert "<title>1h on " not in resp.text

    async def test_unknown_theme_falls_back(self, client):
        resp = await client.get("/", params={"id": "alice", "timezone": "UTC", "theme": "nope"})
        assert resp.status_code == 200
        assert LEVEL_4_DARK in resp.text

    async def test_trailing_slash_health(self, client):
        resp = await client.get("/health/", follow_redirects=True)
        assert resp.status_code == 200


@pytest.mark.asyncio
class TestCaching:
    """Output and span caches."""

    async def test_identical_request_served_from_output_cache(self, client, span_source):
        params = {"id": "alice", "timezone": "UTC", "labels": "true"}
        first = await client.get("/", params=params)
        second = await client.get("/", params=params)

        assert span_source.calls == 1
        assert first.text == second.text

    async def test_repeated_requests_fetch_once(self, client, span_source):
        await client.get("/", params={"id": "alice"})
        await client.get("/", params={"id": "alice"})
        await client.get("/", params={"id": "alice"})
        assert span_source.calls == 1

    async def test_different_params_reuse_span_cache(self, client, span_source):
        dark = await client.get("/", params={"id": "alice", "theme": "dark"})
        light = await client.get("/", params={"id": "alice", "theme": "light"})

        assert span_source.calls == 1
        assert dark.text != light.text

    async def test_different_users_fetch_separately(self, client, span_source):
        await client.get("/", params={"id": "alice"})
        await client.get("/", params={"id": "bob"})
        assert span_source.calls == 2

    async def test_default_and_explicit_defaults_share_cache(self, client, metrics):
        """Omitted parameters resolve to the same key as their defaults."""
        await client.get("/", params={"id": "alice"})
        await client.get("/", params={"id": "alice", "timezone": "Europe/London",
                                      "ranges": "70,30,10"})
        assert sample(metrics, "heatmap_cache_hits_total", cache="response") == 1


@pytest.mark.asyncio
class TestUpstreamFailures:
    """Upstream errors map to 5xx and are never cached."""

    async def test_fetch_error_is_500(self, client_for, fake_source):
        source = fake_source(error=UpstreamFetchError("Failed to fetch data"))
        client = await client_for(source)

        resp = await client.get("/", params={"id": "alice"})
        assert resp.status_code == 500
        assert resp.text == "Failed to fetch data"

    async def test_parse_error_is_500(self, client_for, fake_source):
        client = await client_for(fake_source(error=UpstreamParseError("Failed to parse response")))
        resp = await client.get("/", params={"id": "alice"})
        assert resp.status_code == 500

    async def test_timeout_is_504(self, client_for, fake_source):
        client = await client_for(fake_source(error=UpstreamTimeoutError("Upstream request timed out")))
        resp = await client.get("/", params={"id": "alice"})
        assert resp.status_code == 504

    async def test_failures_not_cached(self, client_for, fake_source):
        source = fake_source(error=UpstreamFetchError("Failed to fetch data"))
        client = await client_for(source)

        await client.get("/", params={"id": "alice"})
        await client.get("/", params={"id": "alice"})
        assert source.calls == 2

        source.error = None
        resp = await client.get("/", params={"id": "alice"})
        assert resp.status_code == 200
        assert source.calls == 3


@pytest.mark.asyncio
class TestMetrics:
    """Prometheus counters and histograms."""

    async def test_success_counts_request_and_latency(self, client, metrics):
        await client.get("/", params={"id": "alice"})
        assert sample(metrics, "heatmap_http_requests_total") == 1
        assert sample(metrics, "heatmap_user_requests_total", user_id="alice") == 1
        assert sample(metrics, "heatmap_http_request_duration_seconds_count", status="200") == 1

    async def test_validation_errors_counted_by_kind(self, client, metrics):
        await client.get("/")
        await client.get("/", params={"id": "alice", "ranges": "10,30,70"})
        await client.get("/", params={"id": "alice", "timezone": "Mars/Olympus"})
        await client.get("/", params={"id": "alice", "year": "+2024"})

        for kind in ("missing_id", "invalid_ranges", "invalid_timezone", "invalid_year"):
            assert sample(metrics, "heatmap_http_requests_errors_total", error=kind) == 1, kind
        assert sample(metrics, "heatmap_http_requests_total") == 4
        assert sample(metrics, "heatmap_http_request_duration_seconds_count", status="400") == 4
        assert sample(metrics, "heatmap_http_request_duration_seconds_count", status="200") == 0

    async def test_cache_hits_and_misses(self, client, metrics):
        await client.get("/", params={"id": "alice", "theme": "dark"})
        assert sample(metrics, "heatmap_cache_misses_total", cache="response") == 1
        assert sample(metrics, "heatmap_cache_misses_total", cache="request") == 1

        await client.get("/", params={"id": "alice", "theme": "dark"})
        assert sample(metrics, "heatmap_cache_hits_total", cache="response") == 1
        assert sample(metrics, "heatmap_cache_hits_total", cache="request") == 0

        await client.get("/", params={"id": "alice", "theme": "light"})
        assert sample(metrics, "heatmap_cache_misses_total", cache="response") == 2
        assert sample(metrics, "heatmap_cache_hits_total", cache="request") == 1

    async def test_upstream_failure_counted(self, client_for, fake_source):
        source = fake_source(error=UpstreamTimeoutError("Upstream request timed out"))
        metrics = HeatmapMetrics()
        client = await client_for(source, metrics)

        resp = await client.get("/", params={"id": "alice"})
        assert resp.status_code == 504

        assert sample(metrics, "heatmap_http_requests_errors_total", error="upstream_failure") == 1
        assert sample(metrics, "heatmap_http_request_duration_seconds_count", status="504") == 1
