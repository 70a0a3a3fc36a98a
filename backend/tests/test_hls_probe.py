"""
Tests for the NASA CMR (HLS granule) diagnostic, with the network mocked out.
"""

from datetime import datetime, timezone

import httpx
import pytest

from ecomap.core.config import settings
from ecomap.services.satellite.hls_probe import HlsProbeService

from conftest import SONOMA

CMR_URL = "https://cmr.test/search/granules.json"

GRANULE = {
    "id": "G123-LPCLOUD",
    "title": "HLS.S30.T10SEH.2024153T184921.v2.0",
    "time_start": "2024-06-01T18:49:21.000Z",
}


def _probe(handler):
    return HlsProbeService(search_url=CMR_URL, timeout=5, transport=httpx.MockTransport(handler))


class TestTemporalWindow:

    def test_around_date(self):
        window = HlsProbeService.temporal_window("2024-06-10")
        assert window == "2024-06-07T00:00:00/2024-06-13T00:00:00"

    def test_last_30_days(self):
        now = datetime(2024, 6, 30, tzinfo=timezone.utc)
        window = HlsProbeService.temporal_window(now=now)
        assert window.startswith("2024-05-31T00:00:00")
        assert window.endswith("2024-06-30T00:00:00+00:00")


class TestRunDiagnostic:

    @pytest.mark.asyncio
    async def test_stops_at_first_collection_with_granules(self):
        seen = []

        def handler(request):
            seen.append(request.url.params["collection_concept_id"])
            return httpx.Response(200, json={"feed": {"entry": [GRANULE]}})

        report = await _probe(handler).run_diagnostic(*SONOMA, date="2024-06-01")

        assert report["has_granules"] is True
        assert len(seen) == 1
        assert report["test_results"][0]["collection"] == "HLSS30-VI"
        assert report["test_results"][0]["latest"]["title"] == GRANULE["title"]

    @pytest.mark.asyncio
    async def test_falls_back_to_surface_reflectance(self):
        def handler(request):
            # VI collection is empty for this tile
            if request.url.params["collection_concept_id"] == settings.HLS_VI_COLLECTION_ID:
                return httpx.Response(200, json={"feed": {"entry": []}})
            return httpx.Response(200, json={"feed": {"entry": [GRANULE, GRANULE]}})

        report = await _probe(handler).run_diagnostic(*SONOMA)

        counts = [r["granule_count"] for r in report["test_results"]]
        assert counts == [0, 2]
        assert report["has_granules"] is True

    @pytest.mark.asyncio
    async def test_http_error_is_reported(self):
        report = await _probe(lambda request: httpx.Response(500, text="boom")).run_diagnostic(*SONOMA)

        assert report["has_granules"] is False
        assert [r["status_code"] for r in report["test_results"]] == [500, 500]
        assert report["test_results"][0]["error_body"] == "boom"

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        report = await _probe(lambda request: httpx.Response(200, text="nope")).run_diagnostic(*SONOMA)
        assert report["test_results"][0]["error_body"] == "Invalid JSON"
        assert report["test_results"][0]["success"] is False

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectTimeout("timeout", request=request)

        report = await _probe(handler).run_diagnostic(*SONOMA)

        assert report["has_granules"] is False
        assert all(r["success"] is False for r in report["test_results"])

    def test_bounding_box(self):
        box = HlsProbeService(search_url=CMR_URL).bounding_box(38.5, -122.9)
        assert box == "-123.0,38.4,-122.8,38.6"
