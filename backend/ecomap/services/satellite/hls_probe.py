# backend/ecomap/services/satellite/hls_probe.py
import httpx
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from ecomap.core.config import settings

logger = logging.getLogger(__name__)


class HlsProbeService:
    """
    Diagnostic: asks NASA CMR which HLS (Harmonized Landsat Sentinel-2)
    granules cover a point. This is what a real band proxy would read;
    the probe itself never downloads pixels.
    """

    # ±0.1 degree (~11 km) around the point
    BBOX_HALF_SIZE = 0.1
    PAGE_SIZE = 10

    def __init__(self, search_url: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.search_url = search_url or settings.CMR_SEARCH_URL
        self.timeout = timeout or settings.HTTP_TIMEOUT
        self.transport = transport
        self.collections = {
            "HLSS30-VI": settings.HLS_VI_COLLECTION_ID,
            "HLSS30-SR": settings.HLS_SR_COLLECTION_ID,
        }

    @staticmethod
    def temporal_window(date: Optional[str] = None, now: Optional[datetime] = None) -> str:
        """±3 days around `date`, or the last 30 days."""
        if date:
            target = datetime.fromisoformat(date.replace("Z", "+00:00"))
            start, end = target - timedelta(days=3), target + timedelta(days=3)
        else:
            end = now or datetime.now(timezone.utc)
            start = end - timedelta(days=30)
        return f"{start.isoformat()}/{end.isoformat()}"

    def bounding_box(self, lat: float, lon: float) -> str:
        d = self.BBOX_HALF_SIZE
        return ",".join(str(round(v, 6)) for v in (lon - d, lat - d, lon + d, lat + d))

    async def run_diagnostic(self, lat: float, lon: float, date: Optional[str] = None) -> Dict[str, Any]:
        report = {
            "lat": lat,
            "lon": lon,
            "temporal": self.temporal_window(date),
            "bounding_box": self.bounding_box(lat, lon),
            "has_granules": False,
            "test_results": [],
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            # Vegetation indices first (pre-computed), then surface reflectance
            for label, concept_id in self.collections.items():
                result = await self._probe_collection(client, label, concept_id, report)
                report["test_results"].append(result)
                if result.get("granule_count"):
                    report["has_granules"] = True
                    break

        return report

    async def _probe_collection(self, client, label, concept_id, report) -> Dict[str, Any]:
        params = {
            "collection_concept_id": concept_id,
            "bounding_box": report["bounding_box"],
            "temporal": report["temporal"],
            "page_size": self.PAGE_SIZE,
            "sort_key": "-start_date",  # most recent first
        }
        logger.info(f"🛰️ Searching CMR ({label}) around {report['lat']:.4f}, {report['lon']:.4f}...")

        try:
            resp = await client.get(self.search_url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"CMR connection error: {e}")
            return {"collection": label, "concept_id": concept_id, "success": False, "error": str(e)}

        result = {
            "collection": label,
            "concept_id": concept_id,
            "status_code": resp.status_code,
            "success": resp.status_code == 200,
        }

        if resp.status_code != 200:
            result["error_body"] = resp.text[:500]
            return result

        try:
            data = resp.json()
        except ValueError:
            result["success"] = False
            result["error_body"] = "Invalid JSON"
            return result

        feed = data.get("feed") if isinstance(data, dict) else None
        entries = (feed or {}).get("entry") or []

        result["granule_count"] = len(entries)
        if entries:
            latest = entries[0]
            result["latest"] = {
                "id": latest.get("id"),
                "title": latest.get("title"),
                "time_start": latest.get("time_start"),
            }
        return result
