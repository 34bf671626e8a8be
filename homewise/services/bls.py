"""Bureau of Labor Statistics client for shelter and headline CPI."""
import logging
from datetime import date
from typing import Dict, List, Optional

import httpx

from homewise.config import settings
from homewise.exceptions import UpstreamFailure, UpstreamTimeout
from homewise.services.cache import TTLCache

logger = logging.getLogger(__name__)


BLS_BASE_URL = "https://api.bls.gov/publicAPI/v2/timeseries/data/"

SHELTER_CPI = "CUSR0000SAH1"
ALL_ITEMS_CPI = "CUSR0000SA0"

SERIES_TTL_SECONDS = 3600


def _year_over_year(points: List[Dict[str, str]]) -> Dict[str, float]:
    """Current value, value twelve months back and the change in percent."""
    if not points:
        return {"current": 0.0, "year_ago": 0.0, "rate": 0.0}
    current = float(points[0]["value"])
    year_ago_point = points[12] if len(points) > 12 else points[-1]
    year_ago = float(year_ago_point["value"])
    rate = (current - year_ago) / year_ago * 100 if year_ago > 0 else 0.0
    return {"current": current, "year_ago": year_ago, "rate": round(rate, 2)}


class BlsClient:
    """POSTs series requests to the BLS public API; the key is optional."""

    def __init__(
        self,
        api_key: str,
        cache: TTLCache,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key
        self.cache = cache
        self._http_client = http_client
        self.timeout = timeout if timeout is not None else settings.UPSTREAM_TIMEOUT_SECONDS

    async def _post(self, body: Dict[str, object]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(BLS_BASE_URL, json=body, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(BLS_BASE_URL, json=body)

    async def get_series(self, series_ids: List[str]) -> Dict[str, List[Dict[str, str]]]:
        """Monthly points for the last two calendar years, newest first."""
        cache_key = f"bls:{','.join(series_ids)}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        year = date.today().year
        body: Dict[str, object] = {
            "seriesid": series_ids,
            "startyear": str(year - 1),
            "endyear": str(year),
        }
        if self.api_key:
            body["registrationkey"] = self.api_key

        try:
            response = await self._post(body)
        except httpx.TimeoutException as e:
            raise UpstreamTimeout("bls", self.timeout) from e
        except httpx.HTTPError as e:
            raise UpstreamFailure("bls", str(e)) from e

        if response.status_code != 200:
            raise UpstreamFailure("bls", f"HTTP {response.status_code}")

        data = response.json()
        if data.get("status") != "REQUEST_SUCCEEDED":
            raise UpstreamFailure("bls", f"status {data.get('status')}")

        result = {
            series["seriesID"]: series.get("data", [])
            for series in data.get("Results", {}).get("series", [])
        }
        self.cache.set(cache_key, result, SERIES_TTL_SECONDS)
        return result

    async def get_inflation(self) -> Dict[str, float]:
        series = await self.get_series([SHELTER_CPI, ALL_ITEMS_CPI])
        shelter = _year_over_year(series.get(SHELTER_CPI, []))
        general = _year_over_year(series.get(ALL_ITEMS_CPI, []))
        if shelter["current"] <= 0:
            raise UpstreamFailure("bls", "no shelter CPI observations")

        return {
            "shelter_cpi_current": shelter["current"],
            "shelter_cpi_year_ago": shelter["year_ago"],
            "shelter_inflation_rate": shelter["rate"],
            "general_inflation_rate": general["rate"],
        }
