"""FRED (Federal Reserve Economic Data) client for rates and home prices."""
import asyncio
import logging
from typing import Dict, Optional

import httpx

from homewise.config import settings
from homewise.exceptions import UpstreamFailure, UpstreamTimeout
from homewise.services.cache import TTLCache

logger = logging.getLogger(__name__)


FRED_BASE_URL = "https://api.stlouisfed.org/fred/series/observations"

# Series used by the analysis and the live-rate tool
MORTGAGE_30Y = "MORTGAGE30US"
MORTGAGE_15Y = "MORTGAGE15US"
MORTGAGE_5_1_ARM = "MORTGAGE5US"
FED_FUNDS = "FEDFUNDS"
MEDIAN_SALE_PRICE = "MSPUS"
MEDIAN_NEW_HOME_PRICE = "MSPNHSUS"
CASE_SHILLER = "CSUSHPINSA"

OBSERVATION_TTL_SECONDS = 3600


class FredClient:
    """
    Latest-observation reader for FRED series.

    Observations are cached under ``fred:<series_id>`` for an hour. Missing
    values (reported by FRED as ".") are skipped.
    """

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

    async def _get(self, params: Dict[str, str]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.get(FRED_BASE_URL, params=params, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(FRED_BASE_URL, params=params)

    async def get_latest_observation(self, series_id: str) -> Dict[str, object]:
        """Return ``{"date": ..., "value": float}`` for the newest valid point."""
        cache_key = f"fred:{series_id}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        if not self.api_key:
            raise UpstreamFailure("fred", "FRED_API_KEY is not set")

        params = {
            "series_id": series_id,
            "api_key": self.api_key,
            "file_type": "json",
            "sort_order": "desc",
            "limit": "5",
        }
        try:
            response = await self._get(params)
        except httpx.TimeoutException as e:
            raise UpstreamTimeout(f"fred:{series_id}", self.timeout) from e
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"fred:{series_id}", str(e)) from e

        if response.status_code != 200:
            raise UpstreamFailure(f"fred:{series_id}", f"HTTP {response.status_code}")

        try:
            result = _first_valid_observation(response.json())
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise UpstreamFailure(f"fred:{series_id}", f"unexpected payload: {e}") from e

        if result is None:
            raise UpstreamFailure(f"fred:{series_id}", "no valid observations")

        self.cache.set(cache_key, result, OBSERVATION_TTL_SECONDS)
        return result

    async def get_mortgage_rates(self) -> Dict[str, object]:
        thirty, fifteen, fed_funds = await asyncio.gather(
            self.get_latest_observation(MORTGAGE_30Y),
            self.get_latest_observation(MORTGAGE_15Y),
            self.get_latest_observation(FED_FUNDS),
        )
        return {
            "thirty_year_fixed": thirty["value"],
            "fifteen_year_fixed": fifteen["value"],
            "federal_funds_rate": fed_funds["value"],
            "data_date": thirty["date"],
            "source": "Federal Reserve Economic Data (FRED)",
        }

    async def get_median_prices(self) -> Dict[str, object]:
        median, new_homes, case_shiller = await asyncio.gather(
            self.get_latest_observation(MEDIAN_SALE_PRICE),
            self.get_latest_observation(MEDIAN_NEW_HOME_PRICE),
            self.get_latest_observation(CASE_SHILLER),
        )
        return {
            "national": median["value"],
            "national_new": new_homes["value"],
            "case_shiller_index": case_shiller["value"],
            "data_date": median["date"],
        }

    async def get_current_rates(self) -> Dict[str, object]:
        """Live rates for the advisor's get_current_rates tool."""
        thirty, fifteen, arm = await asyncio.gather(
            self.get_latest_observation(MORTGAGE_30Y),
            self.get_latest_observation(MORTGAGE_15Y),
            self.get_latest_observation(MORTGAGE_5_1_ARM),
        )
        return {
            "as_of": thirty["date"],
            "thirty_year_fixed": thirty["value"],
            "fifteen_year_fixed": fifteen["value"],
            "five_one_arm": arm["value"],
            "source": "Federal Reserve Economic Data (FRED)",
        }


def _first_valid_observation(payload) -> Optional[Dict[str, object]]:
    """Newest observation with a numeric value; FRED marks gaps with "."."""
    for obs in payload.get("observations", []):
        if obs.get("value") not in (None, "."):
            return {"date": obs["date"], "value": float(obs["value"])}
    return None
