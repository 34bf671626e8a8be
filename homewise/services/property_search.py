"""Listing search (RapidAPI Zillow) and single-listing import."""
import json
import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx

from homewise.config import settings
from homewise.exceptions import UpstreamFailure, UpstreamTimeout
from homewise.schemas.profile import PropertyInfo

logger = logging.getLogger(__name__)


ZILLOW_HOST = "zillow-com1.p.rapidapi.com"
ZILLOW_SEARCH_URL = f"https://{ZILLOW_HOST}/propertyExtendedSearch"
MAX_LISTINGS = 5


# ============================================================================
# SEARCH
# ============================================================================

class PropertySearchClient:
    """Searches for-sale houses through the RapidAPI Zillow endpoint."""

    def __init__(
        self,
        api_key: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key
        self._http_client = http_client
        self.timeout = timeout if timeout is not None else settings.UPSTREAM_TIMEOUT_SECONDS

    async def _get(self, params: Dict[str, str], headers: Dict[str, str]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.get(
                ZILLOW_SEARCH_URL, params=params, headers=headers, timeout=self.timeout
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(ZILLOW_SEARCH_URL, params=params, headers=headers)

    async def search_properties(
        self,
        location: str,
        max_price: Optional[float] = None,
        min_beds: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Return up to five listings with a price and an address."""
        if not self.api_key:
            raise UpstreamFailure("zillow", "RAPIDAPI_KEY environment variable is not set")

        params = {
            "location": location,
            "status_type": "ForSale",
            "sort": "Newest",
            "home_type": "Houses",
        }
        if max_price:
            params["maxPrice"] = str(int(max_price))
        if min_beds:
            params["bedsMin"] = str(int(min_beds))

        headers = {"X-RapidAPI-Key": self.api_key, "X-RapidAPI-Host": ZILLOW_HOST}
        try:
            response = await self._get(params, headers)
        except httpx.TimeoutException as e:
            raise UpstreamTimeout("zillow", self.timeout) from e
        except httpx.HTTPError as e:
            raise UpstreamFailure("zillow", str(e)) from e

        if response.status_code != 200:
            raise UpstreamFailure("zillow", f"Zillow API error ({response.status_code}): {response.text[:200]}")

        props = response.json().get("props") or []
        listings = []
        for prop in props:
            if not prop.get("price") or not prop.get("address"):
                continue
            detail_url = prop.get("detailUrl")
            listings.append({
                "address": prop["address"],
                "price": prop["price"],
                "beds": prop.get("bedrooms") or 0,
                "baths": prop.get("bathrooms") or 0,
                "sqft": prop.get("livingArea"),
                "home_type": prop.get("homeType") or "House",
                "listing_url": f"https://www.zillow.com{detail_url}" if detail_url else None,
            })
            if len(listings) == MAX_LISTINGS:
                break

        logger.info(f"Property search for {location!r} returned {len(listings)} listings")
        return listings


# ============================================================================
# IMPORT FROM URL
# ============================================================================

EXTRACTION_PROMPT = """Extract property listing details from the following page content. Return ONLY valid JSON (no markdown, no explanation) with these fields:

{
  "address": "Full street address including city, state",
  "listing_price": 450000,
  "property_tax_annual": 5400,
  "hoa_monthly": 250,
  "square_footage": 2100,
  "bedrooms": 3,
  "bathrooms": 2,
  "year_built": 2005,
  "property_type": "single_family"
}

Rules:
- listing_price must be a number with no formatting (e.g., 450000 not "$450,000")
- property_tax_annual should be the annual amount (if monthly is shown, multiply by 12)
- hoa_monthly should be the monthly HOA amount
- property_type must be one of: "single_family", "condo", "townhouse", "multi_family", "other"
- Set any field to null if it cannot be found in the content"""

_SCRIPT_OR_STYLE = re.compile(r"<(script|style)[\s\S]*?</\1>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")
_MAX_PAGE_CHARS = 50_000
_MIN_PAGE_CHARS = 100


def clean_page_text(html: str) -> str:
    """Strip scripts, styles and tags, then collapse whitespace."""
    text = _SCRIPT_OR_STYLE.sub("", html)
    text = _TAG.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()[:_MAX_PAGE_CHARS]


class PropertyImporter:
    """
    Turns a listing URL into a PropertyInfo.

    Fetches the page, strips it to text and asks the model for a JSON
    extraction. Any failure raises UpstreamFailure/UpstreamTimeout so the
    analysis can fall back to the manually entered listing.
    """

    def __init__(self, llm, http_client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None):
        self.llm = llm
        self._http_client = http_client
        self.timeout = timeout if timeout is not None else settings.UPSTREAM_TIMEOUT_SECONDS

    async def _fetch_page(self, url: str) -> str:
        headers = {
            "User-Agent": "Mozilla/5.0 (compatible; HomewiseBot/1.0)",
            "Accept": "text/html",
        }
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            raise UpstreamTimeout("property_import", self.timeout) from e
        except httpx.HTTPError as e:
            raise UpstreamFailure("property_import", str(e)) from e

        if response.status_code != 200:
            raise UpstreamFailure("property_import", f"Could not access that listing (HTTP {response.status_code})")
        return response.text

    async def fetch_property_details(self, url: str) -> PropertyInfo:
        if urlparse(url).scheme not in ("http", "https"):
            raise UpstreamFailure("property_import", "Only HTTP/HTTPS URLs are supported")

        page_text = clean_page_text(await self._fetch_page(url))
        if len(page_text) < _MIN_PAGE_CHARS:
            raise UpstreamFailure("property_import", "Page did not contain enough content to extract from")

        raw = await self.llm.complete_text(
            f"{EXTRACTION_PROMPT}\n\n---PAGE CONTENT---\n{page_text}",
            max_tokens=512,
        )
        match = re.search(r"\{[\s\S]*\}", raw or "")
        if not match:
            raise UpstreamFailure("property_import", "Model returned no JSON")
        try:
            extracted = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise UpstreamFailure("property_import", f"Model returned invalid JSON: {e}") from e

        if not extracted.get("listing_price"):
            raise UpstreamFailure("property_import", "No listing price found on the page")

        fields = {k: v for k, v in extracted.items() if v is not None and k in PropertyInfo.model_fields}
        return PropertyInfo(source="url_extracted", source_url=url, **fields)

    async def __call__(self, url: str) -> PropertyInfo:
        return await self.fetch_property_details(url)
