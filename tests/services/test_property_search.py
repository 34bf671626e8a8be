"""Tests for listing search and listing import."""
import httpx
import pytest

from conftest import FakeLLM
from homewise.exceptions import UpstreamFailure
from homewise.services.property_search import (
    MAX_LISTINGS,
    PropertyImporter,
    PropertySearchClient,
    clean_page_text,
)


# ============================================================================
# SEARCH
# ============================================================================

def zillow_prop(i: int, **overrides):
    prop = {
        "address": f"{100 + i} Oak St, Austin, TX",
        "price": 400_000 + i * 10_000,
        "bedrooms": 3,
        "bathrooms": 2,
        "livingArea": 1800,
        "homeType": "SINGLE_FAMILY",
        "detailUrl": f"/homedetails/{i}_zpid/",
    }
    prop.update(overrides)
    return prop


def search_client(handler, api_key="rapid-key"):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PropertySearchClient(api_key, http_client=http_client, timeout=1.0)


class TestPropertySearch:

    @pytest.mark.asyncio
    async def test_maps_and_filters_listings(self):
        props = [zillow_prop(0), zillow_prop(1, price=None), zillow_prop(2, address=None, detailUrl=None)]
        props += [zillow_prop(i) for i in range(3, 10)]
        client = search_client(lambda request: httpx.Response(200, json={"props": props}))

        listings = await client.search_properties("Austin, TX")

        assert len(listings) == MAX_LISTINGS
        first = listings[0]
        assert first["address"] == "100 Oak St, Austin, TX"
        assert first["beds"] == 3
        assert first["sqft"] == 1800
        assert first["listing_url"] == "https://www.zillow.com/homedetails/0_zpid/"
        assert all(listing["price"] for listing in listings)

    @pytest.mark.asyncio
    async def test_sends_filters_and_headers(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            seen["key"] = request.headers["X-RapidAPI-Key"]
            return httpx.Response(200, json={"props": []})

        listings = await search_client(handler).search_properties("Denver, CO", max_price=450000.0, min_beds=3)

        assert listings == []
        assert seen["params"]["maxPrice"] == "450000"
        assert seen["params"]["bedsMin"] == "3"
        assert seen["params"]["status_type"] == "ForSale"
        assert seen["key"] == "rapid-key"

    @pytest.mark.asyncio
    async def test_requires_api_key(self):
        client = search_client(lambda request: httpx.Response(200, json={}), api_key="")

        with pytest.raises(UpstreamFailure) as exc_info:
            await client.search_properties("Austin, TX")
        assert "RAPIDAPI_KEY" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_api_error(self):
        client = search_client(lambda request: httpx.Response(429, text="Too many requests"))

        with pytest.raises(UpstreamFailure) as exc_info:
            await client.search_properties("Austin, TX")
        assert "429" in exc_info.value.reason


# ============================================================================
# IMPORT
# ============================================================================

LISTING_PAGE = (
    "<html><head><style>body { color: red }</style><script>var tracking = 1;</script></head>"
    "<body><h1>12 Elm Street, Austin, TX 78701</h1>"
    "<p>Listed for $450,000. 3 beds, 2 baths, 2,100 sqft single family home built in 2005. "
    "HOA dues are not applicable. Annual property taxes are approximately $7,500.</p></body></html>"
)


def importer(page_status=200, page=LISTING_PAGE, extraction=""):
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(page_status, text=page))
    )
    return PropertyImporter(FakeLLM(text=extraction), http_client=http_client, timeout=1.0)


class TestPropertyImporter:

    def test_clean_page_text_strips_markup(self):
        text = clean_page_text(LISTING_PAGE)

        assert "tracking" not in text
        assert "color: red" not in text
        assert "<" not in text
        assert "12 Elm Street" in text

    @pytest.mark.asyncio
    async def test_extracts_listing(self):
        extraction = (
            "```json\n"
            '{"address": "12 Elm Street, Austin, TX 78701", "listing_price": 450000, '
            '"property_tax_annual": 7500, "hoa_monthly": null, "bedrooms": 3, "bathrooms": 2, '
            '"square_footage": 2100, "year_built": 2005, "property_type": "single_family", "zestimate": 1}\n'
            "```"
        )
        url = "https://www.zillow.com/homedetails/12-elm/"

        listing = await importer(extraction=extraction)(url)

        assert listing.source == "url_extracted"
        assert listing.source_url == url
        assert listing.listing_price == 450000
        assert listing.property_tax_annual == 7500
        assert listing.hoa_monthly is None
        assert listing.bedrooms == 3

    @pytest.mark.asyncio
    async def test_rejects_non_http_urls(self):
        with pytest.raises(UpstreamFailure):
            await importer().fetch_property_details("ftp://example.com/listing")

    @pytest.mark.asyncio
    async def test_page_error(self):
        with pytest.raises(UpstreamFailure) as exc_info:
            await importer(page_status=403).fetch_property_details("https://example.com/listing")
        assert "403" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_page_without_content(self):
        with pytest.raises(UpstreamFailure):
            await importer(page="<html><body>Hi</body></html>").fetch_property_details("https://example.com/x")

    @pytest.mark.asyncio
    async def test_model_without_price(self):
        extraction = '{"address": "12 Elm Street", "listing_price": null}'

        with pytest.raises(UpstreamFailure) as exc_info:
            await importer(extraction=extraction).fetch_property_details("https://example.com/x")
        assert "price" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_model_without_json(self):
        with pytest.raises(UpstreamFailure):
            await importer(extraction="Sorry, I can't read that page.").fetch_property_details("https://example.com/x")
