"""Tests for the market data phase."""
import pytest

from conftest import FakeBls, FakeFred
from homewise.analysis.market_data import fetch_market_snapshot, needs_import
from homewise.exceptions import UpstreamFailure, UpstreamTimeout
from homewise.schemas.profile import Profile, PropertyInfo


class TestFetchMarketSnapshot:

    @pytest.mark.asyncio
    async def test_all_sources_available(self, profile):
        snapshot = await fetch_market_snapshot(profile, FakeFred(), FakeBls())

        assert snapshot.fallbacks_used == []
        assert snapshot.mortgage_rates.thirty_year_fixed == 6.85
        assert snapshot.median_home_prices.national == 410_800
        assert snapshot.inflation.shelter_inflation_rate == 4.61
        assert snapshot.area.location == "austin, tx"
        assert snapshot.area.property_tax_rate == 0.0167
        assert snapshot.listing is None

    @pytest.mark.asyncio
    async def test_failed_sources_use_defaults(self, profile):
        snapshot = await fetch_market_snapshot(
            profile,
            FakeFred(error=UpstreamTimeout("fred:MORTGAGE30US", 10)),
            FakeBls(error=UpstreamFailure("bls", "HTTP 503")),
        )

        assert snapshot.fallbacks_used == ["mortgage_rates", "median_home_prices", "inflation"]
        assert snapshot.mortgage_rates.thirty_year_fixed == 6.5
        assert snapshot.mortgage_rates.source.startswith("fallback")
        assert snapshot.median_home_prices.national == 420_400
        assert snapshot.inflation.general_inflation_rate == 2.9

    @pytest.mark.asyncio
    async def test_one_failure_does_not_affect_others(self, profile):
        snapshot = await fetch_market_snapshot(
            profile, FakeFred(rates_error=RuntimeError("boom")), FakeBls()
        )

        assert snapshot.fallbacks_used == ["mortgage_rates"]
        assert snapshot.median_home_prices.national == 410_800

    @pytest.mark.asyncio
    async def test_unknown_location_has_no_area(self, profile_payload):
        profile = Profile.model_validate({**profile_payload, "target_location": "Zzyzx, CA"})

        snapshot = await fetch_market_snapshot(profile, FakeFred(), FakeBls())

        assert snapshot.area is None
        assert "area" not in snapshot.fallbacks_used

    @pytest.mark.asyncio
    async def test_listing_imported_from_url(self, profile_payload):
        url = "https://www.zillow.com/homedetails/12-elm/"
        profile = Profile.model_validate({
            **profile_payload,
            "listing": {"source_url": url, "listing_price": 0},
        })
        requested = []

        async def importer(source_url):
            requested.append(source_url)
            return PropertyInfo(source="url_extracted", source_url=source_url, listing_price=455_000)

        snapshot = await fetch_market_snapshot(profile, FakeFred(), FakeBls(), importer)

        assert requested == [url]
        assert snapshot.listing.listing_price == 455_000
        assert snapshot.listing.source == "url_extracted"

    @pytest.mark.asyncio
    async def test_import_failure_keeps_submitted_listing(self, profile_payload):
        profile = Profile.model_validate({
            **profile_payload,
            "listing": {"source": "url_extracted", "source_url": "https://example.com/x", "listing_price": 400_000},
        })

        async def importer(source_url):
            raise UpstreamFailure("property_import", "HTTP 403")

        snapshot = await fetch_market_snapshot(profile, FakeFred(), FakeBls(), importer)

        assert snapshot.fallbacks_used == ["property_import"]
        assert snapshot.listing == profile.listing


def test_needs_import():
    assert not needs_import(None)
    assert not needs_import(PropertyInfo(listing_price=400_000))
    assert not needs_import(PropertyInfo(source_url="https://example.com", listing_price=400_000))
    assert needs_import(PropertyInfo(source_url="https://example.com", listing_price=0))
    assert needs_import(PropertyInfo(source="url_extracted", source_url="https://example.com", listing_price=1))
