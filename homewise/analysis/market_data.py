"""Phase 1: gather the market snapshot.

All sources are fetched concurrently and fail independently. A failed
source is replaced by its documented default and named in
``fallbacks_used``; fetch_market_snapshot itself never raises.
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from homewise.advisor.knowledge import lookup_area_info
from homewise.schemas.market import (
    AreaSnapshot,
    InflationData,
    MarketSnapshot,
    MedianHomePrices,
    MortgageRates,
)
from homewise.schemas.profile import Profile, PropertyInfo

logger = logging.getLogger(__name__)


PropertyImportFn = Callable[[str], Awaitable[PropertyInfo]]


async def _lookup_area(location: Optional[str]) -> Optional[AreaSnapshot]:
    if not location:
        return None
    match = lookup_area_info(location)
    if match is None:
        logger.info(f"No curated area data for {location!r}")
        return None
    key, data = match
    return AreaSnapshot(location=key, **data)


async def _nothing() -> None:
    return None


def needs_import(listing: Optional[PropertyInfo]) -> bool:
    """A listing is imported when it came from a URL or has no price yet."""
    if listing is None or not listing.source_url:
        return False
    return listing.source != "manual" or listing.listing_price == 0


async def fetch_market_snapshot(
    profile: Profile,
    fred: Any,
    bls: Any,
    property_importer: Optional[PropertyImportFn] = None,
) -> MarketSnapshot:
    """
    Fetch rates, median prices, inflation, area data and the listing.

    Args:
        profile: Validated buyer profile
        fred: FredClient (or anything with the same coroutine methods)
        bls: BlsClient
        property_importer: Optional URL -> PropertyInfo coroutine

    Returns:
        A complete MarketSnapshot, defaults filled in for failed sources
    """
    started = time.monotonic()
    listing = profile.listing
    import_listing = property_importer is not None and needs_import(listing)

    rates, prices, inflation, area, imported = await asyncio.gather(
        fred.get_mortgage_rates(),
        fred.get_median_prices(),
        bls.get_inflation(),
        _lookup_area(profile.target_location),
        property_importer(listing.source_url) if import_listing else _nothing(),
        return_exceptions=True,
    )

    fallbacks = []

    if isinstance(rates, BaseException):
        logger.warning(f"Mortgage rates unavailable, using fallback: {rates}")
        fallbacks.append("mortgage_rates")
        mortgage_rates = MortgageRates()
    else:
        mortgage_rates = MortgageRates(**rates)

    if isinstance(prices, BaseException):
        logger.warning(f"Median home prices unavailable, using fallback: {prices}")
        fallbacks.append("median_home_prices")
        median_prices = MedianHomePrices()
    else:
        median_prices = MedianHomePrices(**prices)

    if isinstance(inflation, BaseException):
        logger.warning(f"Inflation data unavailable, using fallback: {inflation}")
        fallbacks.append("inflation")
        inflation_data = InflationData()
    else:
        inflation_data = InflationData(**inflation)

    if isinstance(area, BaseException):
        logger.warning(f"Area lookup failed: {area}")
        fallbacks.append("area")
        area = None

    if isinstance(imported, BaseException):
        logger.warning(f"Property import failed, keeping the submitted listing: {imported}")
        fallbacks.append("property_import")
        imported = None

    snapshot = MarketSnapshot(
        mortgage_rates=mortgage_rates,
        median_home_prices=median_prices,
        inflation=inflation_data,
        area=area,
        listing=imported or listing,
        fallbacks_used=fallbacks,
    )

    logger.info(
        f"Market data fetched in {time.monotonic() - started:.1f}s "
        f"(30yr {mortgage_rates.thirty_year_fixed}%, fallbacks: {fallbacks or 'none'})"
    )
    return snapshot
