"""Curated area data for the top 50 US metro areas.

Sources:
- Property tax rates: Tax Foundation, county assessor offices (2024)
- Median home prices: NAR, Zillow Home Value Index (2024)
- School ratings: GreatSchools, Niche aggregated metro ratings
- Cost of living: BEA Regional Price Parities, C2ER index (100 = national average)
"""
from typing import Dict, Optional, Tuple


AREA_DATA: Dict[str, Dict] = {
    # -------------------------------------------------------------------------
    # SOUTH
    # -------------------------------------------------------------------------
    "austin, tx": {"property_tax_rate": 0.0167, "median_home_price": 450000, "school_rating": "Above Average", "cost_of_living_index": 103, "state": "TX"},
    "dallas, tx": {"property_tax_rate": 0.0180, "median_home_price": 380000, "school_rating": "Average", "cost_of_living_index": 100, "state": "TX"},
    "houston, tx": {"property_tax_rate": 0.0181, "median_home_price": 320000, "school_rating": "Average", "cost_of_living_index": 96, "state": "TX"},
    "san antonio, tx": {"property_tax_rate": 0.0173, "median_home_price": 280000, "school_rating": "Average", "cost_of_living_index": 91, "state": "TX"},
    "fort worth, tx": {"property_tax_rate": 0.0178, "median_home_price": 340000, "school_rating": "Average", "cost_of_living_index": 97, "state": "TX"},
    "atlanta, ga": {"property_tax_rate": 0.0092, "median_home_price": 380000, "school_rating": "Average", "cost_of_living_index": 98, "state": "GA"},
    "charlotte, nc": {"property_tax_rate": 0.0084, "median_home_price": 370000, "school_rating": "Above Average", "cost_of_living_index": 97, "state": "NC"},
    "raleigh, nc": {"property_tax_rate": 0.0082, "median_home_price": 410000, "school_rating": "Above Average", "cost_of_living_index": 100, "state": "NC"},
    "nashville, tn": {"property_tax_rate": 0.0066, "median_home_price": 420000, "school_rating": "Average", "cost_of_living_index": 101, "state": "TN"},
    "miami, fl": {"property_tax_rate": 0.0089, "median_home_price": 550000, "school_rating": "Below Average", "cost_of_living_index": 118, "state": "FL"},
    "tampa, fl": {"property_tax_rate": 0.0083, "median_home_price": 360000, "school_rating": "Average", "cost_of_living_index": 99, "state": "FL"},
    "orlando, fl": {"property_tax_rate": 0.0086, "median_home_price": 380000, "school_rating": "Average", "cost_of_living_index": 100, "state": "FL"},
    "jacksonville, fl": {"property_tax_rate": 0.0081, "median_home_price": 330000, "school_rating": "Average", "cost_of_living_index": 96, "state": "FL"},
    "richmond, va": {"property_tax_rate": 0.0082, "median_home_price": 340000, "school_rating": "Above Average", "cost_of_living_index": 99, "state": "VA"},
    "virginia beach, va": {"property_tax_rate": 0.0080, "median_home_price": 320000, "school_rating": "Above Average", "cost_of_living_index": 100, "state": "VA"},
    "new orleans, la": {"property_tax_rate": 0.0055, "median_home_price": 260000, "school_rating": "Below Average", "cost_of_living_index": 95, "state": "LA"},
    "birmingham, al": {"property_tax_rate": 0.0040, "median_home_price": 230000, "school_rating": "Below Average", "cost_of_living_index": 88, "state": "AL"},
    "charleston, sc": {"property_tax_rate": 0.0057, "median_home_price": 420000, "school_rating": "Above Average", "cost_of_living_index": 107, "state": "SC"},

    # -------------------------------------------------------------------------
    # WEST
    # -------------------------------------------------------------------------
    "denver, co": {"property_tax_rate": 0.0055, "median_home_price": 550000, "school_rating": "Above Average", "cost_of_living_index": 112, "state": "CO"},
    "colorado springs, co": {"property_tax_rate": 0.0052, "median_home_price": 440000, "school_rating": "Above Average", "cost_of_living_index": 100, "state": "CO"},
    "phoenix, az": {"property_tax_rate": 0.0062, "median_home_price": 430000, "school_rating": "Average", "cost_of_living_index": 102, "state": "AZ"},
    "tucson, az": {"property_tax_rate": 0.0073, "median_home_price": 310000, "school_rating": "Average", "cost_of_living_index": 93, "state": "AZ"},
    "las vegas, nv": {"property_tax_rate": 0.0053, "median_home_price": 400000, "school_rating": "Below Average", "cost_of_living_index": 102, "state": "NV"},
    "salt lake city, ut": {"property_tax_rate": 0.0058, "median_home_price": 520000, "school_rating": "Above Average", "cost_of_living_index": 104, "state": "UT"},
    "boise, id": {"property_tax_rate": 0.0063, "median_home_price": 440000, "school_rating": "Above Average", "cost_of_living_index": 100, "state": "ID"},
    "portland, or": {"property_tax_rate": 0.0093, "median_home_price": 510000, "school_rating": "Above Average", "cost_of_living_index": 113, "state": "OR"},
    "seattle, wa": {"property_tax_rate": 0.0092, "median_home_price": 750000, "school_rating": "Above Average", "cost_of_living_index": 126, "state": "WA"},
    "san francisco, ca": {"property_tax_rate": 0.0073, "median_home_price": 1200000, "school_rating": "Above Average", "cost_of_living_index": 145, "state": "CA"},
    "san jose, ca": {"property_tax_rate": 0.0070, "median_home_price": 1350000, "school_rating": "Above Average", "cost_of_living_index": 150, "state": "CA"},
    "los angeles, ca": {"property_tax_rate": 0.0072, "median_home_price": 900000, "school_rating": "Average", "cost_of_living_index": 136, "state": "CA"},
    "san diego, ca": {"property_tax_rate": 0.0073, "median_home_price": 850000, "school_rating": "Above Average", "cost_of_living_index": 130, "state": "CA"},
    "sacramento, ca": {"property_tax_rate": 0.0070, "median_home_price": 520000, "school_rating": "Average", "cost_of_living_index": 112, "state": "CA"},
    "riverside, ca": {"property_tax_rate": 0.0098, "median_home_price": 540000, "school_rating": "Average", "cost_of_living_index": 108, "state": "CA"},
    "honolulu, hi": {"property_tax_rate": 0.0028, "median_home_price": 820000, "school_rating": "Average", "cost_of_living_index": 143, "state": "HI", "notes": "Lowest property tax rate in the US"},

    # -------------------------------------------------------------------------
    # MIDWEST
    # -------------------------------------------------------------------------
    "chicago, il": {"property_tax_rate": 0.0197, "median_home_price": 330000, "school_rating": "Average", "cost_of_living_index": 105, "state": "IL"},
    "minneapolis, mn": {"property_tax_rate": 0.0112, "median_home_price": 360000, "school_rating": "Above Average", "cost_of_living_index": 103, "state": "MN"},
    "columbus, oh": {"property_tax_rate": 0.0153, "median_home_price": 280000, "school_rating": "Average", "cost_of_living_index": 94, "state": "OH"},
    "cincinnati, oh": {"property_tax_rate": 0.0157, "median_home_price": 260000, "school_rating": "Average", "cost_of_living_index": 91, "state": "OH"},
    "cleveland, oh": {"property_tax_rate": 0.0168, "median_home_price": 210000, "school_rating": "Below Average", "cost_of_living_index": 89, "state": "OH"},
    "indianapolis, in": {"property_tax_rate": 0.0085, "median_home_price": 260000, "school_rating": "Average", "cost_of_living_index": 92, "state": "IN"},
    "kansas city, mo": {"property_tax_rate": 0.0112, "median_home_price": 280000, "school_rating": "Average", "cost_of_living_index": 93, "state": "MO"},
    "detroit, mi": {"property_tax_rate": 0.0162, "median_home_price": 230000, "school_rating": "Below Average", "cost_of_living_index": 90, "state": "MI"},
    "milwaukee, wi": {"property_tax_rate": 0.0185, "median_home_price": 260000, "school_rating": "Average", "cost_of_living_index": 93, "state": "WI"},
    "st. louis, mo": {"property_tax_rate": 0.0100, "median_home_price": 240000, "school_rating": "Average", "cost_of_living_index": 90, "state": "MO"},

    # -------------------------------------------------------------------------
    # NORTHEAST
    # -------------------------------------------------------------------------
    "new york, ny": {"property_tax_rate": 0.0168, "median_home_price": 680000, "school_rating": "Average", "cost_of_living_index": 140, "state": "NY"},
    "boston, ma": {"property_tax_rate": 0.0112, "median_home_price": 700000, "school_rating": "Above Average", "cost_of_living_index": 132, "state": "MA"},
    "philadelphia, pa": {"property_tax_rate": 0.0134, "median_home_price": 320000, "school_rating": "Average", "cost_of_living_index": 102, "state": "PA"},
    "pittsburgh, pa": {"property_tax_rate": 0.0136, "median_home_price": 220000, "school_rating": "Average", "cost_of_living_index": 89, "state": "PA"},
    "washington, dc": {"property_tax_rate": 0.0085, "median_home_price": 600000, "school_rating": "Above Average", "cost_of_living_index": 125, "state": "DC"},
    "baltimore, md": {"property_tax_rate": 0.0101, "median_home_price": 350000, "school_rating": "Average", "cost_of_living_index": 105, "state": "MD"},
    "hartford, ct": {"property_tax_rate": 0.0198, "median_home_price": 310000, "school_rating": "Above Average", "cost_of_living_index": 106, "state": "CT", "notes": "Among the highest property tax rates in the US"},
    "providence, ri": {"property_tax_rate": 0.0146, "median_home_price": 380000, "school_rating": "Average", "cost_of_living_index": 103, "state": "RI"},
}


def lookup_area_info(location: str) -> Optional[Tuple[str, Dict]]:
    """
    Look up area data by location string.

    Tries an exact "city, st" match, then the city name alone, then a
    partial match in either direction. Returns (matched_key, data) or None.
    """
    normalized = location.lower().strip()
    if not normalized:
        return None

    if normalized in AREA_DATA:
        return normalized, AREA_DATA[normalized]

    city_only = normalized.split(",")[0].strip()
    for key, data in AREA_DATA.items():
        if key.split(",")[0].strip() == city_only:
            return key, data

    for key, data in AREA_DATA.items():
        key_city = key.split(",")[0].strip()
        if city_only in key or key_city in city_only:
            return key, data

    return None
