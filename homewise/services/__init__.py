"""Shared services: TTL cache and upstream data clients."""
from homewise.services.cache import TTLCache, CacheEntry, get_shared_cache
from homewise.services.fred import FredClient
from homewise.services.bls import BlsClient
from homewise.services.property_search import PropertySearchClient, PropertyImporter

__all__ = [
    "TTLCache",
    "CacheEntry",
    "get_shared_cache",
    "FredClient",
    "BlsClient",
    "PropertySearchClient",
    "PropertyImporter",
]
