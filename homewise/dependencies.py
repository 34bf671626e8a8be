"""FastAPI dependencies.

Collaborators are built per request around the one process-wide cache,
so tests can swap any of them through app.dependency_overrides.
"""
from fastapi import Depends

from homewise.advisor.llm import AdvisorLLM
from homewise.config import settings
from homewise.services import (
    BlsClient,
    FredClient,
    PropertyImporter,
    PropertySearchClient,
    TTLCache,
    get_shared_cache,
)


def get_cache() -> TTLCache:
    return get_shared_cache()


def get_llm() -> AdvisorLLM:
    return AdvisorLLM()


def get_fred_client(cache: TTLCache = Depends(get_cache)) -> FredClient:
    return FredClient(settings.FRED_API_KEY, cache)


def get_bls_client(cache: TTLCache = Depends(get_cache)) -> BlsClient:
    return BlsClient(settings.BLS_API_KEY, cache)


def get_property_search_client() -> PropertySearchClient:
    return PropertySearchClient(settings.RAPIDAPI_KEY)


def get_property_importer(llm: AdvisorLLM = Depends(get_llm)) -> PropertyImporter:
    return PropertyImporter(llm)
