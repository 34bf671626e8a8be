"""Homewise Knowledge Base

Curated reference data the advisor draws on:
1. DOCUMENTS - mortgage reference documents, searched by TF-IDF retrieval
2. AREA_DATA - property tax, prices and cost of living for top US metros
"""

from homewise.advisor.knowledge.knowledge_base import (
    DOCUMENTS,
    get_document,
    get_documents_by_category,
)
from homewise.advisor.knowledge.area_data import AREA_DATA, lookup_area_info
from homewise.advisor.knowledge.retriever import ScoredDocument, retrieve, tokenize

__all__ = [
    # Documents
    "DOCUMENTS",
    "get_document",
    "get_documents_by_category",
    # Area data
    "AREA_DATA",
    "lookup_area_info",
    # Retrieval
    "ScoredDocument",
    "retrieve",
    "tokenize",
]
