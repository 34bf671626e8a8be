"""Tests for the knowledge base, retrieval and area lookup."""
from homewise.advisor.knowledge import (
    AREA_DATA,
    DOCUMENTS,
    get_document,
    get_documents_by_category,
    lookup_area_info,
    retrieve,
    tokenize,
)
from homewise.advisor.knowledge.retriever import MIN_SCORE, ScoredDocument


class TestKnowledgeBase:

    def test_documents_have_required_fields(self):
        ids = [doc["id"] for doc in DOCUMENTS]

        assert len(ids) == len(set(ids))
        for doc in DOCUMENTS:
            assert doc["title"] and doc["content"] and doc["source"] and doc["category"]

    def test_get_document(self):
        assert get_document("fha-basics")["title"] == "FHA Loan Basics"
        assert get_document("missing") is None

    def test_documents_by_category(self):
        loan_types = get_documents_by_category("loan-types")

        assert loan_types
        assert all(doc["category"] == "loan-types" for doc in loan_types)


class TestRetrieval:

    def test_tokenize(self):
        assert tokenize("What is the 5/1 ARM rate, and PMI?") == ["arm", "rate", "pmi"]
        assert tokenize("first-time buyer") == ["first-time", "buyer"]

    def test_relevant_documents_ranked_first(self):
        results = retrieve("FHA loan down payment credit score")

        assert results
        assert "FHA" in results[0].document["title"]
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)
        assert all(score > MIN_SCORE for score in scores)

    def test_top_k(self):
        assert len(retrieve("mortgage loan", top_k=1)) <= 1

    def test_unrelated_query(self):
        assert retrieve("zebra xylophone quasar") == []
        assert retrieve("") == []

    def test_to_dict(self):
        scored = ScoredDocument(document=DOCUMENTS[0], score=0.4567)

        assert scored.to_dict()["relevance"] == 0.46
        assert scored.to_dict()["source"] == DOCUMENTS[0]["source"]


class TestAreaLookup:

    def test_exact_match(self):
        key, data = lookup_area_info("Austin, TX")

        assert key == "austin, tx"
        assert data == AREA_DATA["austin, tx"]

    def test_city_only(self):
        key, _ = lookup_area_info("  denver ")

        assert key == "denver, co"

    def test_unknown_location(self):
        assert lookup_area_info("Zzyzx, CA") is None
        assert lookup_area_info("") is None
