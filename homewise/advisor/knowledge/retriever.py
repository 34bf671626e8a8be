"""TF-IDF retrieval over the mortgage knowledge base.

Small enough that sparse dict vectors and a linear scan are fine. The
index is built once, on first use, and never changes afterwards.
"""
import math
import re
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from homewise.advisor.knowledge.knowledge_base import DOCUMENTS


MIN_SCORE = 0.05
DEFAULT_TOP_K = 3

STOP_WORDS = frozenset([
    "the", "and", "for", "are", "but", "not", "you", "all", "can",
    "had", "her", "was", "one", "our", "out", "has", "have", "from",
    "they", "been", "this", "that", "with", "will", "each", "make",
    "like", "than", "them", "some", "what", "when", "who", "how",
    "its", "also", "into", "just", "your", "more", "other", "which",
    "their", "about", "would", "these", "most", "could", "does",
])

_NON_WORD = re.compile(r"[^a-z0-9\s-]")


def tokenize(text: str) -> List[str]:
    """Lowercase, strip punctuation (keeping hyphens), drop short and stop words."""
    words = _NON_WORD.sub(" ", text.lower()).split()
    return [w for w in words if len(w) > 2 and w not in STOP_WORDS]


@dataclass
class ScoredDocument:
    document: Dict[str, str]
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.document["title"],
            "content": self.document["content"],
            "source": self.document["source"],
            "relevance": round(self.score, 2),
        }


class TfidfIndex:
    """Sparse TF-IDF vectors for a fixed document list."""

    def __init__(self, documents: List[Dict[str, str]]):
        self.documents = documents
        tokenized = [tokenize(f"{doc['title']} {doc['content']}") for doc in documents]

        n = len(tokenized)
        doc_freq: Counter = Counter()
        for tokens in tokenized:
            doc_freq.update(set(tokens))
        self.idf = {word: math.log((n + 1) / (df + 1)) + 1 for word, df in doc_freq.items()}

        self.vectors = [self.vectorize(tokens) for tokens in tokenized]

    def vectorize(self, tokens: List[str]) -> Dict[str, float]:
        """Term frequency times IDF; words outside the vocabulary are ignored."""
        if not tokens:
            return {}
        counts = Counter(tokens)
        total = len(tokens)
        return {
            word: (count / total) * self.idf[word]
            for word, count in counts.items()
            if word in self.idf
        }

    @staticmethod
    def cosine(a: Dict[str, float], b: Dict[str, float]) -> float:
        dot = sum(weight * b.get(word, 0.0) for word, weight in a.items())
        norm_a = math.sqrt(sum(w * w for w in a.values()))
        norm_b = math.sqrt(sum(w * w for w in b.values()))
        if norm_a == 0 or norm_b == 0:
            return 0.0
        return dot / (norm_a * norm_b)

    def search(self, query: str, top_k: int = DEFAULT_TOP_K) -> List[ScoredDocument]:
        query_vector = self.vectorize(tokenize(query))
        scored = [
            ScoredDocument(document=doc, score=self.cosine(query_vector, vector))
            for doc, vector in zip(self.documents, self.vectors)
        ]
        # sorted() is stable, so ties keep corpus order
        scored.sort(key=lambda s: s.score, reverse=True)
        return [s for s in scored if s.score > MIN_SCORE][:top_k]


_index: Optional[TfidfIndex] = None


def get_index() -> TfidfIndex:
    global _index
    if _index is None:
        _index = TfidfIndex(DOCUMENTS)
    return _index


def retrieve(query: str, top_k: int = DEFAULT_TOP_K) -> List[ScoredDocument]:
    """Top documents for a query, best first, above the minimum score."""
    return get_index().search(query, top_k)
