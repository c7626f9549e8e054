"""
TF-IDF Retrieval for FieldMedic Protocol Q&A

Ranks protocol chunks against a free-text query by cosine similarity of
TF-IDF weighted term vectors, then pulls the best supporting sentences
out of each top chunk for citation.

Classic bag-of-words only: no stemming, no synonyms, no learned models.
"""

import logging
import math
import os
import re
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from fieldmedic.rag.chunker import Chunk
from fieldmedic.rag.index import TfidfIndex, build_index
from fieldmedic.rag.tokenizer import tokenize

logger = logging.getLogger(__name__)

MAX_RESULTS = int(os.environ.get("RETRIEVAL_MAX_RESULTS", "5"))
MAX_SENTENCES = int(os.environ.get("RETRIEVAL_MAX_SENTENCES", "3"))

CITATION_PREVIEW_CHARS = 160

_NEWLINES = re.compile(r"\n+")
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


# ============================================
# RankedChunk
# ============================================


@dataclass
class RankedChunk:
    """A protocol chunk with its query score and supporting sentences."""

    chunk: Chunk
    score: float
    supporting_sentences: list[str] = field(default_factory=list)

    @property
    def hint(self) -> str | None:
        return self.chunk.hint


# ============================================
# Vector Math
# ============================================


def weight_counts(counts: Mapping[str, int], index: TfidfIndex) -> dict[str, float]:
    """Multiply raw term counts by idf; tokens unknown to the index drop out."""
    weighted = {}
    for token, count in counts.items():
        weight = count * index.idf(token)
        if weight > 0:
            weighted[token] = weight
    return weighted


def term_vector(text: str, index: TfidfIndex) -> dict[str, float]:
    """TF-IDF weighted term vector for arbitrary text."""
    return weight_counts(Counter(tokenize(text)), index)


def cosine_similarity(a: Mapping[str, float], b: Mapping[str, float]) -> float:
    """Cosine similarity of two sparse non-negative vectors, in [0, 1].

    A zero-norm vector on either side scores 0.
    """
    small, large = (a, b) if len(a) <= len(b) else (b, a)
    dot = sum(weight * large[token] for token, weight in small.items() if token in large)
    norm_a = math.sqrt(sum(w * w for w in a.values()))
    norm_b = math.sqrt(sum(w * w for w in b.values()))
    denominator = norm_a * norm_b or 1.0
    return min(dot / denominator, 1.0)


# ============================================
# Sentence Extraction
# ============================================


def split_sentences(text: str) -> list[str]:
    """Split text into sentences ending in '.', '!' or '?'."""
    flattened = _NEWLINES.sub(" ", text)
    return [s for s in _SENTENCE_BOUNDARY.split(flattened) if s]


def best_sentences(text: str, query: str, max_sentences: int = MAX_SENTENCES) -> list[str]:
    """Pick the sentences that mention the most distinct query tokens.

    Matching is case-insensitive substring containment, so "epi" in a
    query also credits "epinephrine". Sentences mentioning no query token
    are dropped; ties keep document order.
    """
    query_tokens = set(tokenize(query))
    if not query_tokens:
        return []

    scored = []
    for sentence in split_sentences(text):
        haystack = sentence.lower()
        score = sum(1 for token in query_tokens if token in haystack)
        if score > 0:
            scored.append((score, sentence))

    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [sentence for _, sentence in scored[:max_sentences]]


# ============================================
# TfidfRetriever
# ============================================


class TfidfRetriever:
    """Cosine-similarity search over one chunk set and its index."""

    def __init__(self, chunks: Sequence[Chunk], index: TfidfIndex | None = None):
        self._chunks = list(chunks)
        self._index = index if index is not None else build_index(self._chunks)
        self._chunk_vectors = {
            chunk.id: self._chunk_vector(chunk) for chunk in self._chunks
        }

    @property
    def index(self) -> TfidfIndex:
        return self._index

    def _chunk_vector(self, chunk: Chunk) -> dict[str, float]:
        counts = self._index.term_frequency.get(chunk.id)
        if counts is None:
            return term_vector(chunk.text, self._index)
        return weight_counts(counts, self._index)

    def search(
        self,
        query: str,
        top_k: int = MAX_RESULTS,
        max_sentences: int = MAX_SENTENCES,
    ) -> list[RankedChunk]:
        """Rank chunks against the query.

        Returns:
            Up to ``top_k`` chunks with a positive score, best first, each
            with up to ``max_sentences`` supporting sentences.
        """
        if not self._chunks or not query or not query.strip():
            return []

        query_vector = term_vector(query, self._index)
        if not query_vector:
            return []

        scored = []
        for chunk in self._chunks:
            score = cosine_similarity(query_vector, self._chunk_vectors[chunk.id])
            if score > 0:
                scored.append(RankedChunk(chunk=chunk, score=score))

        scored.sort(key=lambda x: x.score, reverse=True)
        results = scored[:top_k]
        for result in results:
            result.supporting_sentences = best_sentences(
                result.chunk.text, query, max_sentences
            )

        logger.debug(
            "Query matched %d of %d chunks, returning %d",
            len(scored),
            len(self._chunks),
            len(results),
        )
        return results


def answer(
    index: TfidfIndex,
    chunks: Sequence[Chunk],
    query: str,
    top_k: int = MAX_RESULTS,
    max_sentences: int = MAX_SENTENCES,
) -> list[RankedChunk]:
    """Rank chunks for a query using a previously built index."""
    return TfidfRetriever(chunks, index).search(query, top_k, max_sentences)


# ============================================
# Answer Composition
# ============================================


def compose_answer(results: Sequence[RankedChunk], max_sentences: int = MAX_SENTENCES) -> str:
    """Join the first supporting sentences across results, in rank order."""
    sentences = [s for result in results for s in result.supporting_sentences]
    return " ".join(sentences[:max_sentences])


def format_citation(rank: int, result: RankedChunk) -> str:
    """Render one citation line: "[1] HEADING — sentences (score 0.42)"."""
    if result.supporting_sentences:
        body = " ".join(result.supporting_sentences)
    else:
        body = result.chunk.text[:CITATION_PREVIEW_CHARS] + "…"
    prefix = f"{result.hint} — " if result.hint else ""
    return f"[{rank}] {prefix}{body} (score {result.score:.2f})"
