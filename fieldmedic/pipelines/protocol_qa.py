"""
Protocol Q&A Pipeline for FieldMedic

Holds the most recently pasted protocol text together with its chunks and
TF-IDF index, and answers queries against it:

    document -> chunker -> index (rebuilt on every change)
    (query, index) -> retriever -> ranked chunks -> answer + citations

The chunks and index are swapped in as one snapshot, so a query always
sees a consistent pair even while the text is being replaced.
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

from fieldmedic.observability.metrics import record_index_build, record_query
from fieldmedic.rag.chunker import DEFAULT_TARGET_SIZE, Chunk, chunk_document
from fieldmedic.rag.index import TfidfIndex, build_index
from fieldmedic.rag.retriever import (
    MAX_RESULTS,
    MAX_SENTENCES,
    RankedChunk,
    TfidfRetriever,
    compose_answer,
    format_citation,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProtocolSnapshot:
    """One document build: the text and everything derived from it."""

    text: str
    chunks: tuple[Chunk, ...]
    index: TfidfIndex


@dataclass
class QAResult:
    """Result of one protocol query."""

    answer: str
    results: list[RankedChunk]
    citations: list[str]
    query_id: str
    processing_time_ms: float
    steps: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "results": [
                {
                    "chunk_id": r.chunk.id,
                    "hint": r.hint,
                    "score": round(r.score, 4),
                    "sentences": r.supporting_sentences,
                    "text": r.chunk.text,
                }
                for r in self.results
            ],
            "citations": self.citations,
            "query_id": self.query_id,
            "processing_time_ms": self.processing_time_ms,
        }


def build_snapshot(text: str, target_size: int = DEFAULT_TARGET_SIZE) -> ProtocolSnapshot:
    """Chunk and index a document from scratch."""
    chunks = tuple(chunk_document(text, target_size=target_size))
    return ProtocolSnapshot(text=text, chunks=chunks, index=build_index(chunks))


class ProtocolQAPipeline:
    """Local protocol Q&A over a single pasted document."""

    def __init__(self, target_size: int = DEFAULT_TARGET_SIZE):
        self.target_size = target_size
        self._lock = threading.Lock()
        self._snapshot = build_snapshot("", target_size)
        self._retriever = TfidfRetriever(self._snapshot.chunks, self._snapshot.index)

    @property
    def snapshot(self) -> ProtocolSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        return self.snapshot.chunks

    def load(self, text: str) -> ProtocolSnapshot:
        """Replace the protocol text and rebuild chunks and index in full.

        Blank text clears the index.
        """
        text = text or ""
        if not text.strip():
            text = ""

        snapshot = build_snapshot(text, self.target_size)
        retriever = TfidfRetriever(snapshot.chunks, snapshot.index)
        with self._lock:
            self._snapshot = snapshot
            self._retriever = retriever

        record_index_build(len(snapshot.chunks))
        logger.info(
            "Protocol index rebuilt: %d chars, %d chunks, %d terms",
            len(text),
            len(snapshot.chunks),
            len(snapshot.index.inverse_document_frequency),
        )
        return snapshot

    def run(
        self,
        query: str,
        max_results: int = MAX_RESULTS,
        max_sentences: int = MAX_SENTENCES,
    ) -> QAResult:
        """Answer a query against the current protocol text.

        Stages: retrieve -> extract sentences -> compose answer -> cite.
        """
        start_time = time.time()
        steps: list[dict[str, Any]] = []

        with self._lock:
            retriever = self._retriever

        step_start = time.time()
        results = retriever.search(query, top_k=max_results, max_sentences=max_sentences)
        steps.append(
            {
                "name": "retrieve",
                "duration_ms": round((time.time() - step_start) * 1000, 1),
                "detail": f"{len(results)} chunks scored above zero",
            }
        )

        answer = compose_answer(results, max_sentences)
        citations = [format_citation(i, r) for i, r in enumerate(results, start=1)]

        elapsed = round((time.time() - start_time) * 1000, 1)
        record_query(latency_ms=elapsed, results=len(results))

        return QAResult(
            answer=answer,
            results=results,
            citations=citations,
            query_id=str(uuid.uuid4()),
            processing_time_ms=elapsed,
            steps=steps,
        )
