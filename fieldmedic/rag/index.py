"""
TF-IDF Index for FieldMedic protocol Q&A.

Term frequencies and inverse document frequencies are built together in
one call and returned as a single immutable value. There is no
incremental update: a changed document means a new index.
"""

import logging
import math
from collections import Counter
from collections.abc import Mapping, Sequence
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, field_validator

from fieldmedic.rag.chunker import Chunk
from fieldmedic.rag.tokenizer import tokenize

logger = logging.getLogger(__name__)


class TfidfIndex(BaseModel):
    """Immutable TF-IDF statistics over one chunk set.

    Attributes:
        term_frequency: chunk id -> raw term counts for that chunk.
        inverse_document_frequency: token -> smoothed idf weight.
    """

    model_config = ConfigDict(frozen=True)

    term_frequency: Mapping[str, Mapping[str, int]]
    inverse_document_frequency: Mapping[str, float]

    @field_validator("term_frequency", mode="after")
    @classmethod
    def freeze_term_frequency(
        cls, v: Mapping[str, Mapping[str, int]]
    ) -> Mapping[str, Mapping[str, int]]:
        return MappingProxyType({k: MappingProxyType(dict(c)) for k, c in v.items()})

    @field_validator("inverse_document_frequency", mode="after")
    @classmethod
    def freeze_idf(cls, v: Mapping[str, float]) -> Mapping[str, float]:
        return MappingProxyType(dict(v))

    @property
    def chunk_count(self) -> int:
        return len(self.term_frequency)

    def idf(self, token: str) -> float:
        """IDF weight of a token; zero for tokens not in the index."""
        return self.inverse_document_frequency.get(token, 0.0)


def smoothed_idf(chunk_count: int, document_frequency: int) -> float:
    """ln((N + 1) / (df + 0.5)) + 1, finite and positive for any df <= N."""
    return math.log((chunk_count + 1) / (document_frequency + 0.5)) + 1


def build_index(chunks: Sequence[Chunk]) -> TfidfIndex:
    """Build term-frequency and idf statistics from scratch.

    Args:
        chunks: The current chunk set.

    Returns:
        A TfidfIndex derived only from these chunks.
    """
    term_frequency: dict[str, Counter[str]] = {}
    document_frequency: Counter[str] = Counter()

    for chunk in chunks:
        counts = Counter(tokenize(chunk.text))
        term_frequency[chunk.id] = counts
        document_frequency.update(counts.keys())

    n = len(chunks)
    idf = {
        token: smoothed_idf(n, df) for token, df in document_frequency.items()
    }

    logger.debug("Built TF-IDF index: %d chunks, %d terms", n, len(idf))
    return TfidfIndex(term_frequency=term_frequency, inverse_document_frequency=idf)
