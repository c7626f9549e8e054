"""
FieldMedic RAG Module

Local protocol retrieval: tokenizing, paragraph chunking, TF-IDF indexing,
and cosine-similarity ranking with supporting sentences.
"""

from fieldmedic.rag.chunker import Chunk, ParagraphChunker, chunk_document, guess_hint
from fieldmedic.rag.index import TfidfIndex, build_index
from fieldmedic.rag.retriever import (
    RankedChunk,
    TfidfRetriever,
    answer,
    best_sentences,
    compose_answer,
    cosine_similarity,
    format_citation,
    term_vector,
)
from fieldmedic.rag.tokenizer import tokenize

__all__ = [
    # Tokenizer
    "tokenize",
    # Chunker
    "Chunk",
    "ParagraphChunker",
    "chunk_document",
    "guess_hint",
    # Index
    "TfidfIndex",
    "build_index",
    # Retriever
    "RankedChunk",
    "TfidfRetriever",
    "answer",
    "best_sentences",
    "compose_answer",
    "cosine_similarity",
    "format_citation",
    "term_vector",
]
