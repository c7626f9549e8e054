"""
FieldMedic Document Chunker Module

Paragraph-aligned chunking of pasted protocol text for the local Q&A index.
Paragraphs are never split; a single oversized paragraph becomes its own
oversized chunk.
"""

import logging
import os
import re

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_TARGET_SIZE = int(os.environ.get("CHUNK_TARGET_SIZE", "900"))

PARAGRAPH_SEPARATOR = "\n\n"

# ============================================
# Data Models
# ============================================


class Chunk(BaseModel):
    """A paragraph-aligned slice of a protocol document.

    Attributes:
        id: Sequential id ("c0", "c1", ...), stable within one index build.
        text: Paragraphs joined by a blank line.
        hint: First heading-like line in the chunk, if any.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Chunk id, unique within one build")
    text: str = Field(..., description="The text content of the chunk")
    hint: str | None = Field(default=None, description="Heading hint")


# ============================================
# Hint Extractor
# ============================================

# Paragraph boundary: a newline, optional whitespace-only line content, newline
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")

MIN_HINT_LENGTH = 5


def guess_hint(text: str) -> str | None:
    """Return the first line that looks like an all-caps heading.

    A heading is a line of at least five characters that is unchanged by
    upper-casing ("ADULT CARDIAC ARREST").
    """
    for line in text.split("\n"):
        line = line.strip()
        if len(line) >= MIN_HINT_LENGTH and line == line.upper():
            return line
    return None


# ============================================
# Paragraph Chunker
# ============================================


class ParagraphChunker:
    """Greedy paragraph packer.

    Accumulates paragraphs into a buffer until the next one would push the
    buffer past ``target_size`` characters, then flushes.

    Attributes:
        target_size: Soft upper bound on chunk length in characters.
    """

    def __init__(self, target_size: int = DEFAULT_TARGET_SIZE) -> None:
        self.target_size = target_size

    def split_paragraphs(self, text: str) -> list[str]:
        """Split on blank lines, trim, and drop empty paragraphs."""
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        paragraphs = (p.strip() for p in _PARAGRAPH_BREAK.split(text))
        return [p for p in paragraphs if p]

    def chunk(self, text: str) -> list[Chunk]:
        """Chunk a document.

        Args:
            text: The full protocol text.

        Returns:
            Chunks in document order; empty for blank input.
        """
        if not text or not text.strip():
            return []

        chunks: list[Chunk] = []
        buffer: list[str] = []

        def flush() -> None:
            joined = PARAGRAPH_SEPARATOR.join(buffer)
            chunks.append(
                Chunk(id=f"c{len(chunks)}", text=joined, hint=guess_hint(joined))
            )
            buffer.clear()

        for paragraph in self.split_paragraphs(text):
            current = len(PARAGRAPH_SEPARATOR.join(buffer))
            if buffer and current + len(paragraph) > self.target_size:
                flush()
            buffer.append(paragraph)

        if buffer:
            flush()

        logger.debug(
            "Chunked %d chars into %d chunks (target_size=%d)",
            len(text),
            len(chunks),
            self.target_size,
        )
        return chunks


# ============================================
# Convenience Functions
# ============================================


def chunk_document(text: str, target_size: int = DEFAULT_TARGET_SIZE) -> list[Chunk]:
    """Chunk a document in one call."""
    return ParagraphChunker(target_size=target_size).chunk(text)
