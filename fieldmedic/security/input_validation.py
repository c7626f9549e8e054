"""
Input Validation for FieldMedic

Validates and sanitizes text arriving at the HTTP boundary:
- Strips NUL and control characters
- Enforces length limits
- Rejects script/markup injection patterns
"""

import logging
import os
import re
from datetime import datetime

from pydantic import BaseModel, field_validator

logger = logging.getLogger(__name__)

XSS_PATTERNS = [
    re.compile(r"<\s*script", re.IGNORECASE),
    re.compile(r"javascript\s*:", re.IGNORECASE),
    re.compile(r"<[^>]*\bon\w+\s*=", re.IGNORECASE),
    re.compile(r"<\s*iframe", re.IGNORECASE),
    re.compile(r"<\s*object", re.IGNORECASE),
    re.compile(r"<\s*embed", re.IGNORECASE),
]

MAX_UTTERANCE_LENGTH = int(os.environ.get("MAX_UTTERANCE_LENGTH", "2000"))
MAX_QUERY_LENGTH = int(os.environ.get("MAX_QUERY_LENGTH", "500"))
MAX_PROTOCOL_LENGTH = int(os.environ.get("MAX_PROTOCOL_LENGTH", "200000"))
MAX_MARK_LENGTH = 100

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def sanitize(text: str) -> str:
    """Remove NUL and control characters, keeping newlines and tabs."""
    return _CONTROL_CHARS.sub("", text)


def _check_length(v: str, limit: int, name: str) -> str:
    if len(v) > limit:
        raise ValueError(f"{name} must be at most {limit} characters")
    return v


class UtteranceRequest(BaseModel):
    """A finalized utterance from the capture source."""

    text: str
    captured_at: datetime | None = None

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        v = sanitize(v).strip()
        if not v:
            raise ValueError("Utterance must not be empty")
        return _check_length(v, MAX_UTTERANCE_LENGTH, "Utterance")


class MarkRequest(BaseModel):
    """A quick timeline mark."""

    label: str
    captured_at: datetime | None = None

    @field_validator("label")
    @classmethod
    def validate_label(cls, v: str) -> str:
        v = sanitize(v).strip()
        if not v:
            raise ValueError("Mark label must not be empty")
        return _check_length(v, MAX_MARK_LENGTH, "Mark label")


class ProtocolRequest(BaseModel):
    """Replacement protocol text; blank text clears the index."""

    text: str = ""

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _check_length(sanitize(v), MAX_PROTOCOL_LENGTH, "Protocol text")


class QueryRequest(BaseModel):
    """A protocol question."""

    query: str
    max_results: int = 5

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        v = sanitize(v).strip()
        return _check_length(v, MAX_QUERY_LENGTH, "Query")

    @field_validator("max_results")
    @classmethod
    def validate_max_results(cls, v: int) -> int:
        if v < 1 or v > 20:
            raise ValueError("max_results must be between 1 and 20")
        return v


# Calculator fields mirror form inputs: numbers, numeric strings, or blank.
# Bad values are not rejected here; the calculators return no result.
FormNumber = float | str | None


class GttRequest(BaseModel):
    total_ml: FormNumber = None
    minutes: FormNumber = None
    drop_factor: FormNumber = None


class MlPerHourRequest(BaseModel):
    dose_mg_per_hour: FormNumber = None
    concentration_mg_per_ml: FormNumber = None


class WeightBasedRequest(BaseModel):
    mcg_per_kg_per_min: FormNumber = None
    weight_kg: FormNumber = None
    concentration_mg_per_ml: FormNumber = None


class InputValidator:
    """Validates input against injection patterns."""

    def check_xss(self, text: str) -> bool:
        """Return True if XSS pattern detected."""
        for pattern in XSS_PATTERNS:
            if pattern.search(text):
                logger.warning("Markup injection pattern detected (%d chars)", len(text))
                return True
        return False

    def is_safe(self, text: str) -> bool:
        """Return True if input passes all safety checks."""
        return not self.check_xss(text)
