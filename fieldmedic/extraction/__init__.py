"""
FieldMedic Extraction Module

Structured vitals and medication records from free-form utterances.
"""

from fieldmedic.extraction.extractor import extract, extract_medication, extract_vitals
from fieldmedic.extraction.models import (
    Event,
    EventKind,
    ExtractionResult,
    MedicationRecord,
    Route,
    VitalKind,
    VitalRecord,
)

__all__ = [
    "extract",
    "extract_medication",
    "extract_vitals",
    "Event",
    "EventKind",
    "ExtractionResult",
    "MedicationRecord",
    "Route",
    "VitalKind",
    "VitalRecord",
]
