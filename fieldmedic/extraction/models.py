"""
Clinical record models for FieldMedic.

Records are immutable once created. Their ``captured_at`` is always the
timestamp of the utterance they came from.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# ============================================
# Enumerations
# ============================================


class VitalKind(str, Enum):
    """Vital sign kinds, in the order the extractor reports them."""

    BP = "BP"
    HR = "HR"
    RR = "RR"
    SPO2 = "SpO2"
    TEMP = "Temp"
    GCS = "GCS"
    ETCO2 = "EtCO2"
    GLUCOSE = "Glucose"


class Route(str, Enum):
    """Medication administration routes."""

    IV = "IV"
    IM = "IM"
    IO = "IO"
    PO = "PO"
    PR = "PR"
    SQ = "SQ"
    NEBULIZED = "NEBULIZED"
    INHALED = "INHALED"


class EventKind(str, Enum):
    """Timeline entry kinds."""

    UTTERANCE = "utterance"
    MARK = "mark"


# ============================================
# Records
# ============================================


class VitalRecord(BaseModel):
    """One timestamped vital sign measurement.

    Attributes:
        kind: Which vital this is.
        value: Display value, formatted per kind ("128/82", "96%", "98.6 F").
        captured_at: Timestamp of the owning utterance.
    """

    model_config = ConfigDict(frozen=True)

    kind: VitalKind
    value: str = Field(..., min_length=1)
    captured_at: datetime


class MedicationRecord(BaseModel):
    """One medication administration.

    Attributes:
        drug: Drug name as spoken, trimmed.
        dose: Magnitude and unit, with a "/kg" suffix when weight based.
        route: Administration route, if one was given.
        rate: Dose suffixed with "/min" or "/hr" when given per unit time.
        captured_at: Timestamp of the owning utterance.
    """

    model_config = ConfigDict(frozen=True)

    drug: str = Field(..., min_length=1)
    dose: str = Field(..., min_length=1)
    route: Route | None = None
    rate: str | None = None
    captured_at: datetime


class Event(BaseModel):
    """A timeline entry: a committed utterance or a quick mark."""

    model_config = ConfigDict(frozen=True)

    text: str
    captured_at: datetime
    kind: EventKind = EventKind.UTTERANCE


class ExtractionResult(BaseModel):
    """Everything extracted from a single utterance."""

    model_config = ConfigDict(frozen=True)

    vitals: tuple[VitalRecord, ...] = ()
    medication: MedicationRecord | None = None

    @property
    def is_empty(self) -> bool:
        return not self.vitals and self.medication is None
