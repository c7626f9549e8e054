"""
Clinical Entity Extractor for FieldMedic

Pulls vital signs and a medication administration out of one free-form
utterance ("BP 128 over 82, pulse 96, started epi 0.1 mcg/kg/min").

Each vital kind has its own independent rule, so one utterance can yield
several vitals but never two of the same kind. Only the first medication
in an utterance is kept.

Extraction never raises: text that matches nothing yields an empty result.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from fieldmedic.extraction.models import (
    ExtractionResult,
    MedicationRecord,
    Route,
    VitalKind,
    VitalRecord,
)

logger = logging.getLogger(__name__)

# Celsius body temperatures are never realistically above this
CELSIUS_CEILING = 45.0

# ============================================
# Vital Sign Rules
# ============================================


@dataclass(frozen=True)
class VitalRule:
    """Pattern rule for a single vital kind.

    Attributes:
        pattern: Regex matched against the lowercased utterance.
        render: Builds the display value from the match.
        trigger: Optional separate trigger that must appear somewhere in
            the utterance; used when the value may precede the trigger.
    """

    pattern: re.Pattern[str]
    render: Callable[[re.Match[str]], str]
    trigger: re.Pattern[str] | None = None

    def apply(self, text: str) -> str | None:
        """Return the rendered value, or None if the rule does not fire."""
        if self.trigger is not None and not self.trigger.search(text):
            return None
        match = self.pattern.search(text)
        if not match:
            return None
        return self.render(match)


def _value(match: re.Match[str]) -> str:
    return match.group("value")


def _render_bp(match: re.Match[str]) -> str:
    return f"{match.group('systolic')}/{match.group('diastolic')}"


def _render_spo2(match: re.Match[str]) -> str:
    return f"{match.group('value')}%"


def _render_temp(match: re.Match[str]) -> str:
    number = match.group("value")
    unit = match.group("unit")
    if unit:
        unit = unit.upper()
    else:
        unit = "F" if float(number) > CELSIUS_CEILING else "C"
    return f"{number} {unit}"


def _after(trigger: str, number: str) -> re.Pattern[str]:
    """Trigger word followed by the first qualifying number after it.

    A trigger written as a rate unit ("mcg/hr", "per hr") does not count.
    """
    return re.compile(
        rf"(?<!/)(?<!per )\b(?:{trigger})\b[^\d]*(?P<value>{number})"
    )


# Insertion order is the order vitals are reported in
VITAL_RULES: dict[VitalKind, VitalRule] = {
    VitalKind.BP: VitalRule(
        trigger=re.compile(r"\b(?:bp|blood pressure)\b"),
        pattern=re.compile(
            r"(?P<systolic>\d{2,3})\s*(?:/|\bover\b)\s*(?P<diastolic>\d{2,3})"
        ),
        render=_render_bp,
    ),
    VitalKind.HR: VitalRule(
        pattern=_after(r"heart rate|hr|pulse", r"\d{1,3}"),
        render=_value,
    ),
    VitalKind.RR: VitalRule(
        pattern=_after(r"resp(?:iratory)? rate|rr|resps?", r"\d{1,3}"),
        render=_value,
    ),
    VitalKind.SPO2: VitalRule(
        pattern=_after(r"spo2|sat(?:s|uration)?|oxygen\s+saturation", r"\d{2,3}"),
        render=_render_spo2,
    ),
    VitalKind.TEMP: VitalRule(
        pattern=re.compile(
            r"\btemp(?:erature)?\b[^\d]*(?P<value>\d{2,3}(?:\.\d+)?)"
            r"(?:\s*(?P<unit>[cf])\b)?"
        ),
        render=_render_temp,
    ),
    VitalKind.GCS: VitalRule(
        pattern=_after(r"gcs", r"\d{1,2}"),
        render=_value,
    ),
    VitalKind.ETCO2: VitalRule(
        pattern=_after(r"etco2|end\s*tidal", r"\d{1,3}"),
        render=_value,
    ),
    VitalKind.GLUCOSE: VitalRule(
        pattern=_after(r"glucose|cbg|dextro", r"\d{1,3}"),
        render=_value,
    ),
}

# ============================================
# Medication Rule
# ============================================

_VERB = r"\b(?:give|administer|push|start(?:ed)?|bolus|begin)\b[^a-z0-9%]*"
_DRUG = r"(?P<drug>[a-z][a-z\- ]{1,39}?)"
_DOSE = (
    r"(?P<magnitude>\d+(?:\.\d+)?)\s*(?P<unit>mcg|mg|g|units|ml|l)\b"
    r"(?:\s*(?:/|\bper\b)?\s*(?P<per_kg>kg)\b)?"
    r"(?:\s*(?:/|\bper\b)\s*(?P<per_time>min(?:ute)?|hr|hour)\b)?"
)
_ROUTES = r"iv|im|io|po|pr|sq|nebulized|inhaled"

# Words that end a dose-first drug name when no route follows
_DRUG_STOPS = r"for|and|then|at|via|over|to|with|in|per|x"

# "start epinephrine 0.1 mcg/kg/min", "give aspirin 324 mg po"
DRUG_FIRST_PATTERN = re.compile(
    _VERB + r"(?:of\s+)?" + _DRUG + r"[,\s]+" + _DOSE
    + rf"(?:\s*(?P<route>{_ROUTES})\b)?",
    re.IGNORECASE,
)

# "give 4 mg ondansetron IV", "push 1 mg iv epinephrine"
DOSE_FIRST_PATTERN = re.compile(
    _VERB + _DOSE
    + rf"(?:\s+(?P<route_before>{_ROUTES})\b)?"
    + r"\s+(?:of\s+)?"
    + rf"(?!(?:{_ROUTES}|{_DRUG_STOPS})\b)" + _DRUG
    + rf"(?=\s*(?:\b(?:{_ROUTES}|{_DRUG_STOPS})\b|[^a-z\- ]|$))"
    + rf"(?:\s*(?P<route>{_ROUTES})\b)?",
    re.IGNORECASE,
)

_TIME_UNITS = {"min": "min", "minute": "min", "hr": "hr", "hour": "hr"}


def _first_medication_match(utterance: str) -> re.Match[str] | None:
    """Leftmost medication match across both phrasings."""
    matches = [
        m
        for m in (
            DRUG_FIRST_PATTERN.search(utterance),
            DOSE_FIRST_PATTERN.search(utterance),
        )
        if m is not None
    ]
    if not matches:
        return None
    return min(matches, key=lambda m: m.start())


# ============================================
# Public API
# ============================================


def extract_vitals(utterance: str, captured_at: datetime) -> tuple[VitalRecord, ...]:
    """Apply every vital rule to the utterance.

    Args:
        utterance: Raw spoken or typed text.
        captured_at: Timestamp of the utterance.

    Returns:
        At most one VitalRecord per kind, in VitalKind order.
    """
    if not utterance:
        return ()

    text = utterance.lower()
    vitals = []
    for kind, rule in VITAL_RULES.items():
        value = rule.apply(text)
        if value is not None:
            vitals.append(VitalRecord(kind=kind, value=value, captured_at=captured_at))
    return tuple(vitals)


def extract_medication(
    utterance: str, captured_at: datetime
) -> MedicationRecord | None:
    """Extract the first medication administration in the utterance.

    Args:
        utterance: Raw spoken or typed text.
        captured_at: Timestamp of the utterance.

    Returns:
        A MedicationRecord, or None when no administration is described.
    """
    if not utterance:
        return None

    match = _first_medication_match(utterance)
    if match is None:
        return None

    dose = f"{match.group('magnitude')} {match.group('unit').lower()}"
    if match.group("per_kg"):
        dose += "/kg"

    rate = None
    per_time = match.group("per_time")
    if per_time:
        rate = f"{dose}/{_TIME_UNITS[per_time.lower()]}"

    groups = match.groupdict()
    route = groups.get("route") or groups.get("route_before")

    return MedicationRecord(
        drug=match.group("drug").strip(),
        dose=dose,
        route=Route(route.upper()) if route else None,
        rate=rate,
        captured_at=captured_at,
    )


def extract(utterance: str, captured_at: datetime) -> ExtractionResult:
    """Extract all structured records from one utterance.

    Args:
        utterance: Raw spoken or typed text.
        captured_at: Timestamp of the utterance; copied onto every record.

    Returns:
        ExtractionResult with zero or more vitals and zero or one medication.
    """
    result = ExtractionResult(
        vitals=extract_vitals(utterance, captured_at),
        medication=extract_medication(utterance, captured_at),
    )
    logger.debug(
        "Extracted %d vitals, %d medications from %d-char utterance",
        len(result.vitals),
        0 if result.medication is None else 1,
        len(utterance or ""),
    )
    return result
