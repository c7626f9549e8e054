"""
Call Log for FieldMedic

Append-only record of one call: timeline events, extracted vitals, and
medications, plus the plain-text run summary used for sharing.

The extractor stays pure; this log is the only place records accumulate.
"""

import logging
import threading
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import TypeVar

from fieldmedic.extraction.extractor import extract
from fieldmedic.extraction.models import (
    Event,
    EventKind,
    ExtractionResult,
    MedicationRecord,
    VitalRecord,
)

logger = logging.getLogger(__name__)

QUICK_MARKS: tuple[str, ...] = (
    "ROSC",
    "Shock delivered",
    "Epinephrine administered",
    "On scene",
    "Depart scene",
)

SUMMARY_TITLE = "=== Run Summary ==="
SUMMARY_FOOTER = "(Verify with local protocols / medical control)"

_Record = TypeVar("_Record", Event, VitalRecord, MedicationRecord)


def format_clock(ts: datetime) -> str:
    """24-hour wall-clock time, HH:MM:SS."""
    return ts.strftime("%H:%M:%S")


def local_time(ts: datetime | None) -> datetime:
    """Naive local time; defaults to now. Aware timestamps are converted."""
    if ts is None:
        return datetime.now()
    if ts.tzinfo is not None:
        return ts.astimezone().replace(tzinfo=None)
    return ts


def newest_first(records: Iterable[_Record]) -> list[_Record]:
    """Sort by capture time, newest first; later-recorded wins ties."""
    return sorted(reversed(list(records)), key=lambda r: r.captured_at, reverse=True)


def format_vital(vital: VitalRecord) -> str:
    return f"[{format_clock(vital.captured_at)}] {vital.kind.value}: {vital.value}"


def format_medication(med: MedicationRecord) -> str:
    extras = " · ".join(
        part for part in (med.route.value if med.route else None, med.rate) if part
    )
    suffix = f" ({extras})" if extras else ""
    return f"[{format_clock(med.captured_at)}] {med.drug} – {med.dose}{suffix}"


def format_event(event: Event) -> str:
    return f"[{format_clock(event.captured_at)}] {event.kind.value.upper()}: {event.text}"


def build_summary(
    vitals: Sequence[VitalRecord],
    medications: Sequence[MedicationRecord],
    events: Sequence[Event],
) -> str:
    """Render the run summary text.

    Sections (Vitals, Medications, Timeline) appear only when non-empty;
    entries are listed newest first.
    """
    lines = [SUMMARY_TITLE, ""]

    if vitals:
        lines.append("Vitals:")
        lines.extend(f"  {format_vital(v)}" for v in newest_first(vitals))
        lines.append("")

    if medications:
        lines.append("Medications:")
        lines.extend(f"  {format_medication(m)}" for m in newest_first(medications))
        lines.append("")

    if events:
        lines.append("Timeline:")
        lines.extend(f"  {format_event(e)}" for e in newest_first(events))

    lines.extend(["", SUMMARY_FOOTER])
    return "\n".join(lines)


class CallLog:
    """Append-only log of a single call.

    Entries are only ever appended; ``clear`` starts a new call.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[Event] = []
        self._vitals: list[VitalRecord] = []
        self._medications: list[MedicationRecord] = []

    def commit_utterance(
        self, text: str, captured_at: datetime | None = None
    ) -> tuple[Event, ExtractionResult] | None:
        """Record an utterance and whatever the extractor finds in it.

        Args:
            text: Finalized utterance text.
            captured_at: Capture time; defaults to now.

        Returns:
            The new event and the extraction, or None for blank text.
        """
        text = (text or "").strip()
        if not text:
            return None

        at = local_time(captured_at)
        event = Event(text=text, captured_at=at, kind=EventKind.UTTERANCE)
        result = extract(text, at)

        with self._lock:
            self._events.append(event)
            self._vitals.extend(result.vitals)
            if result.medication is not None:
                self._medications.append(result.medication)

        logger.info(
            "Committed utterance: %d vitals, %d medications",
            len(result.vitals),
            0 if result.medication is None else 1,
        )
        return event, result

    def mark(self, label: str, captured_at: datetime | None = None) -> Event | None:
        """Record a quick mark such as "ROSC" or "On scene".

        Returns:
            The new event, or None for a blank label.
        """
        label = (label or "").strip()
        if not label:
            return None

        event = Event(
            text=label,
            captured_at=local_time(captured_at),
            kind=EventKind.MARK,
        )
        with self._lock:
            self._events.append(event)
        logger.info("Marked event: %s", event.text)
        return event

    def events(self) -> tuple[Event, ...]:
        with self._lock:
            return tuple(newest_first(self._events))

    def vitals(self) -> tuple[VitalRecord, ...]:
        with self._lock:
            return tuple(newest_first(self._vitals))

    def medications(self) -> tuple[MedicationRecord, ...]:
        with self._lock:
            return tuple(newest_first(self._medications))

    def clear(self) -> None:
        """Start a new call."""
        with self._lock:
            self._events.clear()
            self._vitals.clear()
            self._medications.clear()
        logger.info("Call log cleared")

    def export_summary(self) -> str:
        """Plain-text run summary for sharing."""
        with self._lock:
            return build_summary(self._vitals, self._medications, self._events)
