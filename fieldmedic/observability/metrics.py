"""
Prometheus Metrics for FieldMedic

Tracks:
- utterances_total / vitals_extracted / medications_extracted: capture volume
- marks_total: quick marks recorded
- index_builds_total: protocol index rebuilds
- queries_total / queries_unanswered: protocol Q&A volume and misses
- query_latency_seconds: protocol query response times
"""

import logging
import threading

logger = logging.getLogger(__name__)

# Thread-safe metrics storage
_lock = threading.Lock()

_metrics: dict[str, float] = {
    "utterances_total": 0,
    "vitals_extracted": 0,
    "medications_extracted": 0,
    "marks_total": 0,
    "index_builds_total": 0,
    "indexed_chunks": 0,
    "queries_total": 0,
    "queries_unanswered": 0,
}

_latencies: list[float] = []


def record_utterance(vitals: int, medications: int) -> None:
    """Record one committed utterance and what was extracted from it."""
    with _lock:
        _metrics["utterances_total"] += 1
        _metrics["vitals_extracted"] += vitals
        _metrics["medications_extracted"] += medications


def record_mark() -> None:
    """Record one quick mark."""
    with _lock:
        _metrics["marks_total"] += 1


def record_index_build(chunks: int) -> None:
    """Record a protocol index rebuild."""
    with _lock:
        _metrics["index_builds_total"] += 1
        _metrics["indexed_chunks"] = chunks


def record_query(latency_ms: float, results: int) -> None:
    """Record metrics for a processed protocol query."""
    with _lock:
        _metrics["queries_total"] += 1
        if results == 0:
            _metrics["queries_unanswered"] += 1
        _latencies.append(latency_ms)


def get_metrics_text() -> str:
    """Generate Prometheus-compatible metrics text."""
    with _lock:
        total = _metrics["queries_total"]
        answer_rate = (
            (total - _metrics["queries_unanswered"]) / total if total > 0 else 0.0
        )

        sorted_latencies = sorted(_latencies) if _latencies else [0]
        p50 = _percentile(sorted_latencies, 50)
        p95 = _percentile(sorted_latencies, 95)
        p99 = _percentile(sorted_latencies, 99)

        lines = [
            "# HELP utterances_total Total utterances committed",
            "# TYPE utterances_total counter",
            f'utterances_total {int(_metrics["utterances_total"])}',
            "",
            "# HELP vitals_extracted Total vital records extracted",
            "# TYPE vitals_extracted counter",
            f'vitals_extracted {int(_metrics["vitals_extracted"])}',
            "",
            "# HELP medications_extracted Total medication records extracted",
            "# TYPE medications_extracted counter",
            f'medications_extracted {int(_metrics["medications_extracted"])}',
            "",
            "# HELP marks_total Total quick marks recorded",
            "# TYPE marks_total counter",
            f'marks_total {int(_metrics["marks_total"])}',
            "",
            "# HELP index_builds_total Total protocol index rebuilds",
            "# TYPE index_builds_total counter",
            f'index_builds_total {int(_metrics["index_builds_total"])}',
            "",
            "# HELP indexed_chunks Chunks in the current protocol index",
            "# TYPE indexed_chunks gauge",
            f'indexed_chunks {int(_metrics["indexed_chunks"])}',
            "",
            "# HELP queries_total Total protocol queries processed",
            "# TYPE queries_total counter",
            f'queries_total {int(_metrics["queries_total"])}',
            "",
            "# HELP queries_unanswered Protocol queries with no matching chunk",
            "# TYPE queries_unanswered counter",
            f'queries_unanswered {int(_metrics["queries_unanswered"])}',
            "",
            "# HELP query_latency_seconds Protocol query response time",
            "# TYPE query_latency_seconds summary",
            f"query_latency_seconds_p50 {p50 / 1000:.4f}",
            f"query_latency_seconds_p95 {p95 / 1000:.4f}",
            f"query_latency_seconds_p99 {p99 / 1000:.4f}",
            "",
            "# HELP answer_rate Share of queries with at least one match",
            "# TYPE answer_rate gauge",
            f"answer_rate {answer_rate:.4f}",
        ]

        return "\n".join(lines) + "\n"


def reset_metrics() -> None:
    """Reset all metrics to zero."""
    with _lock:
        for key in _metrics:
            _metrics[key] = 0
        _latencies.clear()


def _percentile(sorted_data: list[float], percentile: int) -> float:
    """Compute the given percentile from sorted data."""
    if not sorted_data:
        return 0.0
    idx = int(len(sorted_data) * percentile / 100)
    idx = min(idx, len(sorted_data) - 1)
    return sorted_data[idx]
