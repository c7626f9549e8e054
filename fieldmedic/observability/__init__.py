"""
FieldMedic Observability Module

Monitoring components:
- Prometheus metrics
"""

from fieldmedic.observability.metrics import (
    get_metrics_text,
    record_index_build,
    record_mark,
    record_query,
    record_utterance,
    reset_metrics,
)

__all__ = [
    "get_metrics_text",
    "record_index_build",
    "record_mark",
    "record_query",
    "record_utterance",
    "reset_metrics",
]
