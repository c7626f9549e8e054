"""
FieldMedic Session Module

Append-only call log and run summary export.
"""

from fieldmedic.session.call_log import QUICK_MARKS, CallLog, build_summary

__all__ = ["QUICK_MARKS", "CallLog", "build_summary"]
