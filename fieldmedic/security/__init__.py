"""
FieldMedic Security Module

Input sanitization and validation for the HTTP boundary.
"""

from fieldmedic.security.input_validation import InputValidator, sanitize

__all__ = ["InputValidator", "sanitize"]
