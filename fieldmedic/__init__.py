"""
FieldMedic - Offline Field-Note Capture for Prehospital Care

Turns spoken or typed call notes into structured, timestamped records and
answers questions against pasted protocol text, without leaving the device.

Features:
- Vitals and medication extraction from free-form utterances
- Local TF-IDF protocol Q&A with cited snippets
- Drip and infusion rate calculators
- Plain-text run summary export
"""

__version__ = "0.1.0"
__author__ = "FieldMedic Team"
