"""Firestore schema auditor.

Validates the documents of a Firestore database against a declarative schema,
reports violations and optionally applies schema defaults as fixes.
"""

from __future__ import annotations

__version__ = "1.0.0"
