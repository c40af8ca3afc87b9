"""Field signing exceptions.

Only precondition failures are raised. Per-field problems (missing page
geometry, page out of range) are reported as ``FieldDiagnostic`` records.
"""
from __future__ import annotations


class FieldSignError(Exception):
    """Base exception for the field signing feature."""


class InputError(FieldSignError):
    """Raised when a request is structurally incomplete (no document, no image, no fields)."""


class DecodeError(FieldSignError):
    """Raised when the signature image is neither a readable PNG nor JPEG."""


class GestureError(FieldSignError):
    """Raised for editor transitions the field state machine does not allow."""


class UnknownPageError(FieldSignError):
    """Raised when a page's geometry is needed before the page was ever rendered."""
