# fieldsign/models/field_enums.py
from __future__ import annotations
from enum import Enum


class FieldType(str, Enum):
    """Kind of placeholder a user can drop onto a page."""
    TEXT = "text"
    SIGNATURE = "signature"
    IMAGE = "image"
    DATE = "date"
    RADIO = "radio"


class ImageEncoding(str, Enum):
    PNG = "png"
    JPEG = "jpeg"


class DocumentStatus(str, Enum):
    """Audit status of a signed document (created -> signed -> verified)."""
    CREATED = "created"
    SIGNED = "signed"
    VERIFIED = "verified"


class DiagnosticKind(str, Enum):
    """Reasons a single field was skipped or flagged without failing the batch."""
    GEOMETRY_MISSING = "geometry_missing"
    PAGE_OUT_OF_RANGE = "page_out_of_range"
    DEGENERATE_RECT = "degenerate_rect"
    OUT_OF_BOUNDS = "out_of_bounds"


class GestureKind(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"
