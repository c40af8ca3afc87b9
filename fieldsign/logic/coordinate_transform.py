"""
Conversion between viewport pixels and PDF points.

BROWSER / RENDERED SPACE
    origin top-left, CSS pixels, Y increases downward
PDF SPACE
    origin bottom-left, points (1pt = 1/72 inch), Y increases upward

``to_pdf`` and ``to_browser`` are exact algebraic inverses. Neither validates
its inputs: both dimension pairs must have positive components.
"""
from __future__ import annotations

from typing import TypeVar, Union

from ..models.geometry import BrowserRect, Dimensions, PdfRect

RectT = TypeVar("RectT", BrowserRect, PdfRect)


def to_pdf(rect: BrowserRect, pdf_dims: Dimensions, rendered_dims: Dimensions) -> PdfRect:
    """Browser rect (pixels, top-left) -> PDF rect (points, bottom-left)."""
    # points per rendered pixel
    scale_x = pdf_dims.width / rendered_dims.width
    scale_y = pdf_dims.height / rendered_dims.height

    # Y is flipped: the PDF origin sits at the field's bottom edge
    return PdfRect(
        x=rect.x * scale_x,
        y=pdf_dims.height - (rect.y + rect.height) * scale_y,
        width=rect.width * scale_x,
        height=rect.height * scale_y,
    )


def to_browser(rect: PdfRect, pdf_dims: Dimensions, rendered_dims: Dimensions) -> BrowserRect:
    """PDF rect (points, bottom-left) -> browser rect (pixels, top-left)."""
    scale_x = rendered_dims.width / pdf_dims.width
    scale_y = rendered_dims.height / pdf_dims.height

    return BrowserRect(
        x=rect.x * scale_x,
        y=(pdf_dims.height - rect.y - rect.height) * scale_y,
        width=rect.width * scale_x,
        height=rect.height * scale_y,
    )


def clamp(rect: RectT, bounds: Dimensions) -> RectT:
    """
    Constrain ``rect`` to lie within ``bounds`` (same unit as the rect).

    Width and height are capped to the bounds; the position is pushed back
    inside. Advisory: callers decide whether to apply the result or only
    report the difference.
    """
    width = min(rect.width, bounds.width)
    height = min(rect.height, bounds.height)
    return type(rect)(
        x=max(0.0, min(rect.x, bounds.width - rect.width)),
        y=max(0.0, min(rect.y, bounds.height - rect.height)),
        width=width,
        height=height,
    )


def rect_fits(rect: Union[BrowserRect, PdfRect], bounds: Dimensions) -> bool:
    """True if the rect lies entirely within ``bounds``."""
    return (
        rect.x >= 0
        and rect.y >= 0
        and rect.x + rect.width <= bounds.width
        and rect.y + rect.height <= bounds.height
    )


def format_rect(rect: Union[BrowserRect, PdfRect]) -> str:
    return f"({rect.x:.2f}, {rect.y:.2f}) [{rect.width:.2f} × {rect.height:.2f}]"
