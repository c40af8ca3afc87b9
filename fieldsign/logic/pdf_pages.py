# fieldsign/logic/pdf_pages.py
from __future__ import annotations

from io import BytesIO
from typing import Dict

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..exceptions.errors import InputError
from ..models.geometry import Dimensions


def page_dimensions(document: bytes) -> Dict[int, Dimensions]:
    """1-indexed page number -> intrinsic page size in points (media box)."""
    try:
        reader = PdfReader(BytesIO(document))
        pages = reader.pages
        return {
            i + 1: Dimensions(float(p.mediabox.width), float(p.mediabox.height))
            for i, p in enumerate(pages)
        }
    except (PdfReadError, ValueError, KeyError) as ex:
        raise InputError(f"Document is not a readable PDF: {ex}") from ex


def rendered_size(pdf_dims: Dimensions, zoom: float) -> Dimensions:
    """Raster size of a page drawn at ``zoom`` pixels per point."""
    return pdf_dims.scaled(zoom)
