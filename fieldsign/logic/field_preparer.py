# fieldsign/logic/field_preparer.py
from __future__ import annotations

import logging
from typing import Iterable, List

from ..models.field import Field, FieldDescriptor
from ..models.field_enums import DiagnosticKind
from ..models.page_geometry import PageGeometryCache
from ..models.signing_models import FieldDiagnostic, PreparationResult
from .coordinate_transform import rect_fits, to_pdf

logger = logging.getLogger(__name__)


def _missing_geometry(f: Field) -> FieldDiagnostic:
    return FieldDiagnostic(
        field_id=f.id,
        page_number=f.page_number,
        kind=DiagnosticKind.GEOMETRY_MISSING,
        message=f"Field {f.id}: page {f.page_number} dimensions missing",
    )


def prepare_fields(fields: Iterable[Field], geometry: PageGeometryCache) -> PreparationResult:
    """
    Translate viewport fields into PDF-space descriptors at signing time.

    Uses the most recently recorded geometry of each page. A field whose page
    was never rendered is dropped with a ``geometry_missing`` diagnostic; the
    rest of the batch is still converted. Output keeps input order.
    """
    result = PreparationResult()
    for f in fields:
        geo = geometry.get(f.page_number)
        if geo is None:
            logger.warning(f"Dropping field {f.id}: no geometry for page {f.page_number}")
            result.diagnostics.append(_missing_geometry(f))
            continue
        result.descriptors.append(FieldDescriptor(
            id=f.id,
            type=f.type,
            page_number=f.page_number,
            coordinates=to_pdf(f.rect, geo.pdf, geo.rendered),
            value=f.value,
        ))
    logger.debug(f"Prepared {len(result.descriptors)} descriptor(s), dropped {len(result.diagnostics)}")
    return result


def find_out_of_bounds(fields: Iterable[Field], geometry: PageGeometryCache) -> List[FieldDiagnostic]:
    """Advisory check that every field sits fully inside its rendered page."""
    problems: List[FieldDiagnostic] = []
    for f in fields:
        geo = geometry.get(f.page_number)
        if geo is None:
            problems.append(_missing_geometry(f))
            continue
        if not rect_fits(f.rect, geo.rendered):
            problems.append(FieldDiagnostic(
                field_id=f.id,
                page_number=f.page_number,
                kind=DiagnosticKind.OUT_OF_BOUNDS,
                message=f"Field {f.id}: extends beyond page {f.page_number}",
            ))
    return problems
