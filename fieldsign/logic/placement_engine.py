from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from io import BytesIO
from typing import Dict, List, Optional, Sequence

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from pypdf.generic import RectangleObject
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from core.config.config_service import SigningConfig
from ..exceptions.errors import InputError
from ..models.field import FieldDescriptor
from ..models.field_enums import DiagnosticKind, FieldType
from ..models.geometry import PdfRect
from ..models.signing_models import FieldDiagnostic, Placement, SignaturePayload
from .image_decoder import open_for_drawing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContainedBox:
    """Draw size of an image inside a field plus its offset from the field's origin."""
    width: float
    height: float
    offset_x: float
    offset_y: float


def contain(image_ratio: float, rect: PdfRect) -> ContainedBox:
    """
    Scale an image of aspect ``image_ratio`` (w/h) to fit entirely inside
    ``rect`` and center it along the axis that is not filled.

    A relatively wider image fits the field's width; otherwise (including an
    exact tie) it fits the field's height.
    """
    field_ratio = rect.width / rect.height
    if image_ratio > field_ratio:
        draw_w = rect.width
        draw_h = rect.width / image_ratio
        return ContainedBox(draw_w, draw_h, 0.0, (rect.height - draw_h) / 2)
    draw_h = rect.height
    draw_w = rect.height * image_ratio
    return ContainedBox(draw_w, draw_h, (rect.width - draw_w) / 2, 0.0)


@dataclass
class PlacementOutcome:
    document: bytes
    placements: List[Placement] = field(default_factory=list)
    diagnostics: List[FieldDiagnostic] = field(default_factory=list)

    @property
    def signatures_placed(self) -> int:
        return sum(1 for p in self.placements if p.field_type == FieldType.SIGNATURE)


@dataclass
class _TextOp:
    box: Placement
    value: Optional[str]


class PlacementEngine:
    """
    Overlays the signature image (and optionally text boxes) onto PDF pages.

    One reportlab overlay is rendered per touched page and merged onto the
    source page with pypdf. The input buffer is never modified; pages without
    fields are copied unchanged.
    """

    def __init__(self, *, signing_config: Optional[SigningConfig] = None) -> None:
        self._cfg = signing_config or SigningConfig()

    # ------------------------------------------------------------------ #
    #  Public API
    # ------------------------------------------------------------------ #
    def place(
        self,
        document: bytes,
        payload: SignaturePayload,
        fields: Sequence[FieldDescriptor],
        *,
        render_text: Optional[bool] = None,
    ) -> PlacementOutcome:
        with_text = self._cfg.render_text if render_text is None else bool(render_text)
        reader = self._open(document)
        page_count = len(reader.pages)

        outcome = PlacementOutcome(document=b"")
        # page index -> ordered draw operations
        images: Dict[int, List[Placement]] = OrderedDict()
        texts: Dict[int, List[_TextOp]] = OrderedDict()

        for fd in fields:
            renderable = fd.type == FieldType.SIGNATURE or (fd.type == FieldType.TEXT and with_text)
            if not renderable:
                logger.debug(f"Field {fd.id} ({fd.type.value}) has no renderer, skipped")
                continue

            page_index = fd.page_number - 1  # pages are 0-indexed internally
            if not 0 <= page_index < page_count:
                logger.warning(f"Page {fd.page_number} not found for field {fd.id} ({page_count} page(s))")
                outcome.diagnostics.append(FieldDiagnostic(
                    field_id=fd.id,
                    page_number=fd.page_number,
                    kind=DiagnosticKind.PAGE_OUT_OF_RANGE,
                    message=f"Field {fd.id}: page {fd.page_number} does not exist (document has {page_count})",
                ))
                continue

            rect = fd.coordinates
            if rect.is_degenerate():
                logger.warning(f"Field {fd.id} has a degenerate rect {rect.width}x{rect.height}, skipped")
                outcome.diagnostics.append(FieldDiagnostic(
                    field_id=fd.id,
                    page_number=fd.page_number,
                    kind=DiagnosticKind.DEGENERATE_RECT,
                    message=f"Field {fd.id}: width and height must be positive",
                ))
                continue

            if fd.type == FieldType.SIGNATURE:
                box = contain(payload.aspect_ratio, rect)
                placed = Placement(
                    field_id=fd.id,
                    page_number=fd.page_number,
                    x=rect.x + box.offset_x,
                    y=rect.y + box.offset_y,
                    width=box.width,
                    height=box.height,
                )
                images.setdefault(page_index, []).append(placed)
                logger.debug(f"Signature for {fd.id} on page {fd.page_number} at ({rect.x:.2f}, {rect.y:.2f})")
            else:
                placed = Placement(
                    field_id=fd.id,
                    page_number=fd.page_number,
                    x=rect.x,
                    y=rect.y,
                    width=rect.width,
                    height=rect.height,
                    field_type=FieldType.TEXT,
                )
                texts.setdefault(page_index, []).append(_TextOp(box=placed, value=fd.value))
            outcome.placements.append(placed)

        outcome.document = self._write(reader, payload, images, texts)
        return outcome

    # ------------------------------------------------------------------ #
    #  Helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def _open(document: bytes) -> PdfReader:
        try:
            reader = PdfReader(BytesIO(document))
            _ = len(reader.pages)
        except (PdfReadError, ValueError, KeyError) as ex:
            raise InputError(f"Document is not a readable PDF: {ex}") from ex
        return reader

    def _write(
        self,
        reader: PdfReader,
        payload: SignaturePayload,
        images: Dict[int, List[Placement]],
        texts: Dict[int, List[_TextOp]],
    ) -> bytes:
        # cloning keeps untouched pages, document info and the catalog as they are
        writer = PdfWriter(clone_from=reader)
        image = open_for_drawing(payload) if images else None

        for i, page in enumerate(writer.pages):
            if i not in images and i not in texts:
                continue
            box = page.mediabox
            overlay_pdf = self._make_overlay(
                float(box.right), float(box.top),
                origin=(float(box.left), float(box.bottom)),
                image=image,
                image_ops=images.get(i, []),
                text_ops=texts.get(i, []),
            )
            overlay = PdfReader(BytesIO(overlay_pdf)).pages[0]
            # the merge clips to the overlay's box; make it the target's box
            overlay.mediabox = RectangleObject([box.left, box.bottom, box.right, box.top])
            page.merge_page(overlay)

        out = BytesIO()
        writer.write(out)
        return out.getvalue()

    def _make_overlay(
        self,
        page_right: float,
        page_top: float,
        *,
        origin: tuple[float, float],
        image,
        image_ops: List[Placement],
        text_ops: List[_TextOp],
    ) -> bytes:
        """
        Render one overlay page in the target page's user space holding:
          • the signature image per signature field (alpha kept)
          • bordered text boxes with an optional single-line value
        """
        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=(page_right, page_top))
        ox, oy = origin

        if image_ops:
            reader = ImageReader(image)
            for p in image_ops:
                c.drawImage(reader, ox + p.x, oy + p.y, width=p.width, height=p.height, mask="auto")

        if text_ops:
            cfg = self._cfg
            c.setStrokeColorRGB(0, 0, 0)
            c.setFillColorRGB(0, 0, 0)
            c.setLineWidth(cfg.border_width)
            ascent = pdfmetrics.getAscent(cfg.text_font, cfg.text_font_size)
            descent = pdfmetrics.getDescent(cfg.text_font, cfg.text_font_size)
            for op in text_ops:
                b = op.box
                c.rect(ox + b.x, oy + b.y, b.width, b.height, stroke=1, fill=0)
                if op.value:
                    # baseline that centers the glyph box vertically
                    baseline = b.y + (b.height - (ascent + descent)) / 2
                    c.setFont(cfg.text_font, cfg.text_font_size)
                    c.drawString(ox + b.x + cfg.text_padding, oy + baseline, op.value)

        c.save()
        return buf.getvalue()
