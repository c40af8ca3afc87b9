"""
Editor-side field state machine, decoupled from any UI toolkit.

Field states:   absent -> placed -> {selected, unselected} -> deleted
Gesture states: idle | dragging(anchor_offset) | resizing(anchor_pointer, anchor_size)

A UI layer translates its own events (drop, click, mouse down/move/up) into
the discrete calls below. At most one field is selected and at most one
gesture is active at a time. Fields never change page; moving a field to
another page is delete + drop.
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from core.config.config_service import EditorConfig, config_service
from ..exceptions.errors import GestureError, UnknownPageError
from ..models.field import Field, FieldDescriptor
from ..models.field_enums import DiagnosticKind, FieldType, GestureKind
from ..models.geometry import BrowserRect, Dimensions, Point
from ..models.page_geometry import PageGeometry, PageGeometryCache
from ..models.signing_models import FieldDiagnostic, PreparationResult
from .coordinate_transform import to_browser, to_pdf
from .field_preparer import find_out_of_bounds, prepare_fields
from .pdf_pages import page_dimensions, rendered_size

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Gesture:
    kind: GestureKind = GestureKind.IDLE
    field_id: Optional[str] = None
    anchor_offset: Optional[Point] = None      # dragging: pointer minus field origin
    anchor_pointer: Optional[Point] = None     # resizing: pointer at gesture start
    anchor_size: Optional[Dimensions] = None   # resizing: field size at gesture start

    @property
    def active(self) -> bool:
        return self.kind != GestureKind.IDLE


IDLE = Gesture()


class EditorSession:
    """
    Field collection, selection, gesture state and page geometry of one
    document being edited. Nothing here is module-global, so sessions for
    different documents never collide.
    """

    def __init__(self, *, editor_config: Optional[EditorConfig] = None) -> None:
        self._cfg = editor_config or config_service.editor
        self.page_geometry = PageGeometryCache()
        self._fields: "OrderedDict[str, Field]" = OrderedDict()
        self._selected_id: Optional[str] = None
        self._gesture: Gesture = IDLE

    # ---------------- State -------------------------------------------------
    @property
    def fields(self) -> List[Field]:
        return list(self._fields.values())

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def selected_field(self) -> Optional[Field]:
        return self._fields.get(self._selected_id) if self._selected_id else None

    @property
    def gesture(self) -> Gesture:
        return self._gesture

    def get(self, field_id: str) -> Field:
        try:
            return self._fields[field_id]
        except KeyError:
            raise GestureError(f"Unknown field '{field_id}'.") from None

    def fields_on_page(self, page_number: int) -> List[Field]:
        return [f for f in self._fields.values() if f.page_number == page_number]

    # ---------------- Page geometry -----------------------------------------
    def record_page_geometry(self, page_number: int, pdf_dims: Dimensions,
                             rendered_dims: Dimensions) -> PageGeometry:
        """Called on every page render; the latest capture wins."""
        return self.page_geometry.record(page_number, pdf_dims, rendered_dims)

    def record_document(self, document: bytes, *, zoom: float = 1.0) -> int:
        """Record geometry for every page as rendered at ``zoom`` pixels per point."""
        pages = page_dimensions(document)
        for number, dims in pages.items():
            self.page_geometry.record(number, dims, rendered_size(dims, zoom))
        return len(pages)

    def refresh_rendered_dimensions(self, page_number: int, rendered_dims: Dimensions, *,
                                    keep_pdf_position: bool = True) -> PageGeometry:
        """
        Update the raster size of a page after a zoom change.

        With ``keep_pdf_position`` the fields on that page are re-projected so
        they still cover the same area of the PDF at the new scale.
        """
        old = self.page_geometry.get(page_number)
        if old is None:
            raise UnknownPageError(f"Page {page_number} has no recorded geometry; render it first.")
        new = self.page_geometry.update_rendered(page_number, rendered_dims)
        if keep_pdf_position:
            for f in self.fields_on_page(page_number):
                pdf_rect = to_pdf(f.rect, old.pdf, old.rendered)
                f.rect = to_browser(pdf_rect, new.pdf, new.rendered)
        return new

    # ---------------- Lifecycle ---------------------------------------------
    def drop(self, field_type: Union[FieldType, str], page_number: int, point: Point, *,
             value: Optional[str] = None) -> Field:
        """Create a default-sized field centred on the drop point (never above/left of 0)."""
        if int(page_number) < 1:
            raise ValueError(f"Page numbers start at 1, got {page_number}.")
        w, h = self._cfg.default_field_width, self._cfg.default_field_height
        f = Field(
            type=FieldType(field_type),
            page_number=int(page_number),
            rect=BrowserRect(x=max(0.0, point.x - w / 2), y=max(0.0, point.y - h / 2), width=w, height=h),
            value=value,
        )
        self._fields[f.id] = f
        logger.debug(f"Dropped {f.type.value} field {f.id} on page {f.page_number}")
        return f

    def select(self, field_id: str) -> Field:
        if self._gesture.active:
            raise GestureError("Cannot change selection during a drag or resize.")
        f = self.get(field_id)
        self._selected_id = f.id
        return f

    def clear_selection(self) -> None:
        if self._gesture.active:
            raise GestureError("Cannot change selection during a drag or resize.")
        self._selected_id = None

    def update_value(self, field_id: str, value: Optional[str]) -> Field:
        f = self.get(field_id)
        f.value = value
        return f

    def delete(self, field_id: str) -> bool:
        f = self._fields.pop(field_id, None)
        if f is None:
            return False
        if self._selected_id == field_id:
            self._selected_id = None
        if self._gesture.field_id == field_id:
            self._gesture = IDLE
        return True

    def clear(self) -> None:
        """Bulk delete. Page geometry is kept: the document is still rendered."""
        self._fields.clear()
        self._selected_id = None
        self._gesture = IDLE

    # ---------------- Gestures ----------------------------------------------
    def _require_gesture_target(self, field_id: str) -> Field:
        if self._gesture.active:
            raise GestureError(f"A {self._gesture.kind.value} gesture is already active.")
        f = self.get(field_id)
        if self._selected_id != f.id:
            raise GestureError(f"Field '{field_id}' must be selected before it can be moved or resized.")
        return f

    def begin_drag(self, field_id: str, pointer: Point) -> Gesture:
        f = self._require_gesture_target(field_id)
        self._gesture = Gesture(
            kind=GestureKind.DRAGGING,
            field_id=f.id,
            anchor_offset=Point(pointer.x - f.rect.x, pointer.y - f.rect.y),
        )
        return self._gesture

    def begin_resize(self, field_id: str, pointer: Point) -> Gesture:
        f = self._require_gesture_target(field_id)
        self._gesture = Gesture(
            kind=GestureKind.RESIZING,
            field_id=f.id,
            anchor_pointer=pointer,
            anchor_size=Dimensions(f.rect.width, f.rect.height),
        )
        return self._gesture

    def pointer_move(self, pointer: Point) -> Optional[Field]:
        """Apply the active gesture; a move without a gesture is a no-op."""
        g = self._gesture
        if not g.active:
            return None
        f = self._fields[g.field_id]
        if g.kind == GestureKind.DRAGGING:
            f.move_to(
                max(0.0, pointer.x - g.anchor_offset.x),
                max(0.0, pointer.y - g.anchor_offset.y),
            )
        else:
            f.resize_to(
                max(self._cfg.min_field_width, g.anchor_size.width + (pointer.x - g.anchor_pointer.x)),
                max(self._cfg.min_field_height, g.anchor_size.height + (pointer.y - g.anchor_pointer.y)),
            )
        return f

    def pointer_up(self) -> None:
        self._gesture = IDLE

    # ---------------- Conversion --------------------------------------------
    def prepare_fields(self) -> PreparationResult:
        return prepare_fields(self._fields.values(), self.page_geometry)

    def validate(self) -> List[FieldDiagnostic]:
        return find_out_of_bounds(self._fields.values(), self.page_geometry)

    def restore_fields(self, descriptors: Iterable[FieldDescriptor]) -> List[FieldDiagnostic]:
        """
        Load saved PDF-space fields back into viewport space.
        Descriptors whose page has no geometry yet are skipped and reported.
        """
        skipped: List[FieldDiagnostic] = []
        for d in descriptors:
            geo = self.page_geometry.get(d.page_number)
            if geo is None:
                skipped.append(FieldDiagnostic(
                    field_id=d.id,
                    page_number=d.page_number,
                    kind=DiagnosticKind.GEOMETRY_MISSING,
                    message=f"Field {d.id}: page {d.page_number} dimensions missing",
                ))
                continue
            self._fields[d.id] = Field(
                id=d.id,
                type=d.type,
                page_number=d.page_number,
                rect=to_browser(d.coordinates, geo.pdf, geo.rendered),
                value=d.value,
            )
        return skipped
