"""Containment math and overlay placement onto PDF pages."""
from __future__ import annotations

from io import BytesIO

import pytest
from pypdf import PdfReader, PdfWriter
from pypdf.generic import RectangleObject

from core.config.config_service import SigningConfig
from fieldsign.exceptions.errors import InputError
from fieldsign.logic.image_decoder import decode_signature
from fieldsign.logic.placement_engine import PlacementEngine, contain
from fieldsign.models.field import FieldDescriptor
from fieldsign.models.field_enums import DiagnosticKind, FieldType
from fieldsign.models.geometry import PdfRect


def _sig(fid: str, page: int, rect: PdfRect = PdfRect(100, 100, 150, 40)) -> FieldDescriptor:
    return FieldDescriptor(id=fid, type=FieldType.SIGNATURE, page_number=page, coordinates=rect)


# ---------------------------------------------------------------- contain
def test_wide_image_fits_width_and_centres_vertically() -> None:
    box = contain(2.0, PdfRect(0, 0, 100, 100))
    assert (box.width, box.height, box.offset_x, box.offset_y) == (100, 50, 0, 25)


def test_tall_image_fits_height_and_centres_horizontally() -> None:
    box = contain(0.5, PdfRect(0, 0, 100, 100))
    assert (box.width, box.height, box.offset_x, box.offset_y) == (50, 100, 25, 0)


def test_equal_ratio_takes_fit_height_branch() -> None:
    box = contain(1.5, PdfRect(0, 0, 150, 100))
    assert (box.width, box.height, box.offset_x, box.offset_y) == (150, 100, 0, 0)


def test_contained_box_never_exceeds_field() -> None:
    rect = PdfRect(0, 0, 150, 40)
    for ratio in (0.1, 0.75, 3.75, 12.0):
        box = contain(ratio, rect)
        assert box.width <= rect.width + 1e-9
        assert box.height <= rect.height + 1e-9
        assert box.width / box.height == pytest.approx(ratio)


# ---------------------------------------------------------------- place
def test_signature_lands_on_requested_pages(pdf_bytes, png_bytes, count_xobjects) -> None:
    payload = decode_signature(png_bytes)  # 2:1
    outcome = PlacementEngine().place(pdf_bytes, payload, [_sig("s1", 2, PdfRect(0, 0, 100, 100))])

    assert outcome.diagnostics == []
    assert outcome.signatures_placed == 1
    p = outcome.placements[0]
    assert (p.page_number, p.x, p.y, p.width, p.height) == (2, 0, 25, 100, 50)

    reader = PdfReader(BytesIO(outcome.document))
    assert len(reader.pages) == 2
    assert count_xobjects(reader.pages[0]) == 0
    assert count_xobjects(reader.pages[1]) >= 1


def test_missing_page_is_skipped_not_fatal(pdf_bytes, png_bytes, count_xobjects) -> None:
    payload = decode_signature(png_bytes)
    fields = [_sig("f1", 1), _sig("f2", 9), _sig("f3", 2)]
    outcome = PlacementEngine().place(pdf_bytes, payload, fields)

    assert outcome.signatures_placed == 2
    assert [p.field_id for p in outcome.placements] == ["f1", "f3"]
    assert len(outcome.diagnostics) == 1
    assert outcome.diagnostics[0].field_id == "f2"
    assert outcome.diagnostics[0].kind == DiagnosticKind.PAGE_OUT_OF_RANGE

    reader = PdfReader(BytesIO(outcome.document))
    assert count_xobjects(reader.pages[0]) >= 1
    assert count_xobjects(reader.pages[1]) >= 1


def test_page_zero_is_out_of_range(pdf_bytes, png_bytes) -> None:
    outcome = PlacementEngine().place(pdf_bytes, decode_signature(png_bytes), [_sig("f0", 0)])
    assert outcome.signatures_placed == 0
    assert outcome.diagnostics[0].kind == DiagnosticKind.PAGE_OUT_OF_RANGE


def test_degenerate_field_is_skipped(pdf_bytes, png_bytes) -> None:
    outcome = PlacementEngine().place(
        pdf_bytes, decode_signature(png_bytes), [_sig("flat", 1, PdfRect(10, 10, 100, 0)), _sig("ok", 1)]
    )
    assert [p.field_id for p in outcome.placements] == ["ok"]
    assert outcome.diagnostics[0].kind == DiagnosticKind.DEGENERATE_RECT


def test_non_signature_fields_are_ignored_by_default(pdf_bytes, png_bytes, count_xobjects) -> None:
    fields = [
        FieldDescriptor(id="t", type=FieldType.TEXT, page_number=1, coordinates=PdfRect(10, 10, 150, 40), value="hi"),
        FieldDescriptor(id="d", type=FieldType.DATE, page_number=1, coordinates=PdfRect(10, 60, 150, 40)),
    ]
    outcome = PlacementEngine().place(pdf_bytes, decode_signature(png_bytes), fields)
    assert outcome.placements == []
    assert outcome.diagnostics == []
    assert count_xobjects(PdfReader(BytesIO(outcome.document)).pages[0]) == 0


def test_text_fields_render_when_enabled(pdf_bytes, png_bytes) -> None:
    engine = PlacementEngine(signing_config=SigningConfig(render_text=True))
    fields = [
        FieldDescriptor(id="t", type=FieldType.TEXT, page_number=1,
                        coordinates=PdfRect(100, 500, 200, 40), value="Jane Roe"),
        FieldDescriptor(id="empty", type=FieldType.TEXT, page_number=1, coordinates=PdfRect(100, 400, 200, 40)),
    ]
    outcome = engine.place(pdf_bytes, decode_signature(png_bytes), fields)

    assert [p.field_id for p in outcome.placements] == ["t", "empty"]
    assert all(p.field_type == FieldType.TEXT for p in outcome.placements)
    assert outcome.signatures_placed == 0
    text = PdfReader(BytesIO(outcome.document)).pages[0].extract_text()
    assert "Jane Roe" in text


def test_render_text_argument_overrides_config(pdf_bytes, png_bytes) -> None:
    engine = PlacementEngine(signing_config=SigningConfig(render_text=True))
    fields = [FieldDescriptor(id="t", type=FieldType.TEXT, page_number=1,
                              coordinates=PdfRect(100, 500, 200, 40), value="x")]
    outcome = engine.place(pdf_bytes, decode_signature(png_bytes), fields, render_text=False)
    assert outcome.placements == []


def test_input_buffer_is_untouched(pdf_bytes, png_bytes) -> None:
    original = bytes(pdf_bytes)
    outcome = PlacementEngine().place(pdf_bytes, decode_signature(png_bytes), [_sig("s", 1)])
    assert pdf_bytes == original
    assert outcome.document != original


def test_jpeg_signature_is_placed(pdf_bytes, image_factory) -> None:
    payload = decode_signature(image_factory((100, 200), "JPEG"))
    outcome = PlacementEngine().place(pdf_bytes, payload, [_sig("j", 1, PdfRect(0, 0, 100, 100))])
    p = outcome.placements[0]
    assert (p.x, p.width, p.height) == (25, 50, 100)


def test_unreadable_pdf_raises_input_error(png_bytes) -> None:
    with pytest.raises(InputError):
        PlacementEngine().place(b"not a pdf at all", decode_signature(png_bytes), [_sig("s", 1)])


def _shift_mediabox(document: bytes, box) -> bytes:
    writer = PdfWriter(clone_from=PdfReader(BytesIO(document)))
    for page in writer.pages:
        page.mediabox = RectangleObject(box)
    out = BytesIO()
    writer.write(out)
    return out.getvalue()


def _clip_rects(page):
    ops = page.get_contents().operations
    return [
        [float(v) for v in operands]
        for (operands, operator), (_, following) in zip(ops, ops[1:])
        if operator == b"re" and following == b"W"
    ]


def test_overlay_clip_covers_shifted_mediabox(pdf_factory, png_bytes) -> None:
    document = _shift_mediabox(pdf_factory(pages=1), [200, 200, 800, 1000])
    field = _sig("s1", 1, PdfRect(450, 700, 150, 100))  # upper-right corner of the box

    outcome = PlacementEngine().place(document, decode_signature(png_bytes), [field])

    page = PdfReader(BytesIO(outcome.document)).pages[0]
    clips = _clip_rects(page)
    assert clips
    # drawn in page user space: mediabox origin plus field offset
    left, bottom, right, top = 200 + 450, 200 + 700, 200 + 600, 200 + 800
    for x, y, w, h in clips:
        assert x <= left and y <= bottom
        assert x + w >= right and y + h >= top


def test_document_info_is_kept(pdf_bytes, png_bytes) -> None:
    writer = PdfWriter(clone_from=PdfReader(BytesIO(pdf_bytes)))
    writer.add_metadata({"/Title": "Lease agreement"})
    buf = BytesIO()
    writer.write(buf)

    outcome = PlacementEngine().place(buf.getvalue(), decode_signature(png_bytes), [_sig("s1", 1)])

    assert PdfReader(BytesIO(outcome.document)).metadata.title == "Lease agreement"
