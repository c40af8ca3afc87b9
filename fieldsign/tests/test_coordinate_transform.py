"""Viewport <-> PDF coordinate conversion."""
from __future__ import annotations

import itertools

import pytest

from fieldsign.logic.coordinate_transform import clamp, format_rect, rect_fits, to_browser, to_pdf
from fieldsign.models.geometry import BrowserRect, Dimensions, PdfRect

PAGE = Dimensions(600, 800)


def test_identity_scale_flips_y_axis() -> None:
    pdf = to_pdf(BrowserRect(0, 0, 100, 50), PAGE, Dimensions(600, 800))
    assert pdf == PdfRect(x=0, y=750, width=100, height=50)


def test_half_size_render_doubles_pdf_coordinates() -> None:
    pdf = to_pdf(BrowserRect(0, 0, 100, 50), PAGE, Dimensions(300, 400))
    assert pdf == PdfRect(x=0, y=700, width=200, height=100)


def test_field_at_bottom_of_page_lands_on_pdf_origin() -> None:
    pdf = to_pdf(BrowserRect(10, 750, 100, 50), PAGE, PAGE)
    assert pdf.x == 10
    assert pdf.y == pytest.approx(0.0)


def test_non_uniform_scale_uses_each_axis() -> None:
    pdf = to_pdf(BrowserRect(30, 40, 60, 20), Dimensions(612, 792), Dimensions(306, 198))
    assert pdf.x == pytest.approx(60.0)
    assert pdf.width == pytest.approx(120.0)
    assert pdf.height == pytest.approx(80.0)
    assert pdf.y == pytest.approx(792 - (40 + 20) * 4)


def test_to_browser_inverts_to_pdf() -> None:
    pdf = PdfRect(72, 100, 144, 36)
    rendered = Dimensions(918, 1188)  # letter at 1.5x
    browser = to_browser(pdf, Dimensions(612, 792), rendered)
    back = to_pdf(browser, Dimensions(612, 792), rendered)
    for attr in ("x", "y", "width", "height"):
        assert getattr(back, attr) == pytest.approx(getattr(pdf, attr), rel=1e-6)


@pytest.mark.parametrize(
    "pdf_dims, rendered_dims",
    [
        (Dimensions(612, 792), Dimensions(612, 792)),
        (Dimensions(595.28, 841.89), Dimensions(793.7, 1122.5)),
        (Dimensions(842, 595), Dimensions(421, 297.5)),
        (Dimensions(200, 200), Dimensions(1000, 333)),
    ],
)
def test_round_trip_preserves_browser_rect(pdf_dims: Dimensions, rendered_dims: Dimensions) -> None:
    rects = [
        BrowserRect(*values)
        for values in itertools.product((0.0, 17.25, 250.0), (0.0, 33.3, 400.0), (50.0, 150.0), (30.0, 40.0))
    ]
    for r in rects:
        back = to_browser(to_pdf(r, pdf_dims, rendered_dims), pdf_dims, rendered_dims)
        assert back.x == pytest.approx(r.x, rel=1e-6, abs=1e-9)
        assert back.y == pytest.approx(r.y, rel=1e-6, abs=1e-9)
        assert back.width == pytest.approx(r.width, rel=1e-6)
        assert back.height == pytest.approx(r.height, rel=1e-6)


def test_clamp_pushes_rect_back_inside() -> None:
    clamped = clamp(BrowserRect(-20, 780, 100, 50), PAGE)
    assert clamped == BrowserRect(0, 750, 100, 50)


def test_clamp_caps_oversized_rect() -> None:
    clamped = clamp(PdfRect(10, 10, 900, 50), PAGE)
    assert isinstance(clamped, PdfRect)
    assert clamped.width == 600
    assert clamped.x == 0


def test_clamp_leaves_valid_rect_unchanged() -> None:
    r = BrowserRect(100, 200, 150, 40)
    assert clamp(r, PAGE) == r


def test_rect_fits() -> None:
    assert rect_fits(BrowserRect(0, 0, 600, 800), PAGE)
    assert not rect_fits(BrowserRect(-1, 0, 10, 10), PAGE)
    assert not rect_fits(BrowserRect(500, 0, 150, 40), PAGE)


def test_format_rect() -> None:
    assert format_rect(PdfRect(1, 2.5, 150, 40)) == "(1.00, 2.50) [150.00 × 40.00]"
