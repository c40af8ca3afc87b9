"""Shared fixtures: in-memory PDFs and signature images."""
from __future__ import annotations

import io
from typing import Callable

import pytest
from PIL import Image
from reportlab.pdfgen import canvas


def make_pdf(pages: int = 2, size: tuple[float, float] = (600, 800)) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=size)
    for n in range(pages):
        c.setFont("Helvetica", 10)
        c.drawString(36, 36, f"page {n + 1}")
        c.showPage()
    c.save()
    return buf.getvalue()


def make_image(size: tuple[int, int] = (200, 100), fmt: str = "PNG") -> bytes:
    mode = "RGBA" if fmt == "PNG" else "RGB"
    if fmt == "GIF":
        mode = "P"
    im = Image.new(mode, size)
    buf = io.BytesIO()
    im.save(buf, format=fmt)
    return buf.getvalue()


def xobject_count(page) -> int:
    res = page.get("/Resources")
    if res is None:
        return 0
    res = res.get_object()
    if "/XObject" not in res:
        return 0
    return len(res["/XObject"])


@pytest.fixture
def pdf_bytes() -> bytes:
    return make_pdf()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image((200, 100), "PNG")


@pytest.fixture
def pdf_factory() -> Callable[..., bytes]:
    return make_pdf


@pytest.fixture
def image_factory() -> Callable[..., bytes]:
    return make_image


@pytest.fixture
def count_xobjects() -> Callable[..., int]:
    return xobject_count
