# fieldsign/models/page_geometry.py
from __future__ import annotations

from dataclasses import dataclass
from threading import RLock
from typing import Dict, Iterator, Optional

from ..exceptions.errors import UnknownPageError
from .geometry import Dimensions


@dataclass(frozen=True)
class PageGeometry:
    """
    Intrinsic PDF size and on-screen raster size of one page, captured when the
    page was rendered. Only valid for the zoom level it was captured at.
    """
    pdf: Dimensions
    rendered: Dimensions

    @property
    def scale(self) -> float:
        """Rendered pixels per PDF point along X (the viewer's zoom factor)."""
        return self.rendered.width / self.pdf.width


class PageGeometryCache:
    """
    Page number -> PageGeometry, owned by one editor session.

    Written on every page-render event, read by every prepare/sign call.
    Writes take a lock so overlapping renders of the same page cannot
    interleave.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._pages: Dict[int, PageGeometry] = {}

    def record(self, page_number: int, pdf: Dimensions, rendered: Dimensions) -> PageGeometry:
        geo = PageGeometry(pdf=pdf, rendered=rendered)
        with self._lock:
            self._pages[int(page_number)] = geo
        return geo

    def update_rendered(self, page_number: int, rendered: Dimensions) -> PageGeometry:
        """Refresh the raster size after a zoom change; the PDF size must already be known."""
        with self._lock:
            current = self._pages.get(int(page_number))
            if current is None:
                raise UnknownPageError(f"Page {page_number} has no recorded geometry; render it first.")
            geo = PageGeometry(pdf=current.pdf, rendered=rendered)
            self._pages[int(page_number)] = geo
            return geo

    def get(self, page_number: int) -> Optional[PageGeometry]:
        return self._pages.get(int(page_number))

    def forget(self, page_number: int) -> None:
        with self._lock:
            self._pages.pop(int(page_number), None)

    def clear(self) -> None:
        with self._lock:
            self._pages.clear()

    def __contains__(self, page_number: object) -> bool:
        return page_number in self._pages

    def __len__(self) -> int:
        return len(self._pages)

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._pages))
