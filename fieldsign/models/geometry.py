"""
Geometry value objects.

Two coordinate systems are in play and must never be mixed:

  * browser / rendered space: CSS pixels, origin top-left, Y grows downward,
    sized by the current zoom level of the page raster
  * PDF space: points (1pt = 1/72 inch), origin bottom-left, Y grows upward

``BrowserRect`` and ``PdfRect`` carry the same four numbers but are distinct
types so that a rect can only be handed to the conversion that expects it.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class Dimensions:
    """Width/height pair; PDF points or rendered pixels depending on context."""
    width: float
    height: float

    def scaled(self, factor: float) -> "Dimensions":
        return Dimensions(self.width * factor, self.height * factor)

    def to_dict(self) -> dict:
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Dimensions":
        return cls(width=float(data["width"]), height=float(data["height"]))


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class _Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data["width"]),
            height=float(data["height"]),
        )


@dataclass(frozen=True)
class BrowserRect(_Rect):
    """Pixels, top-left origin. Produced and mutated by editor gestures only."""


@dataclass(frozen=True)
class PdfRect(_Rect):
    """Points, bottom-left origin. The only representation sent for signing."""
