# fieldsign/models/field.py
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional

from .field_enums import FieldType
from .geometry import BrowserRect, PdfRect


def new_field_id() -> str:
    return f"field-{uuid.uuid4().hex[:12]}"


@dataclass
class Field:
    """
    A typed placeholder on one page, in viewport pixels.

    Mutable on purpose: the editor moves and resizes it in place. ``page_number``
    is 1-indexed and never changes after creation.
    """
    type: FieldType
    page_number: int
    rect: BrowserRect
    value: Optional[str] = None
    id: str = field(default_factory=new_field_id)

    def move_to(self, x: float, y: float) -> None:
        self.rect = replace(self.rect, x=x, y=y)

    def resize_to(self, width: float, height: float) -> None:
        # anchored at the top-left corner
        self.rect = replace(self.rect, width=width, height=height)


@dataclass(frozen=True)
class FieldDescriptor:
    """PDF-space view of a field, the shape that crosses the signing boundary."""
    id: str
    type: FieldType
    page_number: int
    coordinates: PdfRect
    value: Optional[str] = None

    @property
    def is_signature(self) -> bool:
        return self.type == FieldType.SIGNATURE

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "type": self.type.value,
            "pageNumber": self.page_number,
            "coordinates": self.coordinates.to_dict(),
        }
        if self.value is not None:
            data["value"] = self.value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldDescriptor":
        page = data.get("pageNumber", data.get("page_number"))
        return cls(
            id=str(data["id"]),
            type=FieldType(str(data["type"]).lower()),
            page_number=int(page),
            coordinates=PdfRect.from_dict(data["coordinates"]),
            value=data.get("value"),
        )
