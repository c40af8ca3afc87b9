"""
Request, result and audit record shapes of a signing operation.

Binary members are raw ``bytes`` in memory; ``to_dict``/``from_dict`` use
base64 strings and the camelCase keys of the wire format.
"""
from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Tuple

from ..exceptions.errors import InputError
from .field import FieldDescriptor
from .field_enums import DiagnosticKind, DocumentStatus, FieldType, ImageEncoding


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(value: Any, name: str) -> bytes:
    """Accept raw bytes, plain base64 or a ``data:...;base64,`` URL."""
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    s = str(value).strip()
    if s.startswith("data:") and "," in s:
        s = s.split(",", 1)[1]
    try:
        return base64.b64decode(s, validate=True)
    except (binascii.Error, ValueError) as ex:
        raise InputError(f"'{name}' is not valid base64: {ex}") from ex


@dataclass(frozen=True)
class FieldDiagnostic:
    """A field that was skipped or flagged; never fatal to the batch."""
    field_id: str
    page_number: int
    kind: DiagnosticKind
    message: str

    def to_dict(self) -> dict:
        return {
            "fieldId": self.field_id,
            "pageNumber": self.page_number,
            "kind": self.kind.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class SignaturePayload:
    """Decoded signature image, shared by every signature field of one operation."""
    image_bytes: bytes
    encoding: ImageEncoding
    width: int
    height: int

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


@dataclass(frozen=True)
class Placement:
    """Where an image or text box actually landed (PDF points, bottom-left origin)."""
    field_id: str
    page_number: int
    x: float
    y: float
    width: float
    height: float
    field_type: FieldType = FieldType.SIGNATURE

    def to_dict(self) -> dict:
        return {
            "fieldId": self.field_id,
            "pageNumber": self.page_number,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "type": self.field_type.value,
        }


@dataclass(frozen=True)
class SigningRequest:
    document: bytes
    signature_image: bytes
    fields: Tuple[FieldDescriptor, ...]
    document_name: str = "document.pdf"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SigningRequest":
        raw_fields = data.get("fields") or []
        try:
            fields = tuple(FieldDescriptor.from_dict(f) for f in raw_fields)
        except (KeyError, TypeError, ValueError) as ex:
            raise InputError(f"Malformed field descriptor: {ex}") from ex
        return cls(
            document=_b64decode(data.get("document"), "document"),
            signature_image=_b64decode(data.get("signatureImage"), "signatureImage"),
            fields=fields,
            document_name=str(data.get("documentName") or "document.pdf"),
        )


@dataclass(frozen=True)
class SigningRecord:
    """
    Audit record handed to the persistence collaborator.
    Stores digests and PDF-space fields only, never the document bytes.
    """
    document_name: str
    original_digest: str
    result_digest: Optional[str]
    fields: Tuple[FieldDescriptor, ...]
    status: DocumentStatus = DocumentStatus.CREATED
    signed_at: Optional[datetime] = None

    def mark_signed(self, result_digest: str) -> "SigningRecord":
        return replace(self, result_digest=result_digest, status=DocumentStatus.SIGNED,
                       signed_at=datetime.now(timezone.utc))

    def mark_verified(self) -> "SigningRecord":
        if self.status != DocumentStatus.SIGNED:
            raise ValueError(f"Cannot verify a record in status '{self.status.value}'.")
        return replace(self, status=DocumentStatus.VERIFIED)

    def to_dict(self) -> dict:
        return {
            "documentName": self.document_name,
            "originalDigest": self.original_digest,
            "resultDigest": self.result_digest,
            "fields": [f.to_dict() for f in self.fields],
            "status": self.status.value,
            "signedAt": self.signed_at.isoformat() if self.signed_at else None,
        }


@dataclass(frozen=True)
class SigningResult:
    original_digest: str
    result_digest: str
    document: bytes
    fields_processed: int
    fields_submitted: int
    placements: Tuple[Placement, ...] = ()
    diagnostics: Tuple[FieldDiagnostic, ...] = ()
    record: Optional[SigningRecord] = None

    def to_dict(self) -> dict:
        return {
            "originalDigest": self.original_digest,
            "resultDigest": self.result_digest,
            "document": _b64encode(self.document),
            "fieldsProcessed": self.fields_processed,
            "fieldsSubmitted": self.fields_submitted,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


@dataclass(frozen=True)
class VerificationResult:
    matches: bool
    computed_digest: str

    def to_dict(self) -> dict:
        return {"matches": self.matches, "computedDigest": self.computed_digest}


@dataclass
class PreparationResult:
    """Output of FieldPreparer: descriptors in input order plus dropped fields."""
    descriptors: List[FieldDescriptor] = field(default_factory=list)
    diagnostics: List[FieldDiagnostic] = field(default_factory=list)


@dataclass(frozen=True)
class VerificationRequest:
    reference_digest: str
    document: bytes

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VerificationRequest":
        return cls(
            reference_digest=str(data.get("referenceDigest") or ""),
            document=_b64decode(data.get("document"), "document"),
        )
