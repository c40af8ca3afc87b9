# fieldsign/logic/signing_service.py
from __future__ import annotations

import logging
from typing import Any, Optional

from core.config.config_service import SigningConfig, config_service
from ..exceptions.errors import DecodeError, InputError
from ..models.signing_models import (
    SigningRecord,
    SigningRequest,
    SigningResult,
    VerificationRequest,
    VerificationResult,
)
from .image_decoder import decode_signature
from .integrity import digest, verify
from .placement_engine import PlacementEngine

logger = logging.getLogger(__name__)

_FEATURE = "FieldSign"


class SigningService:
    """
    Signing and verification entry points (no transport, no persistence).

    Structural problems (missing document/image/fields, undecodable image,
    unreadable PDF) abort the whole operation before anything is produced.
    Per-field problems are collected as diagnostics and the batch continues.

    ``audit_logger`` is any object exposing ``log(feature=..., event=..., **data)``;
    it receives one event per sign/verify call.
    """

    def __init__(self, *, engine: Optional[PlacementEngine] = None,
                 signing_config: Optional[SigningConfig] = None,
                 audit_logger: Optional[Any] = None) -> None:
        self._engine = engine or PlacementEngine(signing_config=signing_config or config_service.signing)
        self._audit_logger = audit_logger

    # -------- Audit ----------------------------------------------------------
    def _audit(self, event: str, **data: Any) -> None:
        if self._audit_logger is None or not hasattr(self._audit_logger, "log"):
            return
        try:
            self._audit_logger.log(feature=_FEATURE, event=event, **data)
        except Exception:
            # the audit sink is external; its failure must not undo a finished signing
            logger.exception(f"Audit logger failed for event '{event}'")

    # -------- Validation -----------------------------------------------------
    @staticmethod
    def _validate(request: SigningRequest) -> None:
        missing = []
        if not request.document:
            missing.append("document")
        if not request.signature_image:
            missing.append("signatureImage")
        if not request.fields:
            missing.append("fields")
        if missing:
            raise InputError(f"Missing required fields: {', '.join(missing)}")

    # -------- Signing --------------------------------------------------------
    def sign(self, request: SigningRequest, *, render_text: Optional[bool] = None) -> SigningResult:
        """
        Overlay the signature image onto every signature field and return the
        new document with its digest pair.
        """
        self._validate(request)

        original_digest = digest(request.document)
        logger.info(f"Signing '{request.document_name}' ({len(request.document) / 1024:.2f} KB), "
                    f"{len(request.fields)} field(s), original digest {original_digest[:16]}...")

        try:
            payload = decode_signature(request.signature_image)
        except DecodeError as ex:
            logger.error(f"Signature image rejected: {ex}")
            self._audit("sign_pdf_failed", reference=request.document_name, error=str(ex))
            raise

        outcome = self._engine.place(request.document, payload, request.fields, render_text=render_text)
        result_digest = digest(outcome.document)

        submitted = sum(1 for f in request.fields if f.is_signature)
        processed = outcome.signatures_placed
        logger.info(f"Signed '{request.document_name}': {processed}/{submitted} signature field(s) placed, "
                    f"result digest {result_digest[:16]}...")
        for d in outcome.diagnostics:
            logger.warning(d.message)

        record = SigningRecord(
            document_name=request.document_name,
            original_digest=original_digest,
            result_digest=None,
            fields=tuple(request.fields),
        ).mark_signed(result_digest)

        self._audit(
            "sign_pdf",
            reference=request.document_name,
            original_digest=original_digest,
            result_digest=result_digest,
            fields_processed=processed,
            fields_submitted=submitted,
            skipped=[d.field_id for d in outcome.diagnostics],
            signature_sha256=digest(payload.image_bytes),
        )

        return SigningResult(
            original_digest=original_digest,
            result_digest=result_digest,
            document=outcome.document,
            fields_processed=processed,
            fields_submitted=submitted,
            placements=tuple(outcome.placements),
            diagnostics=tuple(outcome.diagnostics),
            record=record,
        )

    # -------- Verification ---------------------------------------------------
    def verify(self, request: VerificationRequest) -> VerificationResult:
        if not request.document:
            raise InputError("Missing required fields: document")
        if not request.reference_digest:
            raise InputError("Missing required fields: referenceDigest")
        result = verify(request.document, request.reference_digest)
        logger.info(f"Verification {'matched' if result.matches else 'FAILED'} "
                    f"(computed {result.computed_digest[:16]}...)")
        self._audit("verify_pdf", matches=result.matches, computed_digest=result.computed_digest,
                    reference_digest=request.reference_digest)
        return result
