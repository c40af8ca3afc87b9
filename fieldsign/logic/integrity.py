# fieldsign/logic/integrity.py
from __future__ import annotations

import hashlib
import hmac

from ..models.signing_models import VerificationResult


def digest(data: bytes) -> str:
    """SHA-256 over the raw bytes, lowercase hex. Tamper evidence only."""
    return hashlib.sha256(data).hexdigest()


def verify(data: bytes, reference_digest: str) -> VerificationResult:
    """
    Recompute the digest of ``data`` and compare it with ``reference_digest``.
    A mismatch is a result, not an error.
    """
    computed = digest(data)
    reference = (reference_digest or "").strip().lower()
    return VerificationResult(
        # bytes compare: str compare_digest rejects non-ASCII input
        matches=hmac.compare_digest(computed.encode("ascii"), reference.encode("utf-8")),
        computed_digest=computed,
    )
