"""Ledger exception hierarchy.

Every failure surfaced to a caller carries a machine-readable ``code``, an
HTTP-style ``status_code`` for the route layer, and optional metadata.

Taxonomy:
- ValidationError: malformed input (missing block number/hash at minting,
  evidence reference without an id, out-of-order custody entry)
- NotFoundError: referenced evidence/case/contradiction absent
- ConfigurationError: unknown tier in a lookup table (data-model mismatch)
- TrustScoreError: scoring invariant violated (negative decay, NaN)
- MintingRefusedError: minting attempted while ineligible
"""

from typing import Any, Dict, Optional


class EvidenceLedgerError(Exception):
    """Base exception for all ledger business errors."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.metadata = metadata or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the route layer: typed code plus message."""
        return {
            "error": self.message,
            "code": self.code,
            "metadata": self.metadata,
        }


class ValidationError(EvidenceLedgerError):
    """Raised for structurally invalid input."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, **metadata: Any):
        super().__init__(message, metadata={"field": field, **metadata})
        self.field = field


class NotFoundError(EvidenceLedgerError):
    """Raised when a referenced resource does not exist."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        super().__init__(
            f"{resource} not found",
            metadata={"resource": resource, "id": resource_id},
        )
        self.resource = resource
        self.resource_id = resource_id


class ConfigurationError(EvidenceLedgerError):
    """Raised when a lookup table does not cover a value (fatal)."""

    code = "CONFIGURATION_ERROR"
    status_code = 500


class TrustScoreError(EvidenceLedgerError):
    """Raised when the trust pipeline produces an impossible value."""

    code = "TRUST_SCORE_ERROR"
    status_code = 422

    def __init__(self, message: str, evidence_id: Optional[str] = None):
        super().__init__(message, metadata={"evidence_id": evidence_id})
        self.evidence_id = evidence_id


class MintingRefusedError(ValidationError):
    """Raised when minting is attempted for ineligible evidence."""

    code = "MINTING_REFUSED"

    def __init__(self, message: str, evidence_id: str, score: str = "0.00"):
        super().__init__(message, field=None, evidence_id=evidence_id, score=score)
        self.evidence_id = evidence_id
        self.score = score


__all__ = [
    "EvidenceLedgerError",
    "ValidationError",
    "NotFoundError",
    "ConfigurationError",
    "TrustScoreError",
    "MintingRefusedError",
]
