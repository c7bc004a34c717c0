"""Forensic handling, authentication and scientific-validity checks."""

from evidence_ledger.compliance.forensics import (
    DaubertCriteria,
    ExpertWitnessAssessment,
    ForensicsReport,
    MethodologyValidation,
    assess_expert_witness_requirements,
    generate_forensics_report,
    validate_trust_score_methodology,
)
from evidence_ledger.compliance.integrity import (
    AuthenticityClassification,
    CustodyCompliance,
    EvidenceRule,
    IntegrityCheck,
    classify_authenticity,
    sha256_hex,
    validate_custody_handling,
    validate_digital_integrity,
)

__all__ = [
    "AuthenticityClassification",
    "CustodyCompliance",
    "DaubertCriteria",
    "EvidenceRule",
    "ExpertWitnessAssessment",
    "ForensicsReport",
    "IntegrityCheck",
    "MethodologyValidation",
    "assess_expert_witness_requirements",
    "classify_authenticity",
    "generate_forensics_report",
    "sha256_hex",
    "validate_custody_handling",
    "validate_digital_integrity",
    "validate_trust_score_methodology",
]
