"""Data management package for the evidence ledger.

Provides schemas and storage adapters for:
- Evidence and chain of custody (EvidenceStore)
- Extracted atomic facts (FactStore)
- Detected contradictions (ContradictionStore)

Stores are imported from their modules, e.g.
``from evidence_ledger.data_management.evidence_store import EvidenceStore``.
"""
