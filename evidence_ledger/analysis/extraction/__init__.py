"""Pattern-based fact extraction."""

from evidence_ledger.analysis.extraction.fact_extractor import FactExtractionEngine

__all__ = ["FactExtractionEngine"]
