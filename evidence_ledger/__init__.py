"""Evidence Ledger - forensic evidence trust scoring and contradiction detection."""

__version__ = "0.1.0"
