"""Command-line interface for the evidence ledger."""
