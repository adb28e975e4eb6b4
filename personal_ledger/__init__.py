"""Console shell for the personal finance ledger."""
