"""Flask REST service for the personal finance ledger."""
