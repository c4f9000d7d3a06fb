"""Recap: YouTube transcript summaries behind a per-user usage ledger."""

__version__ = "0.1.0"
