"""Scheduled news digest: scrape, rank, summarize and email."""

__version__ = "0.1.0"
