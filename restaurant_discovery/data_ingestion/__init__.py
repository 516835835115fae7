"""
Data ingestion package for the restaurant discovery service.

Responsibilities:
- Read a restaurants CSV export.
- Normalize rows into the canonical Restaurant schema.
- Insert the cleaned records into the restaurant store.
"""
