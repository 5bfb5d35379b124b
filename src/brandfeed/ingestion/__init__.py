"""Ingestion layer.

Turns provider responses into records and joins records from several
sources into combined entities. Only the state layer decides when this runs.
"""
