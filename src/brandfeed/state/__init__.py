"""State/store layer.

This package is the single source of truth for the dashboard's per-domain
data. Domain loaders feed it; UI observers read snapshots from it.
"""
