"""
FastAPI layer for catalog-feed-sync.

Serves the live feed file and exposes feed/scheduler control endpoints.
"""
