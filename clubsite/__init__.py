"""
Backend package for the club site.

This package provides the data-access layer (Firestore with a local key-value
fallback) and a FastAPI application exposing it to the browser front-end.
"""
