"""
HTTP API for the restaurant dashboard.

This package provides a single FastAPI application that exposes:
- Filtered list endpoints for orders, reservations, customers, notifications
- Summary stats endpoints for each dashboard page
- The dashboard home page metrics
"""

from api.main import app, create_app

__all__ = ["app", "create_app"]
