"""
Clixen API package.

Provides the FastAPI application for accounts, trials, Telegram linking
and billing.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
