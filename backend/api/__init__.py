"""
DecoDocs API package.

Provides the FastAPI application for the DecoDocs document analysis service.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
