"""
API components

FastAPI routes and request/response models for the pipeline engine.
"""

from .routes import router

__all__ = ["router"]
