"""Backend API helpers."""

from .service import ApiService

__all__ = ["ApiService"]
