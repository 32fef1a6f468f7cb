"""Configuration package exports."""

from .model import ClientSettings

__all__ = ["ClientSettings"]
