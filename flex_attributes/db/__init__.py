"""
Database helpers for flex attributes.
"""

from .base import Base

__all__ = ["Base"]
