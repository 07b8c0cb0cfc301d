"""Snapshot persistence"""

from .persistence import StateStore

__all__ = ["StateStore"]
