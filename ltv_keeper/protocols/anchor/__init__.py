"""Anchor money market on Terra."""
from .adapter import AnchorAdapter

__all__ = ["AnchorAdapter"]
