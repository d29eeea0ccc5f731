"""Service modules"""
from .lending import LendingSession

__all__ = ["LendingSession"]
