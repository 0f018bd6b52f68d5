"""Utility functions and helpers."""

from .logger import setup_logger
from .io import save_history, load_history

__all__ = ["setup_logger", "save_history", "load_history"]
