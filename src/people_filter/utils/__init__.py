"""Utility modules."""

from people_filter.utils.logger import setup_logger

__all__ = ["setup_logger"]
