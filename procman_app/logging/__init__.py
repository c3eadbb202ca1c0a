"""
Logging configuration and utilities for the process tracker.
"""
from .config import configure_logging, configure_logging_from, get_logger

__all__ = ["configure_logging", "configure_logging_from", "get_logger"]
