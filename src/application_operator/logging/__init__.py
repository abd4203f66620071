"""Logging configuration for application_operator."""

from application_operator.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
