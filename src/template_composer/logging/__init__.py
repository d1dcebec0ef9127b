"""
Logging configuration helpers.
"""
from .config import PACKAGE_LOGGER, LogConfig, JsonFormatter, configure_logging

__all__ = ['PACKAGE_LOGGER', 'LogConfig', 'JsonFormatter', 'configure_logging']
