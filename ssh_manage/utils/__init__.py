"""Utility modules for ssh_manage."""

from .json_utils import dumps, dumps_payload
from .logger import ContextAwareLogger, configure_logging, get_logger, reset_logging

__all__ = [
    "dumps",
    "dumps_payload",
    "ContextAwareLogger",
    "configure_logging",
    "get_logger",
    "reset_logging",
]
