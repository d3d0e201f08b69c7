"""
Constants and enums for the ssh_manage package.

This module centralizes the magic strings used by the services and the
command surface so that wire values stay consistent.
"""

import string
from enum import Enum

# 62-character token alphabet: digits, lower and upper case letters
TOKEN_ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase
DEFAULT_TOKEN_LENGTH = 64
# Width of the token column
MAX_TOKEN_LENGTH = 128

DEFAULT_PROBE_COMMAND = "sudo /opt/heppy_ai/bin/ssh_check.sh"
DEFAULT_PROBE_TIMEOUT = 30
PROBE_SUCCESS_MARKER = "OK"
PROBE_TIMEOUT_DETAIL = "TIMEOUT"

NO_SERVERS_MESSAGE = (
    "No servers found go to "
    "https://www.yetanotherprojecttosavetheworld.org/ssh_management.php to add servers"
)
SERVER_NOT_FOUND_MESSAGE = "ssh Server not found"
TOKEN_INVALID_MESSAGE = "TOKEN INVALID please try again"
CONNECTION_FAILED_MESSAGE = "Connection failed"


class LogLevel(str, Enum):
    """Standard logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnvironmentVariable(str, Enum):
    """Standard environment variable names."""

    DATABASE_URL = "DATABASE_URL"
    DB_TYPE = "DB_TYPE"
    DB_HOST = "DB_HOST"
    DB_PORT = "DB_PORT"
    DB_NAME = "DB_NAME"
    DB_USER = "DB_USER"
    DB_PASSWORD = "DB_PASSWORD"
    DB_ECHO = "DB_ECHO"
    LOG_LEVEL = "LOG_LEVEL"
    SSH_CHECK_COMMAND = "SSH_CHECK_COMMAND"
    SSH_CHECK_TIMEOUT = "SSH_CHECK_TIMEOUT"
    TOKEN_LENGTH = "TOKEN_LENGTH"
    DEFAULT_SSH_USERNAME = "DEFAULT_SSH_USERNAME"


class OperationStatus(str, Enum):
    """Status values reported in command payloads."""

    SUCCESS = "success"
    CREATED = "created"
    DELETED = "deleted"
    INITIALIZED = "initialized"


class ExitCode(int, Enum):
    """Process exit codes of the command surface."""

    SUCCESS = 0
    FAILURE = 1
