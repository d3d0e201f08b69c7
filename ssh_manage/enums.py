"""
Enums used across the ssh_manage package.

Kept apart from constants so that schemas and services can share them
without circular imports.
"""

import enum


class TokenValidation(str, enum.Enum):
    """Result of comparing a presented token with a stored profile."""

    MATCH = "MATCH"
    MISMATCH = "MISMATCH"
    NO_SUCH_PROFILE = "NO_SUCH_PROFILE"


class DisclosureOutcome(str, enum.Enum):
    """Outcome of a full-configuration request."""

    DISCLOSED = "DISCLOSED"
    NOT_FOUND = "NOT_FOUND"
    TOKEN_INVALID = "TOKEN_INVALID"


class ReachabilityStatus(str, enum.Enum):
    """Classification of an external reachability probe."""

    REACHABLE = "REACHABLE"
    UNREACHABLE = "UNREACHABLE"
