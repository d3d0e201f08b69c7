"""Pydantic schemas for the server registry."""

from .server_schemas import (
    AccountCreate,
    AccountRead,
    AuthKeyUpdate,
    DisclosureDecision,
    ProbeResult,
    ServerConfigRead,
    ServerProfileCreate,
    TokenResponse,
    parse_schema,
)

__all__ = [
    "AccountCreate",
    "AccountRead",
    "AuthKeyUpdate",
    "DisclosureDecision",
    "ProbeResult",
    "ServerConfigRead",
    "ServerProfileCreate",
    "TokenResponse",
    "parse_schema",
]
