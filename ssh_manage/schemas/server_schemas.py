"""
Pydantic schemas for accounts, server profiles and command responses.

Field validators keep every value that is later handed to the external
connection check free of control characters, and every value except the
opaque auth key free of option-like prefixes. Auth keys are stored exactly
as given.
"""

import re
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..constants import CONNECTION_FAILED_MESSAGE, OperationStatus
from ..enums import DisclosureOutcome, ReachabilityStatus
from ..exceptions import validation_failed

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.@][A-Za-z0-9_.@-]*$")
_HOST_PATTERN = re.compile(r"^[A-Za-z0-9_.:\[\]][A-Za-z0-9_.:\[\]-]*$")
_USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.][A-Za-z0-9_.-]*$")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

TSchema = TypeVar("TSchema", bound=BaseModel)


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _reject_control_chars(value: str, label: str) -> str:
    if _CONTROL_CHARS.search(value):
        raise ValueError(f"{label} cannot contain control characters")
    return value


def _reject_option_like(value: str, label: str) -> str:
    if value.startswith("-"):
        raise ValueError(f"{label} cannot start with '-'")
    return _reject_control_chars(value, label)


class BaseServerSchema(BaseModel):
    """Base schema for registry input."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
    )


class AccountCreate(BaseServerSchema):
    """Schema for registering an account."""

    external_id: str = Field(..., min_length=1, max_length=100, description="Platform account id")
    display_name: Optional[str] = Field(None, max_length=200, description="Human readable name")

    @field_validator("external_id", "display_name", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)

    @field_validator("external_id")
    @classmethod
    def validate_external_id(cls, v):
        """Reject control characters in the identifier."""
        if _CONTROL_CHARS.search(v):
            raise ValueError("external_id cannot contain control characters")
        return v


class AccountRead(BaseModel):
    """Schema for reading an account."""

    id: int
    external_id: str
    display_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ServerProfileCreate(BaseServerSchema):
    """Schema for adding a server profile."""

    name: str = Field(..., min_length=1, max_length=100, description="Profile name")
    host: str = Field(..., min_length=1, max_length=255, description="Hostname or IP address")
    username: str = Field(..., min_length=1, max_length=100, description="SSH username")
    port: int = Field(22, gt=0, le=65535, description="SSH port")
    ssh_key: str = Field(..., min_length=1, max_length=500, description="Private key path")
    auth_key: str = Field(..., min_length=1, max_length=500, description="Auth key")

    @field_validator("name", "host", "username", "ssh_key", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        """Allow letters, digits and ``_ . @ -`` only."""
        if not _NAME_PATTERN.match(v):
            raise ValueError(
                "Server name can only contain letters, numbers, underscore, dot, @ and hyphen, "
                "and cannot start with a hyphen"
            )
        return v

    @field_validator("host")
    @classmethod
    def validate_host(cls, v):
        """Allow hostnames, IPv4 and bracketed or bare IPv6 literals."""
        if not _HOST_PATTERN.match(v):
            raise ValueError("Host must be a hostname or IP address")
        return v

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        """Validate POSIX-ish user name."""
        if not _USERNAME_PATTERN.match(v):
            raise ValueError("Username must be a valid login name")
        return v

    @field_validator("ssh_key")
    @classmethod
    def validate_ssh_key(cls, v):
        return _reject_option_like(v, "ssh_key")

    @field_validator("auth_key")
    @classmethod
    def validate_auth_key(cls, v):
        return _reject_control_chars(v, "auth_key")


class AuthKeyUpdate(BaseServerSchema):
    """Schema for replacing a profile's auth key."""

    auth_key: str = Field(..., min_length=1, max_length=500, description="New auth key")

    @field_validator("auth_key")
    @classmethod
    def validate_auth_key(cls, v):
        return _reject_control_chars(v, "auth_key")


class ServerConfigRead(BaseModel):
    """Full profile disclosure, serialized with the chat bot's wire keys."""

    name: str
    username: str
    host: str = Field(..., serialization_alias="server")
    port: int
    ssh_key: str
    auth_key: str

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """Newly issued bearer token."""

    token: str


class DisclosureDecision(BaseModel):
    """Result of the tri-state disclosure check."""

    outcome: DisclosureOutcome
    config: Optional[ServerConfigRead] = None

    @property
    def disclosed(self) -> bool:
        return self.outcome == DisclosureOutcome.DISCLOSED


class ProbeResult(BaseModel):
    """Classified output of the external connection check."""

    status: ReachabilityStatus
    details: Optional[str] = None

    @property
    def reachable(self) -> bool:
        return self.status == ReachabilityStatus.REACHABLE

    def to_payload(self) -> Dict[str, Any]:
        if self.reachable:
            return {"status": OperationStatus.SUCCESS.value}
        return {"error": CONNECTION_FAILED_MESSAGE, "details": self.details}


def parse_schema(schema_class: Type[TSchema], data: Dict[str, Any]) -> TSchema:
    """
    Validate ``data`` against ``schema_class``.

    Raises:
        ValidationError: Naming the first offending field
    """
    try:
        return schema_class.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or schema_class.__name__
        value = first.get("input")
        # Whole-input dicts (missing fields) and secrets are masked
        if field in ("auth_key", "token") or isinstance(value, dict):
            value = "***"
        raise validation_failed(
            field=field,
            value=value,
            reason=first.get("msg", "invalid value"),
            cause=e,
        ) from e
