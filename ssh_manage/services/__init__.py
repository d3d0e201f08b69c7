"""Service layer for the server registry."""

from .credential_store import CredentialStore
from .disclosure_gate import DisclosureGate
from .reachability_prober import ReachabilityProber
from .token_authority import TokenAuthority, generate_token, tokens_match

__all__ = [
    "CredentialStore",
    "DisclosureGate",
    "ReachabilityProber",
    "TokenAuthority",
    "generate_token",
    "tokens_match",
]
