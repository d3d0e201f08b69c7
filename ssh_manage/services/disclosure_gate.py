"""
Disclosure gate deciding what a caller may see about stored profiles.

Two tiers:
- account id alone: profile names only, never credentials
- account id + valid token: the full connection profile

A failed full-configuration request is reported either as not found or as
an invalid token. The distinction is kept on purpose for the chat bot's
diagnostics; no profile field is ever returned on either path.
"""

from typing import List, Optional

from ..constants import NO_SERVERS_MESSAGE
from ..context.operation_context import operation
from ..enums import DisclosureOutcome, TokenValidation
from ..exceptions import NoServersError, ProfileNotFoundError, TokenMismatchError
from ..schemas.server_schemas import DisclosureDecision, ServerConfigRead
from ..utils.logger import get_logger
from .credential_store import CredentialStore
from .token_authority import TokenAuthority


class DisclosureGate:
    """Enforces the not-found / token-invalid / disclosed tri-state."""

    def __init__(
        self,
        store: CredentialStore,
        token_authority: Optional[TokenAuthority] = None,
        no_servers_message: str = NO_SERVERS_MESSAGE,
    ):
        self.store = store
        self.token_authority = token_authority or TokenAuthority(store)
        self.no_servers_message = no_servers_message
        self.logger = get_logger()

    @operation()
    def list_names(self, external_id: str) -> List[str]:
        """
        Names of the account's profiles, in insertion order.

        Raises:
            NoServersError: If the account is unknown or has no profiles
        """
        names = self.store.list_profile_names(external_id)
        if not names:
            raise NoServersError(self.no_servers_message, external_id=external_id)
        return names

    def evaluate(
        self, external_id: str, name: str, token: Optional[str]
    ) -> DisclosureDecision:
        """Run the tri-state check without raising."""
        validation = self.token_authority.validate(external_id, name, token)

        if validation == TokenValidation.NO_SUCH_PROFILE:
            return DisclosureDecision(outcome=DisclosureOutcome.NOT_FOUND)

        if validation == TokenValidation.MISMATCH:
            self.logger.warning(
                "Token rejected for server config",
                extra={"external_id": external_id, "name": name, "token_presented": bool(token)},
            )
            return DisclosureDecision(outcome=DisclosureOutcome.TOKEN_INVALID)

        profile = self.store.get_profile_with_token(external_id, name, token)
        if profile is None:
            # Token rotated between the two reads
            return DisclosureDecision(outcome=DisclosureOutcome.TOKEN_INVALID)

        self.logger.info(
            "Server config disclosed", extra={"external_id": external_id, "name": name}
        )
        return DisclosureDecision(
            outcome=DisclosureOutcome.DISCLOSED,
            config=ServerConfigRead.model_validate(profile),
        )

    @operation()
    def disclose(self, external_id: str, name: str, token: Optional[str]) -> ServerConfigRead:
        """
        Full profile for (account, name) when ``token`` is valid.

        Raises:
            ProfileNotFoundError: If the profile does not exist
            TokenMismatchError: If the token is empty or wrong
        """
        decision = self.evaluate(external_id, name, token)
        if decision.outcome == DisclosureOutcome.NOT_FOUND:
            raise ProfileNotFoundError(external_id=external_id, name=name)
        if decision.outcome == DisclosureOutcome.TOKEN_INVALID:
            raise TokenMismatchError(external_id=external_id, name=name)
        return decision.config
