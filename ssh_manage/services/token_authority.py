"""
Token authority: issues, stores and validates account-scoped bearer tokens.
"""

import hmac
import secrets
from typing import Optional

from ..constants import DEFAULT_TOKEN_LENGTH, MAX_TOKEN_LENGTH, TOKEN_ALPHABET
from ..context.operation_context import operation
from ..enums import TokenValidation
from ..exceptions import ErrorCode, ProfileNotFoundError, ValidationError
from ..schemas.server_schemas import TokenResponse
from ..utils.logger import get_logger
from .credential_store import CredentialStore


def generate_token(length: int = DEFAULT_TOKEN_LENGTH) -> str:
    """
    Generate a token of ``length`` characters drawn uniformly from the
    62-character alphanumeric alphabet using the OS CSPRNG.

    Raises:
        ValidationError: If length is outside 1..MAX_TOKEN_LENGTH
    """
    if not 1 <= length <= MAX_TOKEN_LENGTH:
        raise ValidationError(
            f"Token length must be between 1 and {MAX_TOKEN_LENGTH}",
            field="length",
            error_code=ErrorCode.INVALID_FORMAT,
            value=length,
        )
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def tokens_match(stored: Optional[str], presented: Optional[str]) -> bool:
    """Constant-time comparison; an empty side never matches."""
    if not stored or not presented:
        return False
    return hmac.compare_digest(stored.encode("utf-8"), presented.encode("utf-8"))


class TokenAuthority:
    """Generates tokens and validates presented tokens against stored profiles."""

    def __init__(self, store: CredentialStore, token_length: int = DEFAULT_TOKEN_LENGTH):
        self.store = store
        self.token_length = token_length
        self.logger = get_logger()

    @operation()
    def issue(self, external_id: str) -> TokenResponse:
        """
        Generate a fresh token and assign it to the account.

        Raises:
            AccountNotFoundError: If the account does not exist
            ProfileNotFoundError: If the account has no profile to carry the token
        """
        account = self.store.require_account(external_id)
        if self.store.count_profiles(account) == 0:
            raise ProfileNotFoundError(
                "No servers registered for this account", external_id=external_id
            )

        token = generate_token(self.token_length)
        self.assign(external_id, token)
        return TokenResponse(token=token)

    def assign(self, external_id: str, token: str) -> int:
        """Persist ``token`` for every profile of the account."""
        if not token:
            raise ValidationError("Token cannot be empty", field="token")
        updated = self.store.set_account_token(external_id, token)
        self.logger.info(
            "Token assigned", extra={"external_id": external_id, "profiles": updated}
        )
        return updated

    def validate(
        self, external_id: str, name: str, presented: Optional[str]
    ) -> TokenValidation:
        """
        Compare a presented token with the stored token of (account, name).

        Returns:
            NO_SUCH_PROFILE if the profile does not exist, MATCH if the tokens
            are equal and non-empty, MISMATCH otherwise
        """
        profile = self.store.get_profile(external_id, name)
        if profile is None:
            return TokenValidation.NO_SUCH_PROFILE
        if tokens_match(profile.token, presented):
            return TokenValidation.MATCH
        return TokenValidation.MISMATCH
