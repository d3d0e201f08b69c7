"""
Credential store for server profiles owned by external accounts.

All reads and writes go through the SQLAlchemy ORM with bound parameters.
The store works on a session handed in by the caller and only flushes;
committing is the job of ``DatabaseManager.session_scope``.
"""

from typing import List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..context.operation_context import operation
from ..context.service_decorators import handle_store_errors
from ..db.db_account_models import Account
from ..db.db_base import utc_now
from ..db.db_server_models import ServerProfile
from ..exceptions import (
    AccountNotFoundError,
    DuplicateAccountError,
    DuplicateProfileError,
    ProfileNotFoundError,
)
from ..schemas.server_schemas import AccountCreate, AccountRead, ServerProfileCreate
from ..utils.logger import get_logger


class CredentialStore:
    """
    Persistent mapping from (account, profile name) to a server profile.

    Tokens are account-scoped: every profile row of an account carries the
    same token, bulk-replaced by ``set_account_token`` and copied onto new
    rows by ``add_profile``.
    """

    def __init__(self, session: Session):
        """Initialize with the invocation's SQLAlchemy session."""
        self.session = session
        self.logger = get_logger()

    # ==================== ACCOUNTS ====================

    @operation()
    @handle_store_errors()
    def create_account(self, account_create: AccountCreate) -> AccountRead:
        """
        Register a new external account.

        Raises:
            DuplicateAccountError: If the external id is already registered
        """
        if self.get_account(account_create.external_id) is not None:
            raise DuplicateAccountError(
                f"Account '{account_create.external_id}' already exists",
                external_id=account_create.external_id,
            )

        account = Account(
            external_id=account_create.external_id,
            display_name=account_create.display_name,
        )
        self.session.add(account)
        try:
            self.session.flush()
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateAccountError(
                f"Account '{account_create.external_id}' already exists",
                cause=e,
                external_id=account_create.external_id,
            ) from e

        self.logger.info(
            "Account created", extra={"account_id": account.id, "external_id": account.external_id}
        )
        return AccountRead.model_validate(account)

    @handle_store_errors()
    def get_account(self, external_id: str) -> Optional[Account]:
        """Exact, case-sensitive lookup of an account by external id."""
        account = self.session.query(Account).filter(Account.external_id == external_id).first()
        # Some MySQL collations compare case-insensitively
        if account is None or account.external_id != external_id:
            return None
        return account

    def require_account(self, external_id: str) -> Account:
        """
        Get an account or fail.

        Raises:
            AccountNotFoundError: If the external id is not registered
        """
        account = self.get_account(external_id)
        if account is None:
            raise AccountNotFoundError(
                f"Account '{external_id}' not found", external_id=external_id
            )
        return account

    # ==================== READS ====================

    @handle_store_errors()
    def list_profile_names(self, external_id: str) -> List[str]:
        """Profile names of an account in insertion order; empty if none."""
        rows = (
            self.session.query(ServerProfile.name, Account.external_id)
            .join(Account, Account.id == ServerProfile.account_id)
            .filter(Account.external_id == external_id)
            .order_by(ServerProfile.id)
            .all()
        )
        return [name for name, owner in rows if owner == external_id]

    @handle_store_errors()
    def get_profile(self, external_id: str, name: str) -> Optional[ServerProfile]:
        """Full profile record for (account, name), ignoring the token."""
        profile = (
            self.session.query(ServerProfile)
            .join(Account, Account.id == ServerProfile.account_id)
            .filter(and_(Account.external_id == external_id, ServerProfile.name == name))
            .first()
        )
        if profile is None or profile.name != name or profile.account.external_id != external_id:
            return None
        return profile

    @handle_store_errors()
    def get_profile_with_token(
        self, external_id: str, name: str, token: Optional[str]
    ) -> Optional[ServerProfile]:
        """
        Full profile record only when ``token`` equals the stored token.

        An empty or missing token never matches, not even an unset stored token.
        """
        if not token:
            return None
        profile = (
            self.session.query(ServerProfile)
            .join(Account, Account.id == ServerProfile.account_id)
            .filter(
                and_(
                    Account.external_id == external_id,
                    ServerProfile.name == name,
                    ServerProfile.token.isnot(None),
                    ServerProfile.token == token,
                )
            )
            .first()
        )
        if profile is None or profile.token != token:
            return None
        return profile

    @handle_store_errors()
    def get_account_token(self, account: Account) -> Optional[str]:
        """Current account-scoped token, or None if none was ever issued."""
        row = (
            self.session.query(ServerProfile.token)
            .filter(
                and_(ServerProfile.account_id == account.id, ServerProfile.token.isnot(None))
            )
            .order_by(ServerProfile.id)
            .first()
        )
        return row[0] if row else None

    @handle_store_errors()
    def count_profiles(self, account: Account) -> int:
        return self.session.query(ServerProfile).filter(ServerProfile.account_id == account.id).count()

    # ==================== MUTATIONS ====================

    @operation()
    @handle_store_errors()
    def add_profile(self, external_id: str, profile_create: ServerProfileCreate) -> ServerProfile:
        """
        Insert a new server profile for an existing account.

        Raises:
            AccountNotFoundError: If the account does not exist
            DuplicateProfileError: If (account, name) already exists
        """
        account = self.require_account(external_id)

        if self.get_profile(external_id, profile_create.name) is not None:
            raise DuplicateProfileError(
                f"Server '{profile_create.name}' already exists",
                external_id=external_id,
                name=profile_create.name,
            )

        profile = ServerProfile(
            account_id=account.id,
            name=profile_create.name,
            host=profile_create.host,
            username=profile_create.username,
            port=profile_create.port,
            ssh_key=profile_create.ssh_key,
            auth_key=profile_create.auth_key,
            token=self.get_account_token(account),
        )
        self.session.add(profile)
        try:
            self.session.flush()
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateProfileError(
                f"Server '{profile_create.name}' already exists",
                cause=e,
                external_id=external_id,
                name=profile_create.name,
            ) from e

        self.logger.info(
            "Server profile added",
            extra={"profile_id": profile.id, "external_id": external_id, "name": profile.name},
        )
        return profile

    @operation()
    @handle_store_errors()
    def set_auth_key(self, external_id: str, name: str, auth_key: str) -> ServerProfile:
        """
        Replace a profile's auth key. Applying the same value again is a no-op.

        Raises:
            ProfileNotFoundError: If (account, name) does not exist
        """
        profile = self.get_profile(external_id, name)
        if profile is None:
            raise ProfileNotFoundError(external_id=external_id, name=name)

        if profile.auth_key != auth_key:
            profile.auth_key = auth_key
            self.session.flush()

        self.logger.info("Auth key set", extra={"profile_id": profile.id, "name": name})
        return profile

    @operation()
    @handle_store_errors()
    def set_account_token(self, external_id: str, token: str) -> int:
        """
        Replace the token on every profile of the account in one statement.

        Returns:
            Number of profile rows updated

        Raises:
            AccountNotFoundError: If the account does not exist
        """
        account = self.require_account(external_id)
        updated = (
            self.session.query(ServerProfile)
            .filter(ServerProfile.account_id == account.id)
            .update(
                {ServerProfile.token: token, ServerProfile.updated_at: utc_now()},
                synchronize_session="fetch",
            )
        )
        self.session.flush()

        self.logger.info(
            "Account token replaced", extra={"external_id": external_id, "profiles": updated}
        )
        return updated

    @operation()
    @handle_store_errors()
    def delete_profile(self, external_id: str, name: str) -> bool:
        """
        Delete a profile.

        Returns:
            True if the profile was deleted, False if it did not exist
        """
        profile = self.get_profile(external_id, name)
        if profile is None:
            self.logger.debug(
                "No server profile found to delete",
                extra={"external_id": external_id, "name": name},
            )
            return False

        self.session.delete(profile)
        self.session.flush()

        self.logger.info(
            "Server profile deleted", extra={"external_id": external_id, "name": name}
        )
        return True
