"""
Test fixtures for the server registry.

This module provides shared test fixtures including database setup,
service wiring and common test data.
"""

import pytest
from sqlalchemy.orm import Session

from ssh_manage.config import reset_config
from ssh_manage.constants import EnvironmentVariable
from ssh_manage.db import DatabaseConfig, DatabaseManager, import_all_models
from ssh_manage.db.db_config import Base
from ssh_manage.exceptions import clear_correlation_id
from ssh_manage.utils.logger import reset_logging
from tests.fixtures.factories import AccountFactory, ServerProfileFactory, configure_factories


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Each test starts from an empty environment and fresh globals."""
    for variable in EnvironmentVariable:
        monkeypatch.delenv(variable.value, raising=False)
    reset_config()
    reset_logging()
    clear_correlation_id()
    yield
    reset_config()
    reset_logging()
    clear_correlation_id()


@pytest.fixture(scope="session")
def db_config() -> DatabaseConfig:
    """SQLite in-memory database configuration for testing."""
    return DatabaseConfig(db_type="sqlite", database=":memory:", echo=False)


@pytest.fixture(scope="session")
def db_manager(db_config: DatabaseConfig) -> DatabaseManager:
    """Database manager with all models registered."""
    import_all_models()
    manager = DatabaseManager(db_config)
    yield manager
    manager.close()


@pytest.fixture(scope="function")
def db_session(db_manager: DatabaseManager) -> Session:
    """
    Create a database session for each test.

    Tables are created before and dropped after every test so that each
    test sees an empty registry.
    """
    Base.metadata.create_all(db_manager.engine)
    session = db_manager.get_session()
    configure_factories(session)

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(db_manager.engine)


# ==================== SERVICE FIXTURES ====================


@pytest.fixture
def store(db_session):
    """Credential store bound to the test session."""
    from ssh_manage.services import CredentialStore

    return CredentialStore(db_session)


@pytest.fixture
def token_authority(store):
    from ssh_manage.services import TokenAuthority

    return TokenAuthority(store)


@pytest.fixture
def gate(store, token_authority):
    from ssh_manage.services import DisclosureGate

    return DisclosureGate(store, token_authority=token_authority)


@pytest.fixture
def probe_config():
    """Probe configuration that never touches the real check script."""
    from ssh_manage.config import ProbeConfig

    return ProbeConfig(command=["/usr/local/bin/ssh_check"], timeout_seconds=5)


@pytest.fixture
def prober(store, probe_config):
    from ssh_manage.services import ReachabilityProber

    return ReachabilityProber(store, config=probe_config)


# ==================== TEST DATA ====================


@pytest.fixture
def account(db_session):
    """Standard account used across tests."""
    return AccountFactory.create(external_id="acct-1", display_name="Test Account")


@pytest.fixture
def web1(account):
    """The account's first server, with an issued token."""
    return ServerProfileFactory.create(
        account=account,
        name="web1",
        host="10.0.0.5",
        username="root",
        port=22,
        ssh_key="/keys/a",
        auth_key="K",
        token="abc",
    )
