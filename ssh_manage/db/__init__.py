"""
SQLAlchemy models and database management for the server registry.
"""

from .db_base import TimestampMixin, utc_now
from .db_config import (
    Base,
    DatabaseConfig,
    DatabaseManager,
    get_database_config,
    import_all_models,
    init_db,
)
from .db_account_models import Account
from .db_server_models import ServerProfile

__all__ = [
    # Base definitions
    "Base",
    "TimestampMixin",
    "utc_now",
    # Configuration
    "DatabaseConfig",
    "DatabaseManager",
    "get_database_config",
    "import_all_models",
    "init_db",
    # Models
    "Account",
    "ServerProfile",
]
