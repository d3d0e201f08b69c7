import os
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_config
from ..constants import EnvironmentVariable
from ..exceptions import DbConnectionError, ErrorCode, ValidationError
from ..utils import get_logger

# Base class for all SQLAlchemy models
Base: Any = declarative_base()

_DEFAULT_PORTS = {"mysql": "3306", "postgres": "5432"}


class DatabaseConfig(BaseModel):
    db_type: str = "sqlite"
    database: str = ":memory:"
    host: Optional[str] = None
    port: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    url: Optional[str] = None
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    echo: bool = False

    def get_connection_string(self) -> str:
        if self.url:
            return self.url

        db_type = self.db_type.lower()
        if db_type == "sqlite":
            return f"sqlite:///{self.database}"
        if db_type in _DEFAULT_PORTS:
            if not all([self.host, self.database, self.username]):
                raise ValidationError(
                    f"Missing required {db_type} configuration parameters",
                    error_code=ErrorCode.MISSING_REQUIRED,
                    field="database_config",
                    value={"host": self.host, "database": self.database, "username": self.username},
                )
            driver = "mysql+pymysql" if db_type == "mysql" else "postgresql"
            port = self.port or _DEFAULT_PORTS[db_type]
            return (
                f"{driver}://{self.username}:{self.password or ''}@"
                f"{self.host}:{port}/{self.database}"
            )
        raise ValidationError(
            f"Unsupported database type: {self.db_type}",
            error_code=ErrorCode.INVALID_FORMAT,
            field="db_type",
            value=self.db_type,
        )

    @property
    def is_sqlite(self) -> bool:
        return self.get_connection_string().startswith("sqlite")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __repr__(self) -> str:
        """String representation with masked password for security."""
        return (
            f"DatabaseConfig("
            f"db_type='{self.db_type}', "
            f"host='{self.host}', "
            f"port='{self.port}', "
            f"database='{self.database}', "
            f"username='{self.username}', "
            f"password='***')"
        )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """
    Owns the engine and session factory for a single command invocation.

    There is no module-level manager: callers create one, pass sessions into
    the services, and dispose of it when the invocation ends.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine = self._create_engine()
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def _create_engine(self):
        # Bound parameters carry tokens and auth keys; keep them out of error text
        connection_string = self.config.get_connection_string()
        if self.config.is_sqlite:
            engine_kwargs: dict = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in connection_string or connection_string == "sqlite://":
                # One shared connection so every session sees the same in-memory database
                engine_kwargs["poolclass"] = StaticPool
            engine = create_engine(
                connection_string, echo=self.config.echo, hide_parameters=True, **engine_kwargs
            )
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
            return engine
        return create_engine(
            connection_string,
            echo=self.config.echo,
            hide_parameters=True,
            pool_size=self.config.pool_size,
            max_overflow=self.config.max_overflow,
            pool_timeout=self.config.pool_timeout,
            pool_pre_ping=True,
        )

    def check_connection(self) -> None:
        """
        Verify the store is reachable before any operation runs.

        Raises:
            DbConnectionError: If a connection cannot be opened
        """
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise DbConnectionError(
                "DB connection failed", cause=e, db_type=self.config.db_type
            ) from e

    def create_tables(self) -> None:
        import_all_models()
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Provide a transactional session for one operation.

        Commits on success, rolls back on any exception and always closes.
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        self.engine.dispose()

    def __enter__(self) -> "DatabaseManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def get_database_config(url: Optional[str] = None) -> DatabaseConfig:
    """
    Build the database configuration from the environment.

    Precedence: explicit ``url``, then ``DB_TYPE`` with the ``DB_*`` variables,
    then ``DATABASE_URL`` (via the application config).
    """
    app_config = get_config()
    if url:
        return DatabaseConfig(url=url, echo=app_config.database.echo)

    db_type = os.environ.get(EnvironmentVariable.DB_TYPE.value)
    if db_type:
        return DatabaseConfig(
            db_type=db_type,
            host=os.environ.get(EnvironmentVariable.DB_HOST.value, "localhost"),
            port=os.environ.get(EnvironmentVariable.DB_PORT.value),
            database=os.environ.get(EnvironmentVariable.DB_NAME.value, "ssh_manage"),
            username=os.environ.get(EnvironmentVariable.DB_USER.value),
            password=os.environ.get(EnvironmentVariable.DB_PASSWORD.value, ""),
            echo=app_config.database.echo,
        )

    return DatabaseConfig(
        url=app_config.database.connection_string, echo=app_config.database.echo
    )


def import_all_models():
    """Import all models to ensure they're registered with SQLAlchemy metadata."""
    from sqlalchemy.orm import configure_mappers

    from .db_account_models import Account  # noqa
    from .db_server_models import ServerProfile  # noqa

    configure_mappers()


def init_db(db_manager: DatabaseManager) -> None:
    """
    Initialize the database, creating all tables.

    Args:
        db_manager: DatabaseManager instance to use for table creation
    """
    get_logger().info("Initializing DB")
    db_manager.create_tables()
