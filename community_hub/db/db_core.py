"""Core database functionality and configuration.

This module provides database management with environment-aware
configuration, connection pooling, and transactional session handling.
"""

from contextlib import contextmanager
import logging
from pathlib import Path
from typing import Optional, Dict, Any, Generator
import os

from sqlalchemy import create_engine, event, Engine, inspect
from sqlalchemy.exc import DisconnectionError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import scoped_session, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..config.environment import IS_PRODUCTION_ENVIRONMENT
from ..errors import EngineError, StoreError
from ..models import Base

logger = logging.getLogger(__name__)

DEFAULT_SQLITE_PATH = Path(__file__).parent.parent.parent / 'data' / 'community.db'

class DatabaseConfig:
    """Database configuration settings."""

    def __init__(
        self,
        url: Optional[str] = None,
        sqlite_path: Optional[Path] = None,
        echo: bool = False,
        pool_size: int = 3,
        max_overflow: int = 4,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        pool_pre_ping: bool = True
    ):
        """
        Initialize database configuration.

        An explicit url always wins. Otherwise production reads DATABASE_URL
        and development uses a SQLite file (SQLITE_PATH or data/community.db).

        Args:
            url: Full SQLAlchemy URL, e.g. 'sqlite://' for an in-memory store
            sqlite_path: Path to SQLite database file (for development)
            echo: Whether to echo SQL statements
            pool_size: Size of the connection pool (permanent connections)
            max_overflow: Maximum number of extra connections to allow temporarily
            pool_timeout: Seconds to wait for an available connection
            pool_recycle: Seconds before connections are recycled (prevent stale)
            pool_pre_ping: Whether to ping connections before using them

        Raises:
            ValueError: If in production environment and no database URL is provided
        """
        if url:
            self.url = url
        elif IS_PRODUCTION_ENVIRONMENT:
            self.url = os.environ.get('DATABASE_URL')
            if not self.url:
                raise ValueError(
                    "Database URL must be provided either via the url parameter "
                    "or DATABASE_URL environment variable when in production environment"
                )
        else:
            path = sqlite_path or os.environ.get('SQLITE_PATH') or DEFAULT_SQLITE_PATH
            self.url = f"sqlite:///{path}"

        self.echo = echo
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_timeout = pool_timeout
        self.pool_recycle = pool_recycle
        self.pool_pre_ping = pool_pre_ping

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith('sqlite')

    @property
    def connection_url(self) -> str:
        """Get the database connection URL."""
        return self.url

    def get_engine_args(self) -> Dict[str, Any]:
        """Get SQLAlchemy engine arguments based on configuration."""
        args = {"echo": self.echo}

        # SQLite-specific configuration
        if self.is_sqlite:
            args["connect_args"] = {"check_same_thread": False}
            args["poolclass"] = StaticPool

        # PostgreSQL-specific configuration
        else:
            args.update({
                "pool_size": self.pool_size,
                "max_overflow": self.max_overflow,
                "pool_timeout": self.pool_timeout,
                "pool_recycle": self.pool_recycle,
                "pool_pre_ping": self.pool_pre_ping
            })

        return args

class DatabaseError(StoreError):
    """Base exception for database-related errors."""
    pass

class ConnectionError(DatabaseError):
    """Raised when there are issues connecting to the database."""
    pass

class SessionError(DatabaseError):
    """Raised when there are issues with database sessions."""
    pass

class TransientStoreError(SessionError):
    """Raised for failures worth retrying (dropped connections, lock timeouts)."""
    pass

def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores foreign keys unless asked per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

class Database:
    """Owns the engine and hands out transactional sessions."""

    def __init__(self, config: Optional[DatabaseConfig] = None):
        self.config = config or DatabaseConfig()
        self.engine: Optional[Engine] = None
        self._session_factory = sessionmaker(expire_on_commit=False)
        self._scoped_session = scoped_session(self._session_factory)
        self._tables_checked = False

        self._setup_engine()

    def _setup_engine(self) -> None:
        """Set up the SQLAlchemy engine."""
        try:
            self.engine = create_engine(
                self.config.connection_url,
                **self.config.get_engine_args()
            )
            if self.config.is_sqlite:
                event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
            self._session_factory.configure(bind=self.engine)
        except Exception as e:
            raise ConnectionError(f"Failed to create database engine: {e}") from e

    def init_db(self) -> None:
        """Initialize the database schema."""
        if not self.engine:
            raise ConnectionError("Database engine not initialized")

        try:
            Base.metadata.create_all(self.engine)
            self._tables_checked = True
            logger.info("Database schema initialized successfully")
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to initialize database schema: {e}") from e

    def ensure_tables_exist(self) -> None:
        """Ensure all required database tables exist."""
        if self._tables_checked:
            return
        if not self.engine:
            raise ConnectionError("Database engine not initialized")

        try:
            existing_tables = set(inspect(self.engine).get_table_names())
            required_tables = set(Base.metadata.tables)

            if not required_tables.issubset(existing_tables):
                logger.info(
                    f"Missing tables {sorted(required_tables - existing_tables)}, "
                    "initializing database schema"
                )
                Base.metadata.create_all(self.engine)
                logger.info("Database schema initialized successfully")

            self._tables_checked = True

        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to verify/create database schema: {e}") from e

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Commits on success and rolls back on any error. Engine errors
        (ValidationError, NotFound, ...) propagate unchanged; SQLAlchemy
        failures are wrapped in SessionError, or TransientStoreError when a
        retry has a chance of succeeding.

        Example:
            with db.session() as session:
                event = session.get(Event, 1)
                event.title = "New Title"
                # No need to call commit - it's handled automatically
        """
        self.ensure_tables_exist()

        session = self._scoped_session()
        try:
            yield session
            session.commit()
        except EngineError:
            session.rollback()
            raise
        except (OperationalError, DisconnectionError) as e:
            session.rollback()
            raise TransientStoreError(f"Database unavailable: {e}") from e
        except SQLAlchemyError as e:
            session.rollback()
            raise SessionError(f"Database session error: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
            self._scoped_session.remove()

    def dispose(self) -> None:
        """Close all pooled connections."""
        if self.engine:
            self.engine.dispose()

# Global database instance with configuration taken from the environment
db = Database()
