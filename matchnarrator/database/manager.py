"""
Database Manager
Datenbankverbindung, Sessions und Schemaverwaltung mit SQLAlchemy
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from sqlalchemy import create_engine, event, make_url, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from matchnarrator.core.config import Settings
from matchnarrator.database.schema import Base


def normalize_database_url(database_url: str) -> str:
    """Maps async driver URLs onto the sync drivers used by the engine."""
    if "+asyncpg" in database_url:
        database_url = database_url.replace("+asyncpg", "+psycopg2")
    if "+aiosqlite" in database_url:
        database_url = database_url.replace("+aiosqlite", "")
    return database_url


class DatabaseManager:
    """Datenbankverwaltung mit SQLAlchemy (sync Engine + SessionFactory)"""

    def __init__(self, database_url: Optional[str] = None, *, settings: Optional[Settings] = None):
        if settings is None:
            from matchnarrator.core.config import settings as default_settings

            settings = default_settings
        self.settings = settings
        self.database_url = normalize_database_url(database_url or settings.database_url)
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None
        self.logger = logging.getLogger(__name__)

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def is_memory_sqlite(self) -> bool:
        return self.is_sqlite and make_url(self.database_url).database in (None, "", ":memory:")

    def initialize(self) -> None:
        """Initialisiert Engine und SessionFactory"""
        try:
            if self.is_memory_sqlite:
                # in-memory databases must share one connection across threads
                self.engine = create_engine(
                    self.database_url,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                    echo=self.settings.database_echo,
                )
                event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
            elif self.is_sqlite:
                # file databases: one connection per session
                self.engine = create_engine(
                    self.database_url,
                    connect_args={"check_same_thread": False},
                    echo=self.settings.database_echo,
                )
                event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
            else:
                self.engine = create_engine(
                    self.database_url,
                    poolclass=QueuePool,
                    pool_size=self.settings.database_pool_size,
                    pool_pre_ping=True,
                    echo=self.settings.database_echo,
                )
            self.SessionLocal = sessionmaker(
                bind=self.engine, autoflush=False, expire_on_commit=False
            )
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            self.logger.info("Database engine initialized (%s)", self.engine.url.get_backend_name())
        except Exception as e:
            self.logger.error(f"Failed to initialize database: {e}")
            self.engine = None
            self.SessionLocal = None
            raise

    def get_session(self) -> Session:
        """Gibt eine neue SQLAlchemy Session zurück"""
        if not self.SessionLocal:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session mit Commit bei Erfolg und Rollback bei Fehlern"""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        """Erstellt alle Tabellen"""
        if not self.engine:
            raise RuntimeError("Database not initialized")

        Base.metadata.create_all(bind=self.engine)
        self.logger.info("Database tables created")

    def drop_tables(self) -> None:
        """Löscht alle Tabellen (Vorsicht!)"""
        if not self.engine:
            raise RuntimeError("Database not initialized")

        Base.metadata.drop_all(bind=self.engine)
        self.logger.warning("All database tables dropped")

    def health_check(self) -> dict[str, Any]:
        """Führt einen Gesundheitscheck der Datenbank durch"""
        try:
            with self.get_session() as session:
                session.execute(text("SELECT 1"))
            return {"database": "healthy", "backend": self.engine.url.get_backend_name()}
        except Exception as e:
            self.logger.error(f"Database health check failed: {e}")
            return {"database": "unhealthy", "error": str(e)}

    def close(self) -> None:
        """Schließt alle Datenbankverbindungen"""
        if self.engine:
            self.engine.dispose()
            self.logger.info("Database engine disposed")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
