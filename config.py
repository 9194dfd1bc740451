from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
import streamlit as st
import os
import threading
from contextlib import suppress
from typing import Optional

from logging_config import setup_logging

logger = setup_logging(__name__)

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))

# =============================================================================
# Database Configuration
# =============================================================================

# Serializes engine creation within the process
_ENGINE_LOCK = threading.Lock()


def get_settings() -> dict:
    from settings_service import SettingsService

    return SettingsService().settings_dict


def _secret_db_url() -> Optional[str]:
    """Hosted database URL from .streamlit/secrets.toml [db].url, if configured."""
    try:
        return st.secrets["db"]["url"]
    except (KeyError, AttributeError, FileNotFoundError):
        return None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseConfig:
    """
    Connection settings and the shared SQLAlchemy engine for one database.

    The URL is resolved in order: explicit url argument, st.secrets [db].url,
    then the local SQLite file from settings.toml [db].path.
    """

    # Shared engines per URL to avoid multiple pools on the same file
    _engines: dict[str, Engine] = {}

    def __init__(self, url: Optional[str] = None, alias: str = "pricing"):
        self.alias = alias
        if url is None:
            url = _secret_db_url()
        if url is None:
            path = get_settings()["db"]["path"]
            if not os.path.isabs(path):
                path = os.path.join(PROJECT_ROOT, path)
            url = f"sqlite:///{path}"
        self.url = url

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def path(self) -> Optional[str]:
        """Filesystem path of a SQLite database, None for other backends."""
        if not self.is_sqlite:
            return None
        return self.url.split(":///", 1)[-1] or None

    @property
    def engine(self) -> Engine:
        eng = DatabaseConfig._engines.get(self.url)
        if eng is not None:
            return eng
        with _ENGINE_LOCK:
            eng = DatabaseConfig._engines.get(self.url)
            if eng is None:
                if self.is_sqlite:
                    eng = create_engine(self.url, connect_args={"check_same_thread": False})
                    event.listen(eng, "connect", _enable_sqlite_foreign_keys)
                else:
                    eng = create_engine(self.url, pool_pre_ping=True)
                DatabaseConfig._engines[self.url] = eng
                logger.info(f"Created engine for {self.alias} ({self.url.split('://')[0]})")
        return eng

    def dispose(self) -> None:
        """Dispose the shared engine so the next access creates a fresh one."""
        eng = DatabaseConfig._engines.pop(self.url, None)
        if eng is not None:
            with suppress(Exception):
                eng.dispose()

    def integrity_check(self) -> bool:
        """Run PRAGMA integrity_check on a SQLite database.

        Returns True if the result is 'ok', False otherwise or on error.
        Non-SQLite backends are assumed healthy.
        """
        if not self.is_sqlite:
            return True
        try:
            with self.engine.connect() as conn:
                result = conn.execute(text("PRAGMA integrity_check")).fetchone()
                logger.debug(f"integrity_check() result: {result}")
            status = str(result[0]).lower() if result and result[0] is not None else ""
            return status == "ok"
        except Exception as e:
            logger.error(f"Integrity check error ({self.alias}): {e}")
            return False

    def get_table_list(self) -> list[str]:
        from sqlalchemy import inspect

        return [name for name in inspect(self.engine).get_table_names() if "sqlite" not in name]

    def get_table_columns(self, table_name: str, full_info: bool = False) -> list:
        """
        Get column information for a specific table.

        Args:
            table_name: Name of the table to inspect
            full_info: If True, return dicts with name, type, nullable, default

        Returns:
            List of column names, or of column info dictionaries
        """
        from sqlalchemy import inspect

        columns = inspect(self.engine).get_columns(table_name)
        if full_info:
            return [
                {
                    "name": col["name"],
                    "type": str(col["type"]),
                    "nullable": col["nullable"],
                    "default": col.get("default"),
                }
                for col in columns
            ]
        return [col["name"] for col in columns]


if __name__ == "__main__":
    pass
