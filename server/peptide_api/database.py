"""SQLite connection manager and schema for the peptide tracker."""
import sqlite3
from contextlib import contextmanager
from typing import Generator
import logging

from .config import get_settings

log = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    external_id TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL,
    preferences TEXT NOT NULL DEFAULT '{}',
    notification_preferences TEXT,
    subscription_tier TEXT NOT NULL DEFAULT 'free',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS peptide_templates (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    category TEXT NOT NULL,
    typical_dose_range TEXT NOT NULL,
    safety_notes TEXT NOT NULL DEFAULT '[]',
    content_id TEXT,
    description TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS peptides (
    id TEXT PRIMARY KEY,
    user_id TEXT REFERENCES users(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    is_custom INTEGER NOT NULL DEFAULT 1,
    category TEXT NOT NULL,
    typical_dose_range TEXT NOT NULL,
    safety_notes TEXT NOT NULL DEFAULT '[]',
    content_id TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS protocols (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    peptide_id TEXT NOT NULL REFERENCES peptides(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    weekly_target REAL,
    daily_target REAL,
    schedule_type TEXT NOT NULL,
    schedule_config TEXT NOT NULL DEFAULT '{}',
    start_date TEXT NOT NULL,
    end_date TEXT,
    is_template INTEGER NOT NULL DEFAULT 0,
    template_name TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS protocol_templates (
    id TEXT PRIMARY KEY,
    peptide_id TEXT,
    name TEXT NOT NULL,
    weekly_target REAL,
    daily_target REAL,
    schedule_type TEXT NOT NULL,
    schedule_config TEXT NOT NULL DEFAULT '{}',
    template_name TEXT,
    peptide_name TEXT,
    peptide_category TEXT
);

CREATE TABLE IF NOT EXISTS injections (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    peptide_id TEXT NOT NULL REFERENCES peptides(id) ON DELETE CASCADE,
    dose REAL NOT NULL CHECK (dose > 0),
    dose_unit TEXT NOT NULL,
    injection_site TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    notes TEXT,
    protocol_id TEXT REFERENCES protocols(id) ON DELETE SET NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_injections_user_time ON injections (user_id, timestamp);

CREATE TABLE IF NOT EXISTS alerts (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    alert_type TEXT NOT NULL,
    severity TEXT NOT NULL,
    title TEXT NOT NULL,
    message TEXT NOT NULL,
    action_text TEXT,
    action_url TEXT,
    metadata TEXT NOT NULL DEFAULT '{}',
    is_read INTEGER NOT NULL DEFAULT 0,
    is_dismissed INTEGER NOT NULL DEFAULT 0,
    expires_at TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_alerts_user_type ON alerts (user_id, alert_type);

CREATE TABLE IF NOT EXISTS wellness_metrics (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    metric_type TEXT NOT NULL,
    value REAL NOT NULL,
    unit TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    notes TEXT,
    injection_id TEXT REFERENCES injections(id) ON DELETE SET NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class DatabaseManager:
    """
    SQLite database manager for the tracker tables.
    Every store call opens its own short-lived connection.
    """

    def __init__(self, settings=None, db_path: str | None = None):
        self.settings = settings or get_settings()
        self.db_path = db_path or self.settings.database_path

    @contextmanager
    def connect(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Get a read-write connection.
        Commits when the block exits cleanly, rolls back otherwise.
        """
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row  # Enable dict-like row access
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_schema(self) -> None:
        """Create tables and indexes if they do not exist yet."""
        with self.connect() as conn:
            conn.executescript(SCHEMA)
        log.info("Database schema ready at %s", self.db_path)


# Singleton instance
db_manager = DatabaseManager()
