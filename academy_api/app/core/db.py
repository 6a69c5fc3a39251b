"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), short auto-committing cursors (``get_cursor``),
atomic multi-statement units of work (``transaction``) and applying
migrations on application start (``init_db``).

Every invariant-bearing domain operation runs inside ``transaction``.
It opens the transaction with ``BEGIN IMMEDIATE``, which takes the
database write lock before the first read, so a check followed by a
write cannot interleave with another writer doing the same.
"""

import logging
import os
import sqlite3
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import settings

logger = logging.getLogger(__name__)


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / db_url).resolve())


def new_id() -> str:
    """Return a fresh opaque identifier for a row."""
    return str(uuid.uuid4())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` so columns can be accessed by
    name.  Foreign key enforcement is switched on for the lifetime of
    the connection (SQLite disables it by default).
    """
    conn = sqlite3.connect(get_database_path(), timeout=settings.database_timeout)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection()
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


@contextmanager
def transaction() -> Iterator[sqlite3.Cursor]:
    """Run a block of statements as one atomic, write-locked transaction.

    Commits when the block exits normally; rolls back and re-raises on
    any exception so a partially applied sequence is never visible.
    """
    conn = get_connection()
    # Manage BEGIN/COMMIT ourselves instead of sqlite3's implicit transactions.
    conn.isolation_level = None
    try:
        conn.execute("BEGIN IMMEDIATE")
        cursor = conn.cursor()
        try:
            yield cursor
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")
    finally:
        conn.close()


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: base schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS teachers (
            id TEXT PRIMARY KEY,
            full_name TEXT NOT NULL,
            email TEXT,
            phone TEXT,
            belt TEXT,
            belt_degree INTEGER,
            status TEXT NOT NULL DEFAULT 'active',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            username TEXT NOT NULL UNIQUE,
            email TEXT,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL CHECK (role IN ('admin', 'teacher', 'receptionist')),
            teacher_id TEXT,
            status TEXT NOT NULL DEFAULT 'active',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(teacher_id) REFERENCES teachers(id)
        );

        CREATE TABLE IF NOT EXISTS students (
            id TEXT PRIMARY KEY,
            full_name TEXT NOT NULL,
            birth_date TEXT,
            email TEXT,
            phone TEXT,
            belt TEXT,
            belt_degree INTEGER CHECK (belt_degree IS NULL OR belt_degree BETWEEN 0 AND 10),
            monthly_fee REAL,
            enrollment_date TEXT NOT NULL DEFAULT (date('now')),
            status TEXT NOT NULL DEFAULT 'active',
            username TEXT UNIQUE,
            password_hash TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS classes (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT,
            teacher_id TEXT,
            day_of_week INTEGER NOT NULL,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            max_students INTEGER NOT NULL CHECK (max_students > 0),
            belt_requirement TEXT,
            age_group TEXT,
            status TEXT NOT NULL DEFAULT 'active',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(teacher_id) REFERENCES teachers(id)
        );

        CREATE TABLE IF NOT EXISTS student_classes (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL,
            class_id TEXT NOT NULL,
            enrollment_date TEXT NOT NULL DEFAULT (date('now')),
            status TEXT NOT NULL DEFAULT 'active',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(student_id) REFERENCES students(id) ON DELETE CASCADE,
            FOREIGN KEY(class_id) REFERENCES classes(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS belt_promotions (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL,
            promoted_by TEXT,
            previous_belt TEXT,
            previous_degree INTEGER,
            new_belt TEXT NOT NULL,
            new_degree INTEGER NOT NULL CHECK (new_degree BETWEEN 0 AND 10),
            promotion_date TEXT NOT NULL,
            promotion_type TEXT NOT NULL DEFAULT 'regular',
            notes TEXT,
            certificate_url TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(student_id) REFERENCES students(id) ON DELETE CASCADE,
            FOREIGN KEY(promoted_by) REFERENCES users(id) ON DELETE SET NULL
        );

        CREATE TABLE IF NOT EXISTS payments (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL,
            amount REAL NOT NULL,
            due_date TEXT NOT NULL,
            payment_date TEXT,
            payment_method TEXT,
            status TEXT NOT NULL DEFAULT 'pending',
            reference_month TEXT NOT NULL,
            discount REAL NOT NULL DEFAULT 0,
            late_fee REAL NOT NULL DEFAULT 0,
            notes TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(student_id) REFERENCES students(id) ON DELETE CASCADE
        );
        """,
    ),
    # Migration 2: uniqueness backing the enrollment and billing pre-checks,
    # plus lookup indices.
    (
        2,
        """
        CREATE UNIQUE INDEX IF NOT EXISTS uq_student_classes_pair
            ON student_classes(student_id, class_id);
        CREATE UNIQUE INDEX IF NOT EXISTS uq_payments_student_month
            ON payments(student_id, reference_month);
        CREATE INDEX IF NOT EXISTS idx_student_classes_class ON student_classes(class_id, status);
        CREATE INDEX IF NOT EXISTS idx_belt_promotions_student
            ON belt_promotions(student_id, promotion_date);
        CREATE INDEX IF NOT EXISTS idx_payments_reference_month ON payments(reference_month);
        """,
    ),
]


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any newer entries of
    ``MIGRATIONS`` in order.  Seeds the bootstrap admin account when
    configured and no staff user exists yet.
    """
    with get_cursor() as cursor:
        cursor.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
        cursor.execute("SELECT MAX(version) AS version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                current_version = version
                logger.info("Applied migration %s", version)

        if settings.admin_username and settings.admin_password:
            count = cursor.execute("SELECT COUNT(*) AS count FROM users").fetchone()["count"]
            if count == 0:
                from .security import hash_password

                cursor.execute(
                    "INSERT INTO users (id, username, password_hash, role) VALUES (?, ?, ?, 'admin')",
                    (new_id(), settings.admin_username, hash_password(settings.admin_password)),
                )
                logger.info("Seeded bootstrap admin account %s", settings.admin_username)
