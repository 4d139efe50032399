"""Schema and admin bootstrap for the MySQL backing store.

Used by ``scripts/init_db.py``, ``scripts/seed_db.py`` and by ``create_app``
when ``AUTO_INIT_DB`` is set. Every function is safe to run repeatedly.
"""

from __future__ import annotations

import re
from contextlib import closing
from pathlib import Path
from typing import List, Optional

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig

SCHEMA_PATH = Path(__file__).with_name("schema.sql")

_DB_DIRECTIVE = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b.*?;\s*$")


def schema_statements(sql: str) -> List[str]:
    # The target database comes from DB_CONFIG, not from the file.
    sql = _DB_DIRECTIVE.sub("", sql)
    return [stmt.strip() for stmt in sql.split(";") if stmt.strip()]


def ensure_database_exists(db_config: dict) -> None:
    conn_factory = DatabaseConnection(DBConfig.from_dict(db_config))
    name = conn_factory.config.database
    with closing(conn_factory.connect(with_database=False)) as conn:
        cur = conn.cursor()
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: Optional[str | Path] = None) -> None:
    ensure_database_exists(db_config)
    statements = schema_statements(Path(schema_path or SCHEMA_PATH).read_text(encoding="utf-8"))

    with closing(DatabaseConnection(DBConfig.from_dict(db_config)).connect()) as conn:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()


def ensure_admin(db_config: dict, *, username: str, password: str, full_name: str = "Site Admin") -> None:
    """Create the admin account, or reset its password if it exists."""

    password_hash = generate_password_hash(password)
    with closing(DatabaseConnection(DBConfig.from_dict(db_config)).connect()) as conn:
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO admins (full_name, username, password_hash, role)
            VALUES (%s, %s, %s, 'admin')
            ON DUPLICATE KEY UPDATE full_name=VALUES(full_name), password_hash=VALUES(password_hash), is_active=1
            """,
            (full_name, username, password_hash),
        )
        conn.commit()


def list_tables(db_config: dict) -> List[str]:
    with closing(DatabaseConnection(DBConfig.from_dict(db_config)).connect()) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
