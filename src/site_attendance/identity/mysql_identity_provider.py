from __future__ import annotations

import secrets
import uuid
from typing import Optional

from ..common.datetime_utils import utcnow
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import IssuedSession, Principal, PrincipalPage
from .provider import IdentityProvider


class MySQLIdentityProvider(IdentityProvider):
    """Anonymous principals with refresh tokens, kept in MySQL."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_principals(self, page_size: int, page_token: Optional[str] = None) -> PrincipalPage:
        if page_size <= 0:
            raise ValueError("page_size must be positive")

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT principal_id, is_anonymous, created_at, tokens_valid_after
                FROM principals
                WHERE principal_id > %s
                ORDER BY principal_id
                LIMIT %s
                """,
                (page_token or "", int(page_size) + 1),
            )
            rows = fetchall(cur)

        has_more = len(rows) > page_size
        rows = rows[:page_size]
        principals = [
            Principal(
                principal_id=r["principal_id"],
                is_anonymous=bool(r["is_anonymous"]),
                created_at=r.get("created_at"),
                tokens_valid_after=r.get("tokens_valid_after"),
            )
            for r in rows
        ]
        next_token = principals[-1].principal_id if has_more and principals else None
        return PrincipalPage(principals=principals, next_page_token=next_token)

    def revoke_sessions(self, principal_id: str) -> None:
        now = utcnow().replace(tzinfo=None)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM refresh_tokens WHERE principal_id=%s", (principal_id,))
            cur.execute(
                "UPDATE principals SET tokens_valid_after=%s WHERE principal_id=%s",
                (now, principal_id),
            )

    def sign_in_anonymously(self) -> IssuedSession:
        now = utcnow().replace(tzinfo=None)
        principal_id = uuid.uuid4().hex
        token = secrets.token_urlsafe(48)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO principals(principal_id, is_anonymous, created_at) VALUES(%s, 1, %s)",
                (principal_id, now),
            )
            cur.execute(
                "INSERT INTO refresh_tokens(token, principal_id, issued_at) VALUES(%s,%s,%s)",
                (token, principal_id, now),
            )
        return IssuedSession(principal_id=principal_id, refresh_token=token)

    def is_session_valid(self, principal_id: str, refresh_token: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS ok FROM refresh_tokens WHERE principal_id=%s AND token=%s",
                (principal_id, refresh_token),
            )
            return fetchone(cur) is not None
