from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

from ..core.constants import BATCH_LIMIT
from ..core.exceptions import DocumentNotFound
from .connection import DatabaseConnection
from .mysql_base import db_cursor, fetchall, fetchone
from .store import Document, DocumentStore, WriteBatch, WriteOp, apply_patch, new_document_id


def _json_path(field: str) -> str:
    return '$."' + field.replace('"', '\\"') + '"'


def _to_document(row: Dict[str, Any]) -> Document:
    data = row["data"]
    if isinstance(data, (bytes, bytearray)):
        data = data.decode("utf-8")
    if isinstance(data, str):
        data = json.loads(data)
    return Document(id=row["doc_id"], data=data)


class MySQLWriteBatch(WriteBatch):
    def __init__(self, conn_factory: DatabaseConnection, *, limit: int = BATCH_LIMIT):
        super().__init__(limit=limit)
        self._conn_factory = conn_factory

    def _commit(self, ops: Sequence[WriteOp]) -> None:
        # One transaction per batch; any failure rolls back every op.
        with db_cursor(self._conn_factory) as (_, cur):
            for op in ops:
                if op.kind == "set":
                    cur.execute(
                        """
                        INSERT INTO documents(collection, doc_id, data)
                        VALUES(%s,%s,%s)
                        ON DUPLICATE KEY UPDATE data=VALUES(data)
                        """,
                        (op.collection, op.doc_id, json.dumps(op.data)),
                    )
                elif op.kind == "update":
                    cur.execute(
                        """
                        SELECT doc_id, data FROM documents
                        WHERE collection=%s AND doc_id=%s
                        FOR UPDATE
                        """,
                        (op.collection, op.doc_id),
                    )
                    row = fetchone(cur)
                    if not row:
                        raise DocumentNotFound(f"{op.collection}/{op.doc_id}")
                    merged = apply_patch(_to_document(row).data, op.data or {})
                    cur.execute(
                        "UPDATE documents SET data=%s WHERE collection=%s AND doc_id=%s",
                        (json.dumps(merged), op.collection, op.doc_id),
                    )
                elif op.kind == "delete":
                    cur.execute(
                        "DELETE FROM documents WHERE collection=%s AND doc_id=%s",
                        (op.collection, op.doc_id),
                    )
                else:
                    raise ValueError(f"Unsupported write op: {op.kind!r}")


class MySQLDocumentStore(DocumentStore):
    """JSON documents in a single ``documents`` table keyed by (collection, doc_id)."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT doc_id, data FROM documents WHERE collection=%s AND doc_id=%s",
                (collection, doc_id),
            )
            row = fetchone(cur)
            return _to_document(row) if row else None

    def list_all(self, collection: str) -> Sequence[Document]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT doc_id, data FROM documents WHERE collection=%s ORDER BY created_at, doc_id",
                (collection,),
            )
            return [_to_document(r) for r in fetchall(cur)]

    def query(self, collection: str, **equals: Any) -> Sequence[Document]:
        clauses: List[str] = ["collection=%s"]
        params: List[object] = [collection]

        for field, value in equals.items():
            path = _json_path(field)
            if value is None:
                clauses.append(
                    "(JSON_EXTRACT(data, %s) IS NULL OR JSON_TYPE(JSON_EXTRACT(data, %s))='NULL')"
                )
                params.extend([path, path])
            else:
                clauses.append("JSON_EXTRACT(data, %s) = CAST(%s AS JSON)")
                params.extend([path, json.dumps(value)])

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT doc_id, data FROM documents WHERE {where} ORDER BY created_at, doc_id",
                tuple(params),
            )
            return [_to_document(r) for r in fetchall(cur)]

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = new_document_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO documents(collection, doc_id, data) VALUES(%s,%s,%s)",
                (collection, doc_id, json.dumps(data)),
            )
        return doc_id

    def batch(self) -> WriteBatch:
        return MySQLWriteBatch(self._conn_factory)
