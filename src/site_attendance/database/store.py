"""Document-store persistence boundary.

Every feature repository talks to a ``DocumentStore``: schemaless JSON
documents grouped in named collections, equality queries, and atomic write
batches capped at ``BATCH_LIMIT`` operations. Larger writes go through
``commit_chunked`` which partitions them and commits the batches concurrently.
"""

from __future__ import annotations

import copy
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, TypeVar

from ..common.concurrency import fan_out
from ..core.constants import BATCH_LIMIT
from ..core.exceptions import BatchTooLarge

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _DeleteField:
    def __repr__(self) -> str:
        return "DELETE_FIELD"


# Sentinel for ``WriteBatch.update``: remove the key instead of setting it.
DELETE_FIELD = _DeleteField()


@dataclass(frozen=True)
class Document:
    id: str
    data: Dict[str, Any]


@dataclass(frozen=True)
class WriteOp:
    kind: str  # "set" | "update" | "delete"
    collection: str
    doc_id: str
    data: Optional[Dict[str, Any]] = None


class WriteBatch(ABC):
    """Collects writes and applies them all-or-nothing on ``commit``."""

    def __init__(self, *, limit: int = BATCH_LIMIT):
        self._limit = int(limit)
        self._ops: List[WriteOp] = []

    def __len__(self) -> int:
        return len(self._ops)

    @property
    def ops(self) -> Sequence[WriteOp]:
        return tuple(self._ops)

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> "WriteBatch":
        self._ops.append(WriteOp("set", collection, doc_id, dict(data)))
        return self

    def update(self, collection: str, doc_id: str, patch: Dict[str, Any]) -> "WriteBatch":
        self._ops.append(WriteOp("update", collection, doc_id, dict(patch)))
        return self

    def delete(self, collection: str, doc_id: str) -> "WriteBatch":
        self._ops.append(WriteOp("delete", collection, doc_id))
        return self

    def extend(self, ops: Iterable[WriteOp]) -> "WriteBatch":
        self._ops.extend(ops)
        return self

    def commit(self) -> None:
        if len(self._ops) > self._limit:
            raise BatchTooLarge(f"batch has {len(self._ops)} ops, limit is {self._limit}")
        if not self._ops:
            return
        self._commit(tuple(self._ops))

    @abstractmethod
    def _commit(self, ops: Sequence[WriteOp]) -> None:
        raise NotImplementedError


class DocumentStore(Protocol):
    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        raise NotImplementedError

    def list_all(self, collection: str) -> Sequence[Document]:
        raise NotImplementedError

    def query(self, collection: str, **equals: Any) -> Sequence[Document]:
        """Documents whose fields equal the given values.

        A ``None`` value matches a missing or null field.
        """

        raise NotImplementedError

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        raise NotImplementedError

    def batch(self) -> WriteBatch:
        raise NotImplementedError


def new_document_id() -> str:
    return uuid.uuid4().hex[:20]


def apply_patch(data: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(data)
    for key, value in patch.items():
        if value is DELETE_FIELD:
            merged.pop(key, None)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def matches(data: Dict[str, Any], equals: Dict[str, Any]) -> bool:
    for key, expected in equals.items():
        if expected is None:
            if data.get(key) is not None:
                return False
        elif key not in data or data[key] != expected:
            return False
    return True


def chunk(items: Sequence[T], size: int = BATCH_LIMIT) -> List[List[T]]:
    if size <= 0:
        raise ValueError("chunk size must be positive")
    items = list(items)
    return [items[i : i + size] for i in range(0, len(items), size)]


@dataclass
class ChunkedCommitResult:
    committed_ops: int = 0
    failed_ops: int = 0
    batches: int = 0
    failed_batches: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed_batches == 0


def commit_chunked(
    store: DocumentStore,
    ops: Sequence[WriteOp],
    *,
    max_workers: int,
    timeout: Optional[float] = None,
    batch_size: int = BATCH_LIMIT,
) -> ChunkedCommitResult:
    """Split ``ops`` into atomic batches of at most ``batch_size`` and commit them concurrently.

    Batches are independent: a failed batch leaves the others committed, so a
    rerun only has to redo what is still there.
    """

    chunks = chunk(ops, batch_size)
    result = ChunkedCommitResult(batches=len(chunks))
    if not chunks:
        return result

    def _commit(chunk_ops: List[WriteOp]) -> int:
        batch = store.batch()
        batch.extend(chunk_ops)
        batch.commit()
        return len(chunk_ops)

    outcome = fan_out(_commit, chunks, max_workers=max_workers, timeout=timeout)
    for _, count in outcome.succeeded:
        result.committed_ops += count
    for chunk_ops, exc in outcome.failed:
        result.failed_batches += 1
        result.failed_ops += len(chunk_ops)
        result.errors.append(f"{type(exc).__name__}: {exc}")
        logger.warning("batch of %d ops failed: %s", len(chunk_ops), exc)
    return result
