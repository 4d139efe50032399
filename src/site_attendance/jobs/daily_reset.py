"""Daily reset: revoke every session and purge the day's transient collections.

Steps run one after another and are isolated from each other: a step that
raises is recorded as failed and the next step still runs. Each purge commits
independent atomic batches of at most ``BATCH_LIMIT`` deletes, so an
interrupted run can simply be run again. Scheduled and manual triggers share
one job instance, and therefore its per-collection locks.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Tuple

from ..bulletins.model import Bulletin
from ..common.concurrency import fan_out
from ..common.datetime_utils import from_iso, to_iso, utcnow
from ..core.constants import (
    COLLECTION_ATTENDANCE,
    COLLECTION_BULLETINS,
    COLLECTION_CHECKOUT_PROMPTS,
    COLLECTION_EMERGENCY_ALERTS,
    COLLECTION_SITE_STATUS_LOGS,
    DEFAULT_MAX_WORKERS,
    DEFAULT_PRINCIPAL_PAGE_SIZE,
    MALFORMED_BULLETIN_MAX_AGE_DAYS,
)
from ..core.enums import ResetStep, StepStatus
from ..core.exceptions import PartialStepFailure, StoreUnavailable
from ..database.store import Document, DocumentStore, WriteOp, commit_chunked
from ..identity.provider import IdentityProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepResult:
    step: ResetStep
    status: StepStatus
    affected: int = 0
    failed: int = 0
    error: Optional[str] = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == StepStatus.OK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step.value,
            "status": self.status.value,
            "affected": self.affected,
            "failed": self.failed,
            "error": self.error,
            "durationMs": round(self.duration_ms, 2),
        }


@dataclass(frozen=True)
class ResetReport:
    started_at: datetime
    steps: Tuple[StepResult, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return all(s.ok for s in self.steps)

    @property
    def status(self) -> StepStatus:
        if self.ok:
            return StepStatus.OK
        if all(s.status == StepStatus.FAILED for s in self.steps):
            return StepStatus.FAILED
        return StepStatus.PARTIAL

    def step(self, step: ResetStep) -> StepResult:
        for s in self.steps:
            if s.step == step:
                return s
        raise KeyError(step)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startedAt": to_iso(self.started_at),
            "status": self.status.value,
            "steps": [s.to_dict() for s in self.steps],
        }


@dataclass(frozen=True)
class RevocationTally:
    revoked: int
    failed: int


def _parsed_or_none(value: Any) -> Tuple[bool, Optional[datetime]]:
    try:
        return True, from_iso(value)
    except (TypeError, ValueError):
        return False, None


def bulletin_is_exempt(doc: Document, now: datetime) -> bool:
    try:
        return Bulletin.from_document(doc.id, doc.data).is_exempt_from_purge(now)
    except (KeyError, TypeError, ValueError):
        if doc.data.get("isPersistent") is not True:
            logger.warning("bulletin %s has malformed fields; purging", doc.id)
            return False

    readable, expires_at = _parsed_or_none(doc.data.get("expiresAt"))
    if readable:
        logger.warning("persistent bulletin %s has malformed fields; judged by expiresAt", doc.id)
        return expires_at is not None and expires_at > now

    # Unreadable expiry: bounded by createdAt so it cannot outlive the cap.
    _, created_at = _parsed_or_none(doc.data.get("createdAt"))
    max_age = timedelta(days=MALFORMED_BULLETIN_MAX_AGE_DAYS)
    if created_at is None or now - created_at >= max_age:
        logger.warning("persistent bulletin %s has an unreadable expiry and no recent createdAt; purging", doc.id)
        return False

    logger.warning(
        "persistent bulletin %s has an unreadable expiry; kept, needs manual cleanup before %s",
        doc.id,
        to_iso(created_at + max_age),
    )
    return True


class DailyResetJob:
    def __init__(
        self,
        store: DocumentStore,
        identity: IdentityProvider,
        *,
        page_size: int = DEFAULT_PRINCIPAL_PAGE_SIZE,
        max_workers: int = DEFAULT_MAX_WORKERS,
        step_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._store = store
        self._identity = identity
        self._page_size = int(page_size)
        self._max_workers = int(max_workers)
        self._step_timeout = step_timeout
        self._clock = clock
        self._collection_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _lock_for(self, collection: str) -> threading.Lock:
        with self._locks_guard:
            return self._collection_locks[collection]

    def run(self, *, now: datetime | None = None) -> ResetReport:
        now = now or self._clock()
        logger.info("daily reset started")

        steps = (
            (ResetStep.REVOKE_SESSIONS, self._revoke_step),
            (ResetStep.PURGE_ATTENDANCE, lambda: self.purge(COLLECTION_ATTENDANCE)),
            (ResetStep.PURGE_BULLETINS, lambda: self.purge(COLLECTION_BULLETINS, keep=lambda d: bulletin_is_exempt(d, now))),
            (ResetStep.PURGE_EMERGENCY_ALERTS, lambda: self.purge(COLLECTION_EMERGENCY_ALERTS)),
            (ResetStep.PURGE_SWEEP_LOGS, self._purge_sweep_logs),
        )
        report = ResetReport(started_at=now, steps=tuple(self._run_step(step, fn) for step, fn in steps))
        logger.info("daily reset finished: %s", report.status.value)
        return report

    def _run_step(self, step: ResetStep, fn: Callable[[], int]) -> StepResult:
        started = time.monotonic()

        def _elapsed() -> float:
            return (time.monotonic() - started) * 1000

        try:
            affected = fn()
        except PartialStepFailure as exc:
            status = StepStatus.PARTIAL if exc.succeeded else StepStatus.FAILED
            logger.error("reset step %s %s: %s", step.value, status.value, exc)
            return StepResult(step, status, exc.succeeded, exc.failed, str(exc), _elapsed())
        except Exception as exc:
            logger.error("reset step %s failed", step.value, exc_info=True)
            return StepResult(step, StepStatus.FAILED, error=f"{type(exc).__name__}: {exc}", duration_ms=_elapsed())

        logger.info("reset step %s ok: %d affected", step.value, affected)
        return StepResult(step, StepStatus.OK, affected=affected, duration_ms=_elapsed())

    def revoke_all_sessions(self) -> RevocationTally:
        """Page through every principal and revoke its refresh tokens.

        Per-principal failures are logged and counted. A failure to list a page
        propagates, unless some principals were already revoked, in which case
        it becomes a ``PartialStepFailure``.
        """

        revoked = failed = 0
        page_token: Optional[str] = None
        while True:
            try:
                page = self._identity.list_principals(self._page_size, page_token)
            except Exception as exc:
                if revoked:
                    raise PartialStepFailure(
                        f"listing principals failed after {revoked} revocations: {exc}",
                        succeeded=revoked,
                        failed=failed,
                    ) from exc
                raise

            outcome = fan_out(
                lambda p: self._identity.revoke_sessions(p.principal_id),
                page.principals,
                max_workers=self._max_workers,
                timeout=self._step_timeout,
            )
            revoked += len(outcome.succeeded)
            failed += len(outcome.failed)
            for principal, exc in outcome.failed:
                logger.warning("revoking sessions of %s failed: %s", principal.principal_id, exc)

            page_token = page.next_page_token
            if not page_token:
                break

        logger.info("revoked sessions of %d principal(s), %d failed", revoked, failed)
        return RevocationTally(revoked=revoked, failed=failed)

    def _revoke_step(self) -> int:
        tally = self.revoke_all_sessions()
        if tally.failed:
            raise PartialStepFailure(
                f"{tally.failed} revocation(s) failed",
                succeeded=tally.revoked,
                failed=tally.failed,
            )
        return tally.revoked

    def purge(self, collection: str, *, keep: Optional[Callable[[Document], bool]] = None) -> int:
        """Delete every document of ``collection`` that ``keep`` does not protect."""

        with self._lock_for(collection):
            docs = self._store.list_all(collection)
            ops = [WriteOp("delete", collection, d.id) for d in docs if keep is None or not keep(d)]
            kept = len(docs) - len(ops)

            result = commit_chunked(self._store, ops, max_workers=self._max_workers, timeout=self._step_timeout)

        if result.failed_batches:
            message = f"{collection}: {result.failed_batches}/{result.batches} batch(es) failed ({'; '.join(result.errors)})"
            if result.committed_ops:
                raise PartialStepFailure(message, succeeded=result.committed_ops, failed=result.failed_ops)
            raise StoreUnavailable(message)

        logger.info("purged %d document(s) from %s, kept %d", result.committed_ops, collection, kept)
        return result.committed_ops

    def _purge_sweep_logs(self) -> int:
        # Both collections are attempted even if the first fails.
        succeeded = failed = 0
        errors = []
        for collection in (COLLECTION_SITE_STATUS_LOGS, COLLECTION_CHECKOUT_PROMPTS):
            try:
                succeeded += self.purge(collection)
            except PartialStepFailure as exc:
                succeeded += exc.succeeded
                failed += exc.failed
                errors.append(str(exc))
            except Exception as exc:
                failed += 1
                errors.append(f"{collection}: {exc}")
        if errors:
            raise PartialStepFailure("; ".join(errors), succeeded=succeeded, failed=failed)
        return succeeded
