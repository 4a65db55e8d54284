from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Callable, Generator, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError, PendingRollbackError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from retailops.core.config import Settings, get_settings
from retailops.core.errors import ConcurrentModificationError
from retailops.core.security import Actor
from retailops.persistence import database
from retailops.transactions.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

T = TypeVar("T")

_LOCK_CONFLICT_MARKERS = (
    "database is locked",
    "deadlock detected",
    "could not serialize access",
    "lock wait timeout",
)


def is_lock_conflict(exc: OperationalError) -> bool:
    text = str(exc.orig if exc.orig is not None else exc).lower()
    return any(marker in text for marker in _LOCK_CONFLICT_MARKERS)


class TransactionCoordinator:
    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        settings: Settings | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ):
        self.settings = settings or get_settings()
        self.session_factory = session_factory or database.new_session
        self.max_retries = self.settings.max_conflict_retries if max_retries is None else max_retries
        self.backoff_seconds = (
            self.settings.conflict_backoff_seconds if backoff_seconds is None else backoff_seconds
        )

    @contextmanager
    def unit_of_work(self, actor: Actor) -> Generator[UnitOfWork, None, None]:
        session = self.session_factory()
        uow = UnitOfWork(session, actor, settings=self.settings)
        try:
            try:
                yield uow
                uow.commit()
            except (StaleDataError, PendingRollbackError) as exc:
                # PendingRollbackError: a flush failed on a stale row and the session was used again.
                raise ConcurrentModificationError(
                    "record was modified by a concurrent transaction; retry the request"
                ) from exc
            except IntegrityError as exc:
                raise ConcurrentModificationError(
                    "unique key collided with a concurrent transaction; retry the request"
                ) from exc
            except OperationalError as exc:
                if is_lock_conflict(exc):
                    raise ConcurrentModificationError("database lock contention; retry the request") from exc
                raise
        except BaseException:
            # Includes cancellation (KeyboardInterrupt, SystemExit): nothing half-applied survives.
            uow.rollback()
            raise
        finally:
            session.close()

    def run(self, operation: str, actor: Actor, work: Callable[[UnitOfWork], T]) -> T:
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                with self.unit_of_work(actor) as uow:
                    return work(uow)
            except ConcurrentModificationError as exc:
                if attempt >= attempts:
                    logger.warning(
                        "%s gave up after %s attempts on concurrent modification: %s",
                        operation,
                        attempt,
                        exc,
                    )
                    raise
                logger.info("%s hit concurrent modification on attempt %s, retrying", operation, attempt)
                if self.backoff_seconds:
                    time.sleep(self.backoff_seconds * attempt)
        raise AssertionError("unreachable")  # pragma: no cover
