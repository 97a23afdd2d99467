"""
Unit-of-work scope for services and the letter store.

Repositories only flush; the commit (or rollback) for a whole operation
happens once, here.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from procurement.core.logging import get_logger


@dataclass
class TransactionContext:
    """Outcome of one ``TransactionManager.start`` block."""

    transaction_id: str = field(default_factory=lambda: uuid4().hex[:12])
    started: float = field(default_factory=time.perf_counter)
    committed: bool = False
    rolled_back: bool = False
    error: Optional[Exception] = None

    @property
    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self.started) * 1000, 2)


class TransactionManager:
    """
    Commit on clean exit, roll back on any exception.

    The exception leaves ``start()`` unchanged, so callers and
    ``BaseService._handle_exception`` still see the original error type.
    """

    def __init__(self, db_session: Session):
        self.db = db_session
        self._logger = get_logger(self.__class__.__name__)

    @contextmanager
    def start(self, auto_commit: bool = True) -> Iterator[TransactionContext]:
        ctx = TransactionContext()
        try:
            yield ctx
            if auto_commit:
                self.db.commit()
                ctx.committed = True
        except Exception as exc:
            ctx.error = exc
            self._rollback(ctx)
            raise
        finally:
            self._logger.debug(
                "Transaction %s %s",
                ctx.transaction_id,
                "committed" if ctx.committed else "rolled back" if ctx.rolled_back else "left open",
                extra={"transaction_id": ctx.transaction_id, "duration_ms": ctx.elapsed_ms},
            )

    def _rollback(self, ctx: TransactionContext) -> None:
        try:
            self.db.rollback()
        except Exception as e:
            # Keep the caller's exception; a failed rollback is only logged
            self._logger.error(
                f"Rollback failed for transaction {ctx.transaction_id}: {e}",
                exc_info=True,
            )
            return
        ctx.rolled_back = True
