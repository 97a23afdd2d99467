"""
Letter store: the unit of work for procurement letters.

A letter and its audit log only ever change together. Every write goes
through this class, which wraps the letter update and the log append in
one transaction.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from procurement.core.exceptions import ConcurrentModificationError, LetterNotFoundError
from procurement.core.logging import get_logger
from procurement.models.base.enums import LetterStatus, LogAction
from procurement.models.procurement import ProcurementLetter, ProcurementLog
from procurement.repositories.procurement.letter_repository import (
    ProcurementLetterRepository,
    ProcurementLogRepository,
)
from procurement.services.base.transaction_manager import TransactionManager

logger = get_logger(__name__)


@dataclass
class Transition:
    """
    Outcome of a mutation: the letter's next state and the log entry
    that records it.

    ``changes`` carries extra letter attributes to overwrite (used when a
    revised letter is resubmitted).
    """

    actor_id: str
    action: LogAction
    to_status: LetterStatus
    current_approver_id: Optional[str]
    comment: Optional[str] = None
    changes: Dict[str, Any] = field(default_factory=dict)


Mutation = Callable[[ProcurementLetter], Transition]


class LetterStore:
    """Atomic persistence of letters together with their audit trail."""

    def __init__(self, db: Session, transactions: Optional[TransactionManager] = None):
        self.db = db
        self.transactions = transactions or TransactionManager(db)
        self.letters = ProcurementLetterRepository(db)
        self.logs = ProcurementLogRepository(db)

    def create(self, letter: ProcurementLetter, entry: ProcurementLog) -> ProcurementLetter:
        """Persist a new letter and its first log entry in one transaction."""
        with self.transactions.start():
            self.letters.create(letter)
            entry.letter_id = letter.id
            entry.to_status = letter.status
            self.logs.append(entry)

        logger.debug(
            "Letter stored",
            extra={"letter_id": letter.id, "log_action": entry.action.value},
        )
        return letter

    def get(self, letter_id: str) -> ProcurementLetter:
        """
        Raises:
            LetterNotFoundError: If no letter has this id
        """
        letter = self.letters.find_detailed(letter_id)
        if letter is None:
            raise LetterNotFoundError(letter_id)
        return letter

    def history(self, letter_id: str) -> List[ProcurementLog]:
        return self.logs.for_letter(letter_id)

    def transactional_update(self, letter_id: str, mutation: Mutation) -> ProcurementLetter:
        """
        Lock the letter, let ``mutation`` decide the transition, then apply
        it and append exactly one log entry before committing.

        ``mutation`` runs inside the transaction and sees the locked,
        freshly loaded row. Any exception it raises rolls everything back
        and propagates.

        Raises:
            LetterNotFoundError: If no letter has this id
            ConcurrentModificationError: If another writer updated the row
                between load and flush
        """
        with self.transactions.start():
            letter = self.letters.find_for_update(letter_id)
            if letter is None:
                raise LetterNotFoundError(letter_id)

            from_status = letter.status
            loaded_version = letter.version
            transition = mutation(letter)

            for key, value in transition.changes.items():
                setattr(letter, key, value)
            letter.status = transition.to_status
            letter.current_approver_id = transition.current_approver_id

            try:
                self.db.flush()
            except StaleDataError as e:
                raise ConcurrentModificationError(
                    table=ProcurementLetter.__tablename__,
                    expected_version=loaded_version,
                ) from e

            self.logs.append(
                ProcurementLog(
                    letter_id=letter.id,
                    actor_id=transition.actor_id,
                    action=transition.action,
                    comment=transition.comment,
                    from_status=from_status,
                    to_status=transition.to_status,
                )
            )

        logger.info(
            "Letter transition committed",
            extra={
                "letter_id": letter.id,
                "actor_id": transition.actor_id,
                "log_action": transition.action.value,
                "from_status": from_status.value,
                "to_status": transition.to_status.value,
            },
        )
        return letter
