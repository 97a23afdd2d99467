"""
Tests for the letter unit of work.
"""
from unittest.mock import patch

import pytest
from sqlalchemy import update

from procurement.core.exceptions import ConcurrentModificationError, LetterNotFoundError
from procurement.models import ProcurementLetter
from procurement.models.base.enums import LetterStatus, LogAction
from procurement.repositories.procurement import LetterStore, Transition


@pytest.fixture
def letter(routing, staff, manajer, gm, make_payload):
    return routing.create_letter(staff.id, None, make_payload())


@pytest.fixture
def store(db) -> LetterStore:
    return LetterStore(db)


def _review(actor_id, approver_id):
    return lambda letter: Transition(
        actor_id=actor_id,
        action=LogAction.REVIEWED,
        to_status=LetterStatus.PENDING_APPROVAL,
        current_approver_id=approver_id,
    )


class TestTransactionalUpdate:
    def test_applies_transition_and_appends_one_entry(self, store, letter, manajer, gm):
        updated = store.transactional_update(letter.id, _review(manajer.id, gm.id))

        assert updated.status is LetterStatus.PENDING_APPROVAL
        assert updated.current_approver_id == gm.id

        history = store.history(letter.id)
        assert len(history) == 2
        assert history[-1].from_status is LetterStatus.PENDING_REVIEW
        assert history[-1].to_status is LetterStatus.PENDING_APPROVAL

    def test_failed_log_append_rolls_back_letter(self, db, store, letter, manajer, gm):
        with patch.object(store.logs, "append", side_effect=RuntimeError("disk full")):
            with pytest.raises(RuntimeError):
                store.transactional_update(letter.id, _review(manajer.id, gm.id))

        db.expire_all()
        reloaded = store.get(letter.id)
        assert reloaded.status is LetterStatus.PENDING_REVIEW
        assert reloaded.current_approver_id == manajer.id
        assert reloaded.version == 1
        assert len(store.history(letter.id)) == 1

    def test_failed_mutation_changes_nothing(self, db, store, letter):
        def refuse(_letter):
            raise ValueError("refused")

        with pytest.raises(ValueError):
            store.transactional_update(letter.id, refuse)

        db.expire_all()
        assert store.get(letter.id).version == 1
        assert len(store.history(letter.id)) == 1

    def test_concurrent_writer_is_detected(self, db, store, letter, manajer, gm):
        """The row's version moves on between our load and flush."""
        table = ProcurementLetter.__table__

        def race(loaded):
            db.execute(
                update(table)
                .where(table.c.id == loaded.id)
                .values(version=table.c.version + 1)
            )
            return _review(manajer.id, gm.id)(loaded)

        with pytest.raises(ConcurrentModificationError):
            store.transactional_update(letter.id, race)

        db.expire_all()
        assert len(store.history(letter.id)) == 1

    def test_unknown_letter(self, store):
        with pytest.raises(LetterNotFoundError):
            store.transactional_update("missing", _review("a", "b"))
