"""
Tests for the approval routing state machine.
"""
from sqlalchemy import func, select

import pytest

from procurement.core.exceptions import (
    ApproverNotFoundError,
    AuthorizationError,
    ConcurrentModificationError,
    LetterNotFoundError,
    ResourceNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from procurement.models import ProcurementLetter, ProcurementLog, ProcurementRule, ProcurementStep
from procurement.models.base import MAX_AMOUNT
from procurement.models.base.enums import Decision, LetterStatus, LogAction, StepType
from procurement.schemas.procurement.letter import LetterResubmit


def _actions(routing, letter_id):
    return [entry.action for entry in routing.get_progress(letter_id).history]


def _count(db, model) -> int:
    return db.scalar(select(func.count()).select_from(model))


class TestCreateLetter:
    """Creating a letter routes it to the first reviewer"""

    def test_routes_to_first_reviewer(self, routing, staff, manajer, make_payload):
        letter = routing.create_letter(staff.id, None, make_payload(1_500_000))

        assert letter.status is LetterStatus.PENDING_REVIEW
        assert letter.current_approver_id == manajer.id
        assert letter.unit_id == staff.unit_id
        assert letter.created_by_id == staff.id
        assert letter.version == 1

        history = routing.get_progress(letter.id).history
        assert len(history) == 1
        assert history[0].action is LogAction.CREATED
        assert history[0].actor_id == staff.id
        assert history[0].from_status is None
        assert history[0].to_status is LetterStatus.PENDING_REVIEW

    def test_creator_role_must_match_tier(self, db, routing, staff, general_affair, kadiv, make_payload):
        """5 000 000 belongs to the General Affair tier."""
        with pytest.raises(AuthorizationError) as exc_info:
            routing.create_letter(staff.id, None, make_payload(5_000_000))

        assert exc_info.value.details["actor_role"] == "STAFF"
        assert exc_info.value.details["required_role"] == "GENERAL_AFFAIR"
        assert _count(db, ProcurementLetter) == 0
        assert _count(db, ProcurementLog) == 0

    @pytest.mark.parametrize("amount", [0, -250_000])
    def test_non_positive_amount_rejected(self, routing, staff, manajer, make_payload, amount):
        with pytest.raises(ValidationError):
            routing.create_letter(staff.id, None, make_payload(amount))

    def test_amount_beyond_column_range_rejected(self, db, routing, staff, manajer, make_payload):
        # Bypasses schema validation the way a direct caller could
        payload = make_payload().model_copy(update={"amount": MAX_AMOUNT + 1})

        with pytest.raises(ValidationError) as exc_info:
            routing.create_letter(staff.id, None, payload)

        assert "amount" in exc_info.value.details["field_errors"]
        assert _count(db, ProcurementLetter) == 0

    def test_central_reviewer_for_business_unit_letter(
        self, routing, units, general_affair, kadiv, make_user, make_payload
    ):
        make_user("Decoy Kadiv", "KADIV_KEUANGAN", "UBGH")

        letter = routing.create_letter(general_affair.id, units["UBGH"].id, make_payload(5_000_000))

        assert letter.unit_id == units["UBGH"].id
        assert letter.current_approver_id == kadiv.id

    def test_missing_reviewer_leaves_nothing_behind(self, db, routing, staff, make_payload):
        with pytest.raises(ApproverNotFoundError):
            routing.create_letter(staff.id, None, make_payload())

        assert _count(db, ProcurementLetter) == 0

    def test_inactive_creator_is_forbidden(self, routing, make_user, manajer, make_payload):
        former = make_user("Former Staff", "STAFF", is_active=False)

        with pytest.raises(AuthorizationError):
            routing.create_letter(former.id, None, make_payload())

    def test_unknown_actor(self, routing, make_payload):
        with pytest.raises(UserNotFoundError):
            routing.create_letter("nobody", None, make_payload())

    def test_unknown_home_unit(self, routing, staff, manajer, make_payload):
        with pytest.raises(ResourceNotFoundError):
            routing.create_letter(staff.id, "no-such-unit", make_payload())


class TestDecide:
    """Decisions by the current approver"""

    @pytest.fixture
    def letter(self, routing, staff, manajer, gm, make_payload):
        return routing.create_letter(staff.id, None, make_payload(1_500_000))

    def test_staff_manajer_gm_round_trip(self, routing, letter, manajer, gm):
        reviewed = routing.decide(letter.id, manajer.id, Decision.APPROVE, comment="Sesuai anggaran")

        assert reviewed.status is LetterStatus.PENDING_APPROVAL
        assert reviewed.current_approver_id == gm.id

        approved = routing.decide(letter.id, gm.id, Decision.APPROVE)

        assert approved.status is LetterStatus.APPROVED
        assert approved.current_approver_id is None
        assert approved.version == 3
        assert _actions(routing, letter.id) == [
            LogAction.CREATED,
            LogAction.REVIEWED,
            LogAction.APPROVED,
        ]

    def test_wrong_turn_is_forbidden(self, db, routing, letter, gm):
        with pytest.raises(AuthorizationError):
            routing.decide(letter.id, gm.id, Decision.APPROVE)

        db.expire_all()
        unchanged = routing.get_progress(letter.id)
        assert unchanged.letter.status is LetterStatus.PENDING_REVIEW
        assert unchanged.letter.version == 1
        assert len(unchanged.history) == 1

    def test_reject_is_terminal(self, routing, letter, manajer, gm, staff):
        rejected = routing.decide(letter.id, manajer.id, "REJECT", comment="Tidak prioritas")

        assert rejected.status is LetterStatus.REJECTED
        assert rejected.current_approver_id is None

        for actor in (manajer, gm, staff):
            with pytest.raises(AuthorizationError):
                routing.decide(letter.id, actor.id, Decision.APPROVE)

        history = routing.get_progress(letter.id).history
        assert history[-1].action is LogAction.REJECTED
        assert history[-1].comment == "Tidak prioritas"

    def test_request_revision_returns_letter_to_creator(self, routing, letter, manajer, staff):
        revised = routing.decide(letter.id, manajer.id, Decision.REQUEST_REVISION, comment="Lampirkan RAB")

        assert revised.status is LetterStatus.NEEDS_REVISION
        assert revised.current_approver_id == staff.id

        # The creator is "current" but must resubmit, not decide.
        with pytest.raises(AuthorizationError):
            routing.decide(letter.id, staff.id, Decision.APPROVE)

    def test_stale_expected_version(self, routing, letter, manajer):
        with pytest.raises(ConcurrentModificationError) as exc_info:
            routing.decide(letter.id, manajer.id, Decision.APPROVE, expected_version=7)

        assert exc_info.value.status_code == 409
        assert exc_info.value.details["actual_version"] == 1

        decided = routing.decide(letter.id, manajer.id, Decision.APPROVE, expected_version=1)
        assert decided.version == 2

    def test_unknown_decision(self, routing, letter, manajer):
        with pytest.raises(ValidationError):
            routing.decide(letter.id, manajer.id, "ESCALATE")

    def test_unknown_letter(self, routing, manajer):
        with pytest.raises(LetterNotFoundError):
            routing.decide("missing-letter", manajer.id, Decision.APPROVE)

    def test_role_outside_chain_cannot_approve(self, db, routing, letter, make_user):
        admin = make_user("Admin", "ADMIN")
        letter.current_approver_id = admin.id
        db.commit()

        with pytest.raises(AuthorizationError) as exc_info:
            routing.decide(letter.id, admin.id, Decision.APPROVE)

        assert exc_info.value.details["actor_role"] == "ADMIN"

    def test_missing_next_approver_rolls_back(self, db, routing, staff, manajer, make_payload):
        # No GM staffed in the unit.
        letter = routing.create_letter(staff.id, None, make_payload())

        with pytest.raises(ApproverNotFoundError):
            routing.decide(letter.id, manajer.id, Decision.APPROVE)

        db.expire_all()
        progress = routing.get_progress(letter.id)
        assert progress.letter.status is LetterStatus.PENDING_REVIEW
        assert progress.letter.current_approver_id == manajer.id
        assert len(progress.history) == 1

    def test_longer_chain_logs_every_review(
        self, db, routing, roles, staff, manajer, gm, kadiv, make_payload
    ):
        tier = db.scalar(select(ProcurementRule).where(ProcurementRule.name == "Hingga 2 Juta"))
        db.delete(tier)
        db.flush()
        chain = [
            (StepType.CREATE, "STAFF"),
            (StepType.REVIEW, "MANAJER_KEUANGAN"),
            (StepType.REVIEW, "GM"),
            (StepType.APPROVE, "KADIV_KEUANGAN"),
        ]
        rule = ProcurementRule(name="Hingga 2 Juta (4 langkah)", min_amount=0, max_amount=2_000_000)
        for order, (step_type, code) in enumerate(chain, start=1):
            rule.steps.append(
                ProcurementStep(step_order=order, step_type=step_type, role_id=roles[code].id)
            )
        db.add(rule)
        db.commit()

        letter = routing.create_letter(staff.id, None, make_payload(750_000))
        for approver in (manajer, gm):
            letter = routing.decide(letter.id, approver.id, Decision.APPROVE)
            assert letter.status is LetterStatus.PENDING_APPROVAL
        assert letter.current_approver_id == kadiv.id

        letter = routing.decide(letter.id, kadiv.id, Decision.APPROVE)

        assert letter.status is LetterStatus.APPROVED
        assert _actions(routing, letter.id) == [
            LogAction.CREATED,
            LogAction.REVIEWED,
            LogAction.REVIEWED,
            LogAction.APPROVED,
        ]


class TestResubmit:
    """Creator revises a letter sent back for revision"""

    @pytest.fixture
    def sent_back(self, routing, staff, manajer, gm, make_payload):
        letter = routing.create_letter(staff.id, None, make_payload(1_500_000))
        return routing.decide(letter.id, manajer.id, Decision.REQUEST_REVISION)

    def test_resubmit_restarts_chain(self, routing, sent_back, staff, manajer):
        letter = routing.resubmit(
            sent_back.id,
            staff.id,
            LetterResubmit(amount=1_800_000, comment="RAB dilampirkan"),
        )

        assert letter.status is LetterStatus.PENDING_REVIEW
        assert letter.current_approver_id == manajer.id
        assert letter.amount == 1_800_000

        last = routing.get_progress(letter.id).history[-1]
        assert last.action is LogAction.SUBMITTED
        assert last.from_status is LetterStatus.NEEDS_REVISION
        assert last.comment == "RAB dilampirkan"

    def test_only_creator_may_resubmit(self, routing, sent_back, manajer):
        with pytest.raises(AuthorizationError):
            routing.resubmit(sent_back.id, manajer.id, LetterResubmit())

    def test_letter_must_need_revision(self, routing, staff, manajer, gm, make_payload):
        letter = routing.create_letter(staff.id, None, make_payload())

        with pytest.raises(AuthorizationError):
            routing.resubmit(letter.id, staff.id, LetterResubmit())

    def test_new_amount_must_still_fit_creator(self, db, routing, sent_back, staff):
        with pytest.raises(AuthorizationError):
            routing.resubmit(sent_back.id, staff.id, LetterResubmit(amount=5_000_000))

        db.expire_all()
        letter = routing.get_progress(sent_back.id).letter
        assert letter.status is LetterStatus.NEEDS_REVISION
        assert letter.amount == 1_500_000

    def test_oversized_amount_rejected(self, routing, sent_back, staff):
        revision = LetterResubmit.model_construct(amount=10**20)

        with pytest.raises(ValidationError):
            routing.resubmit(sent_back.id, staff.id, revision)


class TestProgress:
    def test_get_progress_is_idempotent(self, routing, staff, manajer, gm, make_payload):
        letter = routing.create_letter(staff.id, None, make_payload())
        routing.decide(letter.id, manajer.id, Decision.APPROVE)

        first = routing.get_progress(letter.id)
        second = routing.get_progress(letter.id)

        assert first.letter.id == second.letter.id
        assert first.letter.status == second.letter.status
        assert first.letter.version == second.letter.version
        assert [e.id for e in first.history] == [e.id for e in second.history]

    def test_unknown_letter(self, routing):
        with pytest.raises(LetterNotFoundError):
            routing.get_progress("missing-letter")
