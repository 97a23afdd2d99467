"""
Approval routing engine.

State machine for procurement letters:

    PENDING_REVIEW -> PENDING_APPROVAL* -> APPROVED | REJECTED
    PENDING_REVIEW | PENDING_APPROVAL -> NEEDS_REVISION -> PENDING_REVIEW

The engine raises application exceptions; turning them into results or
HTTP responses is the service layer's job. Rules are looked up for every
decision, so a tier edited mid-flight applies to the letters already in it.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from procurement.core.exceptions import (
    AuthorizationError,
    ConcurrentModificationError,
    ConfigurationError,
    ResourceNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from procurement.core.logging import get_logger, log_execution_time
from procurement.models.base import MAX_AMOUNT
from procurement.models.base.enums import Decision, LetterStatus, LogAction, StepType
from procurement.models.organization import User
from procurement.models.procurement import (
    ProcurementLetter,
    ProcurementLog,
    ProcurementRule,
    ProcurementStep,
)
from procurement.repositories.organization import UnitRepository, UserRepository
from procurement.repositories.procurement.letter_store import LetterStore, Transition
from procurement.repositories.procurement.rule_repository import ProcurementRuleRepository
from procurement.schemas.procurement.letter import LetterCreate, LetterResubmit
from procurement.services.procurement.approver_resolver import ApproverResolver

logger = get_logger(__name__)

_RESUBMIT_FIELDS = (
    "letter_number",
    "letter_about",
    "amount",
    "incoming_letter_date",
    "letter_file",
)


@dataclass
class LetterProgress:
    """A letter together with its audit trail, oldest entry first."""

    letter: ProcurementLetter
    history: List[ProcurementLog]


class RoutingEngine:
    """
    Drives letters through their approval chain.

    Holds no state between calls beyond its collaborators; create one per
    session.
    """

    def __init__(
        self,
        db: Session,
        resolver: ApproverResolver,
        rules: Optional[ProcurementRuleRepository] = None,
        store: Optional[LetterStore] = None,
    ):
        self.db = db
        self.resolver = resolver
        self.rules = rules or ProcurementRuleRepository(db)
        self.store = store or LetterStore(db)
        self.users = UserRepository(db)
        self.units = UnitRepository(db)

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    @log_execution_time()
    def create_letter(
        self,
        actor_id: str,
        unit_id: Optional[str],
        payload: LetterCreate,
    ) -> ProcurementLetter:
        """
        Open a letter and route it to the first reviewer.

        Raises:
            ValidationError: Amount is not a positive integer
            UserNotFoundError: Unknown actor
            AuthorizationError: Actor is inactive or does not hold the
                rule's CREATE role
            ConfigurationError: No usable rule for the amount
            ApproverNotFoundError: Nobody staffs the first review step
        """
        amount = self._validate_amount(payload.amount)
        actor = self._active_actor(actor_id)

        rule = self.rules.find_rule_for_amount(amount)
        steps = self._chain(rule)
        creator_step = steps[0]

        if actor.role_id != creator_step.role_id:
            raise AuthorizationError(
                f"Role '{actor.role.name}' may not create a procurement letter of this amount",
                details={
                    "actor_role": actor.role.code,
                    "required_role": creator_step.role.code,
                    "rule_id": rule.id,
                },
            )

        home_unit_id = unit_id or actor.unit_id
        if self.units.find_by_id(home_unit_id) is None:
            raise ResourceNotFoundError("Unit", home_unit_id)

        approver = self.resolver.resolve(steps[1].role_id, home_unit_id)

        letter = ProcurementLetter(
            letter_number=payload.letter_number,
            letter_about=payload.letter_about,
            amount=amount,
            incoming_letter_date=payload.incoming_letter_date,
            letter_file=payload.letter_file,
            status=LetterStatus.PENDING_REVIEW,
            unit_id=home_unit_id,
            created_by_id=actor.id,
            current_approver_id=approver.id,
        )
        entry = ProcurementLog(
            actor_id=actor.id,
            action=LogAction.CREATED,
            comment="Procurement letter created",
            from_status=None,
        )
        self.store.create(letter, entry)

        logger.info(
            "Procurement letter created",
            extra={
                "letter_id": letter.id,
                "actor_id": actor.id,
                "rule_id": rule.id,
                "to_status": letter.status.value,
                "next_approver_id": approver.id,
            },
        )
        return letter

    @log_execution_time()
    def decide(
        self,
        letter_id: str,
        actor_id: str,
        decision: Union[Decision, str],
        comment: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> ProcurementLetter:
        """
        Apply the current approver's decision.

        The turn check, the status check and the version check all run
        against the row locked inside the update transaction.

        Raises:
            ValidationError: Unknown decision
            LetterNotFoundError: Unknown letter
            ConcurrentModificationError: ``expected_version`` is stale
            AuthorizationError: Not the actor's turn, the letter is not
                awaiting a decision, or the actor's role is not in the chain
            ConfigurationError: The chain has no step after the actor's
            ApproverNotFoundError: Nobody staffs the next step
        """
        decision = self._parse_decision(decision)
        actor = self._active_actor(actor_id)

        def mutate(letter: ProcurementLetter) -> Transition:
            if expected_version is not None and letter.version != expected_version:
                raise ConcurrentModificationError(
                    "The letter changed since it was read",
                    table=ProcurementLetter.__tablename__,
                    expected_version=expected_version,
                    actual_version=letter.version,
                )

            if letter.current_approver_id != actor.id:
                raise AuthorizationError(
                    "You are not the current approver of this letter",
                    details={"letter_id": letter.id, "status": letter.status.value},
                )

            if not letter.status.is_awaiting_decision:
                raise AuthorizationError(
                    f"Letter in status {letter.status.value} is not awaiting a decision",
                    details={"letter_id": letter.id, "status": letter.status.value},
                )

            if decision is Decision.REJECT:
                return Transition(
                    actor_id=actor.id,
                    action=LogAction.REJECTED,
                    to_status=LetterStatus.REJECTED,
                    current_approver_id=None,
                    comment=comment,
                )

            if decision is Decision.REQUEST_REVISION:
                return Transition(
                    actor_id=actor.id,
                    action=LogAction.REVISION_REQUESTED,
                    to_status=LetterStatus.NEEDS_REVISION,
                    current_approver_id=letter.created_by_id,
                    comment=comment,
                )

            return self._approve(letter, actor, comment)

        letter = self.store.transactional_update(letter_id, mutate)

        logger.info(
            "Procurement letter decided",
            extra={
                "letter_id": letter.id,
                "actor_id": actor.id,
                "decision": decision.value,
                "to_status": letter.status.value,
            },
        )
        return letter

    @log_execution_time()
    def resubmit(
        self,
        letter_id: str,
        actor_id: str,
        payload: LetterResubmit,
    ) -> ProcurementLetter:
        """
        Send a revised letter back to the start of its chain.

        The rule is chosen again for the (possibly changed) amount and the
        creator must still hold its CREATE role.

        Raises:
            LetterNotFoundError: Unknown letter
            AuthorizationError: Actor is not the creator, the letter does
                not need revision, or the creator's role no longer fits
            ValidationError: Revised amount is not a positive integer
            ConfigurationError: No usable rule for the amount
            ApproverNotFoundError: Nobody staffs the first review step
        """
        actor = self._active_actor(actor_id)
        changes: Dict[str, Any] = {
            name: value
            for name, value in payload.changes().items()
            if name in _RESUBMIT_FIELDS
        }
        if "amount" in changes:
            changes["amount"] = self._validate_amount(changes["amount"])

        def mutate(letter: ProcurementLetter) -> Transition:
            if letter.created_by_id != actor.id:
                raise AuthorizationError(
                    "Only the creator may resubmit this letter",
                    details={"letter_id": letter.id},
                )
            if letter.status is not LetterStatus.NEEDS_REVISION:
                raise AuthorizationError(
                    f"Letter in status {letter.status.value} cannot be resubmitted",
                    details={"letter_id": letter.id, "status": letter.status.value},
                )

            amount = changes.get("amount", letter.amount)
            rule = self.rules.find_rule_for_amount(amount)
            steps = self._chain(rule)

            if actor.role_id != steps[0].role_id:
                raise AuthorizationError(
                    f"Role '{actor.role.name}' may not submit a procurement letter of this amount",
                    details={
                        "actor_role": actor.role.code,
                        "required_role": steps[0].role.code,
                        "rule_id": rule.id,
                    },
                )

            approver = self.resolver.resolve(steps[1].role_id, letter.unit_id)

            return Transition(
                actor_id=actor.id,
                action=LogAction.SUBMITTED,
                to_status=LetterStatus.PENDING_REVIEW,
                current_approver_id=approver.id,
                comment=payload.comment or "Procurement letter revised and resubmitted",
                changes=changes,
            )

        letter = self.store.transactional_update(letter_id, mutate)

        logger.info(
            "Procurement letter resubmitted",
            extra={
                "letter_id": letter.id,
                "actor_id": actor.id,
                "from_status": LetterStatus.NEEDS_REVISION.value,
                "to_status": letter.status.value,
                "changed_fields": sorted(changes),
            },
        )
        return letter

    def get_progress(self, letter_id: str) -> LetterProgress:
        """
        Raises:
            LetterNotFoundError: Unknown letter
        """
        letter = self.store.get(letter_id)
        return LetterProgress(letter=letter, history=self.store.history(letter_id))

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _approve(
        self,
        letter: ProcurementLetter,
        actor: User,
        comment: Optional[str],
    ) -> Transition:
        rule = self.rules.find_rule_for_amount(letter.amount)
        steps = self._chain(rule)

        current = next(
            (
                step for step in steps
                if step.step_type is not StepType.CREATE and step.role_id == actor.role_id
            ),
            None,
        )
        if current is None:
            raise AuthorizationError(
                "Your role is not part of this approval chain",
                details={"actor_role": actor.role.code, "rule_id": rule.id},
            )

        if current.step_order == steps[-1].step_order:
            return Transition(
                actor_id=actor.id,
                action=LogAction.APPROVED,
                to_status=LetterStatus.APPROVED,
                current_approver_id=None,
                comment=comment,
            )

        next_step = next(
            (step for step in steps if step.step_order == current.step_order + 1),
            None,
        )
        if next_step is None:
            raise ConfigurationError(
                f"Rule '{rule.name}' has no step after step {current.step_order}",
                config_key="procurement_step",
                config_value=current.step_order + 1,
            )

        approver = self.resolver.resolve(next_step.role_id, letter.unit_id)
        return Transition(
            actor_id=actor.id,
            action=LogAction.REVIEWED,
            to_status=LetterStatus.PENDING_APPROVAL,
            current_approver_id=approver.id,
            comment=comment,
        )

    @staticmethod
    def _chain(rule: ProcurementRule) -> List[ProcurementStep]:
        """Steps in order, checked to be a usable chain."""
        steps = sorted(rule.steps, key=lambda step: step.step_order)
        if len(steps) < 2:
            raise ConfigurationError(
                f"Rule '{rule.name}' needs at least 2 steps",
                config_key="procurement_rule",
                config_value=rule.id,
            )
        if steps[0].step_type is not StepType.CREATE:
            raise ConfigurationError(
                f"Rule '{rule.name}' must start with a CREATE step",
                config_key="procurement_rule",
                config_value=rule.id,
            )
        return steps

    def _active_actor(self, actor_id: str) -> User:
        actor = self.users.find_by_id(actor_id)
        if actor is None:
            raise UserNotFoundError(actor_id)
        if not actor.is_active:
            raise AuthorizationError(
                "Inactive users cannot act on procurement letters",
                details={"actor_id": actor_id},
            )
        return actor

    @staticmethod
    def _validate_amount(amount: Any) -> int:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError(
                "Amount must be a positive integer",
                field_errors={"amount": ["must be a positive integer"]},
            )
        if amount > MAX_AMOUNT:
            raise ValidationError(
                f"Amount must not exceed {MAX_AMOUNT}",
                field_errors={"amount": [f"must not exceed {MAX_AMOUNT}"]},
            )
        return amount

    @staticmethod
    def _parse_decision(decision: Union[Decision, str]) -> Decision:
        try:
            return Decision(decision)
        except ValueError:
            raise ValidationError(
                f"Unknown decision '{decision}'",
                field_errors={"decision": [f"must be one of {[d.value for d in Decision]}"]},
            ) from None
