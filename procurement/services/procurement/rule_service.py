"""
Procurement rule administration.

Rules may leave gaps while an administrator is reshaping the tiers (a
letter in a gap fails with RuleNotConfiguredError), but two rules may
never cover the same amount.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from procurement.config.settings import Settings, get_settings
from procurement.core.exceptions import (
    ConflictError,
    create_validation_error,
)
from procurement.models.base import MAX_AMOUNT
from procurement.models.base.enums import StepType
from procurement.models.procurement import ProcurementRule, ProcurementStep
from procurement.repositories.base import PaginatedResult
from procurement.repositories.organization import RoleRepository
from procurement.repositories.procurement.rule_repository import ProcurementRuleRepository
from procurement.schemas.procurement.rule import (
    RuleCreate,
    RuleStepsUpdate,
    RuleUpdate,
)
from procurement.services.base import BaseService, ServiceResult

# (step_order, step_type, role_id)
ChainStep = Tuple[int, StepType, str]


class RuleService(BaseService):
    """CRUD over procurement rules with chain and range validation."""

    NAME_MIN_LENGTH = 3
    NAME_MAX_LENGTH = 100

    def __init__(self, db_session: Session, settings: Optional[Settings] = None):
        super().__init__(db_session)
        self.settings = settings or get_settings()
        self.rules = ProcurementRuleRepository(db_session)
        self.roles = RoleRepository(db_session)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_rules(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> ServiceResult[PaginatedResult[ProcurementRule]]:
        try:
            per_page = max(1, min(limit or self.settings.DEFAULT_PAGE_SIZE, self.settings.MAX_PAGE_SIZE))
            return ServiceResult.success(self.rules.search(page, per_page, search))
        except Exception as e:
            return self._handle_exception(e, "list procurement rules")

    def get_rule(self, rule_id: str) -> ServiceResult[ProcurementRule]:
        try:
            return ServiceResult.success(self.rules.get_with_steps(rule_id))
        except Exception as e:
            return self._handle_exception(e, "get procurement rule", rule_id)

    def coverage_report(self) -> ServiceResult[Dict]:
        """
        Every rule in amount order plus the uncovered ranges of
        ``[0, +inf)``.
        """
        try:
            gaps = self.rules.coverage_gaps()
            report = {
                "complete": not gaps,
                "gaps": [{"low": low, "high": high} for low, high in gaps],
                "rules": self.rules.list_all(),
            }
            if gaps:
                self._logger.warning(
                    "Procurement rules leave amounts uncovered",
                    extra={"gaps": [list(gap) for gap in gaps]},
                )
            return ServiceResult.success(report)
        except Exception as e:
            return self._handle_exception(e, "build coverage report")

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def create_rule(self, request: RuleCreate) -> ServiceResult[ProcurementRule]:
        try:
            steps = [(s.step_order, s.step_type, s.role_id) for s in request.steps]
            self._validate_rule(request.name, request.min_amount, request.max_amount, steps)

            with self.transactions.start():
                self._ensure_name_free(request.name)
                self._ensure_no_overlap(request.min_amount, request.max_amount)

                rule = ProcurementRule(
                    name=request.name,
                    min_amount=request.min_amount,
                    max_amount=request.max_amount,
                )
                for order, step_type, role_id in sorted(steps):
                    rule.steps.append(
                        ProcurementStep(step_order=order, step_type=step_type, role_id=role_id)
                    )
                self.rules.create(rule)

            self._log_operation("create procurement rule", rule.id, {"rule_name": rule.name})
            return ServiceResult.success(
                self.rules.get_with_steps(rule.id),
                message="Procurement rule created",
            )
        except Exception as e:
            return self._handle_exception(e, "create procurement rule", request.name)

    def update_rule(self, rule_id: str, request: RuleUpdate) -> ServiceResult[ProcurementRule]:
        """Change name and/or bounds; the chain is left untouched."""
        try:
            with self.transactions.start():
                rule = self.rules.get_with_steps(rule_id)

                # A null max_amount opens the tier upwards
                changes = request.changes(nullable=("max_amount",))
                name = changes.get("name", rule.name)
                min_amount = changes.get("min_amount", rule.min_amount)
                max_amount = changes.get("max_amount", rule.max_amount)

                self._validate_rule(name, min_amount, max_amount, self._chain_of(rule.steps))
                if name != rule.name:
                    self._ensure_name_free(name)
                self._ensure_no_overlap(min_amount, max_amount, exclude_id=rule.id)

                self.rules.update(rule, {
                    "name": name,
                    "min_amount": min_amount,
                    "max_amount": max_amount,
                })

            self._log_operation("update procurement rule", rule_id, {
                "min_amount": min_amount,
                "max_amount": max_amount,
            })
            return ServiceResult.success(
                self.rules.get_with_steps(rule_id),
                message="Procurement rule updated",
            )
        except Exception as e:
            return self._handle_exception(e, "update procurement rule", rule_id)

    def update_rule_steps(
        self,
        rule_id: str,
        request: RuleStepsUpdate,
    ) -> ServiceResult[ProcurementRule]:
        """
        Reassign roles to existing steps, addressed by ``step_order``.

        Step kinds and the number of steps never change here. The chain is
        rebuilt so that roles can be swapped between steps.
        """
        try:
            with self.transactions.start():
                rule = self.rules.get_with_steps(rule_id)
                current = {step.step_order: step for step in rule.steps}

                unknown = sorted(
                    a.step_order for a in request.steps if a.step_order not in current
                )
                if unknown:
                    raise create_validation_error(
                        {"steps": [f"rule has no step {order}" for order in unknown]}
                    )

                assignments = {a.step_order: a.role_id for a in request.steps}
                new_chain = [
                    (order, step.step_type, assignments.get(order, step.role_id))
                    for order, step in sorted(current.items())
                ]
                self._validate_rule(rule.name, rule.min_amount, rule.max_amount, new_chain)

                rule.steps.clear()
                self.db.flush()
                for order, step_type, role_id in new_chain:
                    rule.steps.append(
                        ProcurementStep(step_order=order, step_type=step_type, role_id=role_id)
                    )
                self.db.flush()

            self._log_operation("update procurement rule steps", rule_id, {
                "step_orders": sorted(assignments),
            })
            self.db.expire_all()
            return ServiceResult.success(
                self.rules.get_with_steps(rule_id),
                message="Procurement rule steps updated",
            )
        except Exception as e:
            return self._handle_exception(e, "update procurement rule steps", rule_id)

    def delete_rule(self, rule_id: str) -> ServiceResult[bool]:
        try:
            with self.transactions.start():
                rule = self.rules.get_with_steps(rule_id)
                self.rules.delete(rule)

            self._log_operation("delete procurement rule", rule_id)
            return ServiceResult.success(True, message="Procurement rule deleted")
        except Exception as e:
            return self._handle_exception(e, "delete procurement rule", rule_id)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _validate_rule(
        self,
        name: str,
        min_amount: int,
        max_amount: Optional[int],
        steps: Sequence[ChainStep],
    ) -> None:
        """
        Raises:
            ValidationError: With every problem found, keyed by field
        """
        errors: Dict[str, List[str]] = {}

        if not name or not (self.NAME_MIN_LENGTH <= len(name.strip()) <= self.NAME_MAX_LENGTH):
            errors.setdefault("name", []).append(
                f"must be {self.NAME_MIN_LENGTH}-{self.NAME_MAX_LENGTH} characters"
            )
        if min_amount < 0:
            errors.setdefault("min_amount", []).append("must not be negative")
        if max_amount is not None and max_amount < min_amount:
            errors.setdefault("max_amount", []).append("must not be lower than min_amount")
        for field_name, value in (("min_amount", min_amount), ("max_amount", max_amount)):
            if value is not None and value > MAX_AMOUNT:
                errors.setdefault(field_name, []).append(f"must not exceed {MAX_AMOUNT}")

        step_errors = self._chain_errors(steps)
        if step_errors:
            errors["steps"] = step_errors

        if errors:
            raise create_validation_error(errors)

    def _chain_errors(self, steps: Sequence[ChainStep]) -> List[str]:
        errors: List[str] = []
        if len(steps) < 2:
            return ["a rule needs at least 2 steps"]

        ordered = sorted(steps, key=lambda step: step[0])
        orders = [order for order, _, _ in ordered]
        if orders != list(range(1, len(ordered) + 1)):
            errors.append("step_order must run 1..n without gaps or repeats")

        creates = [order for order, step_type, _ in ordered if step_type is StepType.CREATE]
        if len(creates) != 1:
            errors.append("exactly one CREATE step is required")
        elif ordered[0][1] is not StepType.CREATE:
            errors.append("the CREATE step must be step 1")

        if ordered[-1][1] not in (StepType.REVIEW, StepType.APPROVE):
            errors.append("the last step must be REVIEW or APPROVE")

        role_ids = [role_id for _, _, role_id in ordered]
        if len(set(role_ids)) != len(role_ids):
            errors.append("each step needs a different role")

        known = {role.id for role in self.roles.find_by_ids(set(role_ids))}
        missing = sorted(set(role_ids) - known)
        if missing:
            errors.append(f"unknown role ids: {', '.join(missing)}")

        return errors

    def _ensure_name_free(self, name: str) -> None:
        if self.rules.find_by_name(name) is not None:
            raise ConflictError(
                f"A procurement rule named '{name}' already exists",
                details={"name": name},
            )

    def _ensure_no_overlap(
        self,
        min_amount: int,
        max_amount: Optional[int],
        exclude_id: Optional[str] = None,
    ) -> None:
        overlapping = self.rules.find_overlapping(min_amount, max_amount, exclude_id)
        if overlapping:
            raise ConflictError(
                "The amount range overlaps existing procurement rules",
                details={
                    "min_amount": min_amount,
                    "max_amount": max_amount,
                    "overlapping_rule_ids": [rule.id for rule in overlapping],
                },
            )

    @staticmethod
    def _chain_of(steps: Sequence[ProcurementStep]) -> List[ChainStep]:
        return [(step.step_order, step.step_type, step.role_id) for step in steps]
