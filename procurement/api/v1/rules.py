"""
Procurement rule administration endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from procurement.api.deps import get_rule_service
from procurement.api.responses import page_of, render
from procurement.schemas.procurement.rule import (
    AmountGap,
    CoverageReport,
    RuleCreate,
    RuleResponse,
    RuleStepsUpdate,
    RuleUpdate,
)
from procurement.services.procurement import RuleService

router = APIRouter(prefix="/rules", tags=["rules"])


def _coverage(report: dict) -> CoverageReport:
    return CoverageReport(
        complete=report["complete"],
        gaps=[AmountGap(**gap) for gap in report["gaps"]],
        rules=[RuleResponse.model_validate(rule) for rule in report["rules"]],
    )


@router.get("")
def list_rules(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    search: Optional[str] = Query(None, description="Match on rule name"),
    service: RuleService = Depends(get_rule_service),
):
    return render(service.list_rules(page=page, limit=limit, search=search), page_of(RuleResponse))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_rule(
    payload: RuleCreate,
    service: RuleService = Depends(get_rule_service),
):
    return render(service.create_rule(payload), RuleResponse.model_validate, status.HTTP_201_CREATED)


# Declared before /{rule_id} so "coverage" is not taken for an id.
@router.get("/coverage")
def coverage(service: RuleService = Depends(get_rule_service)):
    """Uncovered amount ranges across all rules."""
    return render(service.coverage_report(), _coverage)


@router.get("/{rule_id}")
def get_rule(rule_id: str, service: RuleService = Depends(get_rule_service)):
    return render(service.get_rule(rule_id), RuleResponse.model_validate)


@router.put("/{rule_id}")
def update_rule(
    rule_id: str,
    payload: RuleUpdate,
    service: RuleService = Depends(get_rule_service),
):
    return render(service.update_rule(rule_id, payload), RuleResponse.model_validate)


@router.put("/{rule_id}/steps")
def update_rule_steps(
    rule_id: str,
    payload: RuleStepsUpdate,
    service: RuleService = Depends(get_rule_service),
):
    """Reassign the role of existing steps, addressed by step order."""
    return render(service.update_rule_steps(rule_id, payload), RuleResponse.model_validate)


@router.delete("/{rule_id}")
def delete_rule(rule_id: str, service: RuleService = Depends(get_rule_service)):
    return render(service.delete_rule(rule_id))
