"""
Procurement letter endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from procurement.api.deps import get_actor_id, get_procurement_service
from procurement.api.responses import page_of, render
from procurement.schemas.procurement.letter import (
    DecisionRequest,
    LetterCreate,
    LetterProgressResponse,
    LetterResponse,
    LetterResubmit,
    LogEntryResponse,
)
from procurement.services.procurement import LetterProgress, ProcurementService

router = APIRouter(prefix="/procurement", tags=["procurement"])


def _progress(progress: LetterProgress) -> LetterProgressResponse:
    return LetterProgressResponse(
        letter=LetterResponse.model_validate(progress.letter),
        history=[LogEntryResponse.model_validate(entry) for entry in progress.history],
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_letter(
    payload: LetterCreate,
    actor_id: str = Depends(get_actor_id),
    service: ProcurementService = Depends(get_procurement_service),
):
    """
    Create a procurement letter and route it to its first reviewer.

    The actor must hold the CREATE role of the rule covering the amount.
    """
    result = service.create_letter(actor_id, payload)
    return render(result, LetterResponse.model_validate, status.HTTP_201_CREATED)


@router.get("")
def list_dashboard(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, description="Page size"),
    search: Optional[str] = Query(None, description="Letter number, subject or exact amount"),
    actor_id: str = Depends(get_actor_id),
    service: ProcurementService = Depends(get_procurement_service),
):
    """Letters currently waiting on the actor."""
    result = service.list_dashboard(actor_id, page=page, limit=limit, search=search)
    return render(result, page_of(LetterResponse))


@router.get("/history")
def list_history(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, description="Page size"),
    search: Optional[str] = Query(None, description="Letter number, subject or exact amount"),
    actor_id: str = Depends(get_actor_id),
    service: ProcurementService = Depends(get_procurement_service),
):
    """Letters the actor has already acted on."""
    result = service.list_history(actor_id, page=page, limit=limit, search=search)
    return render(result, page_of(LetterResponse))


@router.get("/{letter_id}")
def get_letter(
    letter_id: str,
    service: ProcurementService = Depends(get_procurement_service),
):
    return render(service.get_letter(letter_id), LetterResponse.model_validate)


@router.get("/{letter_id}/progress")
def get_progress(
    letter_id: str,
    service: ProcurementService = Depends(get_procurement_service),
):
    """Letter detail plus its full audit trail, oldest entry first."""
    return render(service.get_progress(letter_id), _progress)


@router.post("/decision/{letter_id}")
def decide(
    letter_id: str,
    request: DecisionRequest,
    actor_id: str = Depends(get_actor_id),
    service: ProcurementService = Depends(get_procurement_service),
):
    """Approve, reject or send back the letter; only its current approver may."""
    result = service.decide(letter_id, actor_id, request)
    return render(result, LetterResponse.model_validate)


@router.put("/{letter_id}")
def resubmit(
    letter_id: str,
    payload: LetterResubmit,
    actor_id: str = Depends(get_actor_id),
    service: ProcurementService = Depends(get_procurement_service),
):
    """Revise a letter sent back for revision and restart its chain."""
    result = service.resubmit(letter_id, actor_id, payload)
    return render(result, LetterResponse.model_validate)
