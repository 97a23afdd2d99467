"""
Procurement letter service.

Public entry point for the workflow: wraps the routing engine, catches
its exceptions and returns ServiceResult values the API layer can render.
"""

from typing import Optional

from sqlalchemy.orm import Session

from procurement.config.settings import Settings, get_settings
from procurement.core.exceptions import UserNotFoundError
from procurement.models.procurement import ProcurementLetter
from procurement.repositories.base import PaginatedResult
from procurement.repositories.organization import UserRepository
from procurement.repositories.procurement.letter_repository import ProcurementLetterRepository
from procurement.repositories.procurement.letter_store import LetterStore
from procurement.schemas.procurement.letter import (
    DecisionRequest,
    LetterCreate,
    LetterResubmit,
)
from procurement.services.base import BaseService, ServiceResult
from procurement.services.procurement.approver_resolver import ApproverResolver
from procurement.services.procurement.routing_engine import LetterProgress, RoutingEngine


class ProcurementService(BaseService):
    """Create, decide on, resubmit and list procurement letters."""

    def __init__(
        self,
        db_session: Session,
        settings: Optional[Settings] = None,
        resolver: Optional[ApproverResolver] = None,
    ):
        super().__init__(db_session)
        self.settings = settings or get_settings()
        self._resolver = resolver
        self._engine: Optional[RoutingEngine] = None
        self.letters = ProcurementLetterRepository(db_session)
        self.users = UserRepository(db_session)

    @property
    def engine(self) -> RoutingEngine:
        if self._engine is None:
            resolver = self._resolver or ApproverResolver.from_settings(self.db, self.settings)
            self._engine = RoutingEngine(
                self.db,
                resolver,
                store=LetterStore(self.db, self.transactions),
            )
        return self._engine

    # -------------------------------------------------------------------------
    # Workflow
    # -------------------------------------------------------------------------

    def create_letter(
        self,
        actor_id: str,
        payload: LetterCreate,
    ) -> ServiceResult[ProcurementLetter]:
        try:
            letter = self.engine.create_letter(actor_id, payload.unit_id, payload)
            return ServiceResult.success(letter, message="Procurement letter created")
        except Exception as e:
            return self._handle_exception(
                e, "create procurement letter", actor_id,
                {"letter_number": payload.letter_number},
            )

    def decide(
        self,
        letter_id: str,
        actor_id: str,
        request: DecisionRequest,
    ) -> ServiceResult[ProcurementLetter]:
        try:
            letter = self.engine.decide(
                letter_id,
                actor_id,
                request.decision,
                comment=request.comment,
                expected_version=request.expected_version,
            )
            return ServiceResult.success(
                letter,
                message=f"Decision {request.decision.value} recorded",
            )
        except Exception as e:
            return self._handle_exception(
                e, "process decision", letter_id,
                {"actor_id": actor_id, "decision": request.decision.value},
            )

    def resubmit(
        self,
        letter_id: str,
        actor_id: str,
        payload: LetterResubmit,
    ) -> ServiceResult[ProcurementLetter]:
        try:
            letter = self.engine.resubmit(letter_id, actor_id, payload)
            return ServiceResult.success(letter, message="Procurement letter resubmitted")
        except Exception as e:
            return self._handle_exception(e, "resubmit procurement letter", letter_id, {"actor_id": actor_id})

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_progress(self, letter_id: str) -> ServiceResult[LetterProgress]:
        try:
            return ServiceResult.success(self.engine.get_progress(letter_id))
        except Exception as e:
            return self._handle_exception(e, "get letter progress", letter_id)

    def get_letter(self, letter_id: str) -> ServiceResult[ProcurementLetter]:
        try:
            return ServiceResult.success(self.engine.store.get(letter_id))
        except Exception as e:
            return self._handle_exception(e, "get procurement letter", letter_id)

    def list_dashboard(
        self,
        actor_id: str,
        page: int = 1,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> ServiceResult[PaginatedResult[ProcurementLetter]]:
        """Letters waiting on the actor, newest first."""
        try:
            self._require_user(actor_id)
            result = self.letters.dashboard(actor_id, page, self._page_size(limit), search)
            return ServiceResult.success(result)
        except Exception as e:
            return self._handle_exception(e, "list dashboard", actor_id)

    def list_history(
        self,
        actor_id: str,
        page: int = 1,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> ServiceResult[PaginatedResult[ProcurementLetter]]:
        """Letters the actor has acted on, most recently changed first."""
        try:
            self._require_user(actor_id)
            result = self.letters.history(actor_id, page, self._page_size(limit), search)
            return ServiceResult.success(result)
        except Exception as e:
            return self._handle_exception(e, "list history", actor_id)

    def _require_user(self, user_id: str) -> None:
        if self.users.find_by_id(user_id) is None:
            raise UserNotFoundError(user_id)

    def _page_size(self, limit: Optional[int]) -> int:
        if not limit:
            return self.settings.DEFAULT_PAGE_SIZE
        return max(1, min(limit, self.settings.MAX_PAGE_SIZE))
