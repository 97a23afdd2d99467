"""
Shared FastAPI dependencies.
"""

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from procurement.config.settings import Settings, get_settings
from procurement.core.logging import user_id
from procurement.db.session import get_db
from procurement.services.procurement import ProcurementService, RuleService


async def get_actor_id(
    x_actor_id: str = Header(
        ...,
        alias="X-Actor-Id",
        min_length=1,
        description="Id of the acting user, set by the upstream auth layer",
    ),
) -> str:
    """Identity of the caller, also bound to the logging context."""
    actor_id = x_actor_id.strip()
    user_id.set(actor_id)
    return actor_id


def get_procurement_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ProcurementService:
    return ProcurementService(db, settings=settings)


def get_rule_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> RuleService:
    return RuleService(db, settings=settings)


__all__ = [
    "get_db",
    "get_actor_id",
    "get_procurement_service",
    "get_rule_service",
]
