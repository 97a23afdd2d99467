"""
Read-only organization lookups used by clients to build rule chains.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from procurement.api.deps import get_db
from procurement.repositories.organization import RoleRepository, UnitRepository
from procurement.schemas.procurement.rule import RoleResponse, UnitResponse

router = APIRouter(tags=["organization"])


@router.get("/roles")
def list_roles(db: Session = Depends(get_db)):
    roles = RoleRepository(db).list_all()
    return {"data": [RoleResponse.model_validate(role).model_dump() for role in roles]}


@router.get("/units")
def list_units(db: Session = Depends(get_db)):
    units = UnitRepository(db).list_all()
    return {"data": [UnitResponse.model_validate(unit).model_dump() for unit in units]}
