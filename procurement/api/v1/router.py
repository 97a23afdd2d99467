from fastapi import APIRouter

from procurement.api.v1 import organization, procurement, rules

router = APIRouter()
router.include_router(procurement.router)
router.include_router(rules.router)
router.include_router(organization.router)
