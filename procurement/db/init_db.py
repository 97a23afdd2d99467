"""Database initialization and reference data."""
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from procurement.core.logging import get_logger
from procurement.db.session import engine as default_engine
from procurement.models import Base, ProcurementRule, ProcurementStep, Role, Unit
from procurement.models.base.enums import StepType

logger = get_logger(__name__)


# (code, display name)
ROLES: List[Tuple[str, str]] = [
    ("STAFF", "Staff"),
    ("MANAJER_KEUANGAN", "Manajer Keuangan"),
    ("GM", "GM"),
    ("GENERAL_AFFAIR", "General Affair"),
    ("KADIV_KEUANGAN", "Kadiv Keuangan"),
    ("DIREKTUR_OPERASIONAL", "Direktur Operasional"),
    ("DIREKTUR_KEUANGAN", "Direktur Keuangan"),
    ("DIREKTUR_UTAMA", "Direktur Utama"),
    ("ADMIN", "Admin"),
]

UNITS: List[Tuple[str, str]] = [
    ("HO", "Head Office"),
    ("UBGH", "UB Guest House"),
    ("GBA", "Griya Brawijaya"),
    ("UBC", "UB Coffee"),
    ("BLC", "Brawijaya Language Center"),
    ("UBK", "UB Kantin"),
    ("UBSC", "UB Sport Center"),
    ("UMC", "UB Merchandise & Creative"),
    ("BCR", "Brawijaya Catering"),
    ("LPH", "Lembaga Pemeriksa Halal Universitas Brawijaya"),
    ("BTT", "Brawijaya Tour & Travel"),
    ("BST", "Brawijaya Science & Technology"),
    ("BPA", "Brawijaya Property and Advertising"),
    ("BOS", "Brawijaya Outsourcing"),
    ("AGRO", "Depo Agro"),
]

# name, min, max, [creator, reviewer, approver] role codes
RULES: List[Tuple[str, int, Optional[int], List[str]]] = [
    ("Hingga 2 Juta", 0, 2_000_000,
     ["STAFF", "MANAJER_KEUANGAN", "GM"]),
    ("Hingga 10 Juta", 2_000_001, 10_000_000,
     ["GENERAL_AFFAIR", "KADIV_KEUANGAN", "DIREKTUR_KEUANGAN"]),
    ("Hingga 50 Juta", 10_000_001, 50_000_000,
     ["GM", "DIREKTUR_OPERASIONAL", "DIREKTUR_UTAMA"]),
    ("Di Atas 50 Juta", 50_000_001, None,
     ["DIREKTUR_OPERASIONAL", "DIREKTUR_KEUANGAN", "DIREKTUR_UTAMA"]),
]

_CHAIN_TYPES = [StepType.CREATE, StepType.REVIEW, StepType.APPROVE]


def init_db(bind: Optional[Engine] = None) -> None:
    """
    Create all tables that do not exist yet.

    Note: suitable for development and tests; production schemas should be
    managed with migrations.
    """
    bind = bind or default_engine
    try:
        Base.metadata.create_all(bind=bind)
        logger.info("Database tables ensured", extra={"tables": len(Base.metadata.tables)})
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise


def seed_reference_data(db: Session) -> Dict[str, int]:
    """
    Insert the standard roles, units and amount tiers.

    Roles and units are upserted by code. Rules are only seeded into an
    empty rule table so that tiers edited by an administrator survive a
    restart.

    Returns:
        Count of rows inserted per kind
    """
    inserted = {"roles": 0, "units": 0, "rules": 0}

    roles_by_code: Dict[str, Role] = {
        role.code: role for role in db.scalars(select(Role))
    }
    for code, name in ROLES:
        role = roles_by_code.get(code)
        if role is None:
            role = Role(code=code, name=name)
            db.add(role)
            roles_by_code[code] = role
            inserted["roles"] += 1

    existing_units = {unit.code: unit for unit in db.scalars(select(Unit))}
    for code, name in UNITS:
        unit = existing_units.get(code)
        if unit is None:
            db.add(Unit(code=code, name=name))
            inserted["units"] += 1
        elif unit.name != name:
            unit.name = name

    db.flush()

    has_rules = db.scalar(select(ProcurementRule.id).limit(1)) is not None
    if not has_rules:
        for name, min_amount, max_amount, chain in RULES:
            rule = ProcurementRule(name=name, min_amount=min_amount, max_amount=max_amount)
            for order, (role_code, step_type) in enumerate(zip(chain, _CHAIN_TYPES), start=1):
                rule.steps.append(
                    ProcurementStep(
                        step_order=order,
                        step_type=step_type,
                        role_id=roles_by_code[role_code].id,
                    )
                )
            db.add(rule)
            inserted["rules"] += 1

    db.commit()
    logger.info("Reference data seeded", extra=inserted)
    return inserted
