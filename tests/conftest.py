"""
Pytest configuration and fixtures.

Every test gets its own in-memory SQLite database seeded with the
standard roles, units and amount tiers.
"""
from datetime import date
from typing import Dict

import pytest
from sqlalchemy.orm import sessionmaker

from procurement.config.settings import Settings
from procurement.db.init_db import seed_reference_data
from procurement.db.session import build_engine
from procurement.models import Base, Role, Unit, User
from procurement.repositories.organization import RoleRepository, UnitRepository
from procurement.schemas.procurement.letter import LetterCreate
from procurement.services.procurement import ApproverResolver, RoutingEngine


@pytest.fixture
def db_engine():
    """In-memory database shared by every session of one test."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    seed_reference_data(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(DATABASE_URL="sqlite://", CENTRAL_UNIT_CODE="HO", SEED_ON_STARTUP=False)


@pytest.fixture
def roles(db) -> Dict[str, Role]:
    return {role.code: role for role in RoleRepository(db).list_all()}


@pytest.fixture
def units(db) -> Dict[str, Unit]:
    return {unit.code: unit for unit in UnitRepository(db).list_all()}


@pytest.fixture
def make_user(db, roles, units):
    """Factory: ``make_user("Rina", "GM", "UBGH")``."""
    counter = {"n": 0}

    def _make(name: str, role_code: str, unit_code: str = "UBGH", is_active: bool = True) -> User:
        counter["n"] += 1
        user = User(
            name=name,
            email=f"user{counter['n']}@procurement.test",
            role_id=roles[role_code].id,
            unit_id=units[unit_code].id,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        return user

    return _make


# Staff of the UB Guest House and the head-office officers above them.

@pytest.fixture
def staff(make_user) -> User:
    return make_user("Siti Staff", "STAFF")


@pytest.fixture
def manajer(make_user) -> User:
    return make_user("Budi Manajer", "MANAJER_KEUANGAN")


@pytest.fixture
def gm(make_user) -> User:
    return make_user("Rina GM", "GM")


@pytest.fixture
def general_affair(make_user) -> User:
    return make_user("Agus GA", "GENERAL_AFFAIR", "HO")


@pytest.fixture
def kadiv(make_user) -> User:
    return make_user("Dewi Kadiv", "KADIV_KEUANGAN", "HO")


@pytest.fixture
def direktur_keuangan(make_user) -> User:
    return make_user("Hendra Dirkeu", "DIREKTUR_KEUANGAN", "HO")


@pytest.fixture
def resolver(db, settings) -> ApproverResolver:
    return ApproverResolver.from_settings(db, settings)


@pytest.fixture
def routing(db, resolver) -> RoutingEngine:
    return RoutingEngine(db, resolver)


@pytest.fixture
def make_payload():
    """Factory for LetterCreate bodies; keyword overrides win."""

    def _make(amount: int = 1_500_000, **overrides) -> LetterCreate:
        data = {
            "letter_number": "001/PBJ/UBGH/2024",
            "letter_about": "Pengadaan alat tulis kantor",
            "amount": amount,
            "incoming_letter_date": date(2024, 5, 2),
        }
        data.update(overrides)
        return LetterCreate(**data)

    return _make
