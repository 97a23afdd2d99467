"""
Tests for resolving an approval step's role to a single user.
"""
import pytest

from procurement.core.exceptions import (
    AmbiguousApproverError,
    ApproverNotFoundError,
    ConfigurationError,
)
from procurement.services.procurement import ApproverResolver


class TestApproverResolver:
    """Home-unit and central-unit resolution"""

    def test_local_role_resolves_in_home_unit(self, resolver, roles, units, make_user):
        local = make_user("Rina GM", "GM", "UBGH")
        make_user("Tono GM", "GM", "UBC")

        approver = resolver.resolve(roles["GM"].id, units["UBGH"].id)

        assert approver.id == local.id

    def test_central_role_resolves_at_head_office(self, resolver, roles, units, make_user):
        central = make_user("Dewi Kadiv", "KADIV_KEUANGAN", "HO")
        make_user("Decoy Kadiv", "KADIV_KEUANGAN", "UBGH")

        approver = resolver.resolve(roles["KADIV_KEUANGAN"].id, units["UBGH"].id)

        assert approver.id == central.id
        assert resolver.is_central(roles["KADIV_KEUANGAN"].id)
        assert not resolver.is_central(roles["GM"].id)

    def test_inactive_users_are_ignored(self, resolver, roles, units, make_user):
        make_user("Old GM", "GM", "UBGH", is_active=False)
        active = make_user("New GM", "GM", "UBGH")

        assert resolver.resolve(roles["GM"].id, units["UBGH"].id).id == active.id

    def test_missing_approver(self, resolver, roles, units):
        with pytest.raises(ApproverNotFoundError) as exc_info:
            resolver.resolve(roles["GM"].id, units["UBGH"].id)

        assert exc_info.value.details["role"] == "GM"
        assert exc_info.value.details["unit"] == "UBGH"

    def test_more_than_one_candidate_is_a_configuration_error(self, resolver, roles, units, make_user):
        make_user("GM One", "GM", "UBGH")
        make_user("GM Two", "GM", "UBGH")

        with pytest.raises(AmbiguousApproverError) as exc_info:
            resolver.resolve(roles["GM"].id, units["UBGH"].id)

        assert len(exc_info.value.details["user_ids"]) == 2

    def test_missing_central_unit_fails_fast(self, db, roles, units, make_user):
        make_user("Dewi Kadiv", "KADIV_KEUANGAN", "HO")
        resolver = ApproverResolver(
            db,
            central_unit_code="PUSAT",
            central_role_ids=[roles["KADIV_KEUANGAN"].id],
        )

        with pytest.raises(ConfigurationError) as exc_info:
            resolver.resolve(roles["KADIV_KEUANGAN"].id, units["UBGH"].id)

        assert exc_info.value.details["config_key"] == "CENTRAL_UNIT_CODE"

    def test_missing_central_unit_fails_for_local_roles_too(self, db, roles, units, make_user):
        make_user("Rina GM", "GM", "UBGH")
        resolver = ApproverResolver(
            db,
            central_unit_code="PUSAT",
            central_role_ids=[roles["KADIV_KEUANGAN"].id],
        )

        with pytest.raises(ConfigurationError):
            resolver.resolve(roles["GM"].id, units["UBGH"].id)

    def test_alternate_topology(self, db, roles, units, make_user):
        """GM acting from a different central unit when configured so."""
        head = make_user("Central GM", "GM", "GBA")
        make_user("Local GM", "GM", "UBGH")
        resolver = ApproverResolver(db, central_unit_code="GBA", central_role_ids=[roles["GM"].id])

        assert resolver.resolve(roles["GM"].id, units["UBGH"].id).id == head.id

    def test_from_settings_skips_unknown_codes(self, db, settings, roles):
        settings.CENTRAL_SCOPE_ROLE_CODES = "KADIV_KEUANGAN, NOT_A_ROLE"

        resolver = ApproverResolver.from_settings(db, settings)

        assert resolver.central_role_ids == frozenset({roles["KADIV_KEUANGAN"].id})
