"""
Tests for ProcurementService: ServiceResult mapping and dashboards.
"""
import pytest

from procurement.core.exceptions import ErrorCode
from procurement.schemas.procurement.letter import DecisionRequest, LetterResubmit
from procurement.services.base import ErrorSeverity, ServiceFailure
from procurement.services.procurement import ProcurementService


@pytest.fixture
def service(db, settings, resolver) -> ProcurementService:
    return ProcurementService(db, settings=settings, resolver=resolver)


@pytest.fixture
def letter(service, staff, manajer, gm, make_payload):
    return service.create_letter(staff.id, make_payload()).unwrap()


class TestWorkflowResults:
    def test_create_success(self, service, staff, manajer, gm, make_payload):
        result = service.create_letter(staff.id, make_payload(letter_number="007/PBJ/2024"))

        assert result.is_success
        assert result.data.letter_number == "007/PBJ/2024"
        assert result.message == "Procurement letter created"

    def test_forbidden_create_becomes_failure(self, service, staff, make_payload):
        result = service.create_letter(staff.id, make_payload(5_000_000))

        assert not result
        assert result.error.code is ErrorCode.AUTHORIZATION_FAILED
        assert result.error.status_code == 403
        assert result.error.severity is ErrorSeverity.WARNING

    def test_missing_staffing_is_reported_as_error(self, service, staff, make_payload):
        result = service.create_letter(staff.id, make_payload())

        assert result.error.code is ErrorCode.APPROVER_NOT_FOUND
        assert result.error.severity is ErrorSeverity.ERROR
        assert result.error.details["role"] == "MANAJER_KEUANGAN"

    def test_configuration_error_is_critical(self, db, service, staff, manajer, make_payload):
        from procurement.models import ProcurementRule
        from sqlalchemy import delete

        db.execute(delete(ProcurementRule))
        db.commit()

        result = service.create_letter(staff.id, make_payload())

        assert result.error.code is ErrorCode.RULE_NOT_CONFIGURED
        assert result.error.status_code == 500
        assert result.error.severity is ErrorSeverity.CRITICAL

    def test_decide_and_progress(self, service, letter, manajer, gm):
        result = service.decide(letter.id, manajer.id, DecisionRequest(decision="APPROVE", comment="ok"))

        assert result.is_success
        assert result.data.current_approver_id == gm.id

        progress = service.get_progress(letter.id).unwrap()
        assert [entry.action.value for entry in progress.history] == ["CREATED", "REVIEWED"]

    def test_stale_version_conflict(self, service, letter, manajer):
        result = service.decide(
            letter.id,
            manajer.id,
            DecisionRequest(decision="APPROVE", expected_version=2),
        )

        assert result.error.code is ErrorCode.CONCURRENT_MODIFICATION
        assert result.error.status_code == 409

    def test_resubmit(self, service, letter, manajer, staff):
        service.decide(letter.id, manajer.id, DecisionRequest(decision="REQUEST_REVISION"))

        result = service.resubmit(letter.id, staff.id, LetterResubmit(letter_about="ATK semester 2"))

        assert result.is_success
        assert result.data.letter_about == "ATK semester 2"
        assert result.data.status.value == "PENDING_REVIEW"

    def test_get_letter_not_found(self, service):
        result = service.get_letter("missing")

        assert result.error.code is ErrorCode.LETTER_NOT_FOUND
        assert result.error.status_code == 404

    def test_unwrap_raises_service_failure(self, service):
        result = service.get_letter("missing")

        assert not result
        with pytest.raises(ServiceFailure) as exc_info:
            result.unwrap()
        assert exc_info.value.error_code is ErrorCode.LETTER_NOT_FOUND
        assert exc_info.value.status_code == 404


class TestDashboards:
    def test_dashboard_lists_letters_waiting_on_actor(
        self, service, staff, manajer, gm, make_payload
    ):
        first = service.create_letter(staff.id, make_payload(letter_number="001/A")).unwrap()
        service.create_letter(staff.id, make_payload(letter_number="002/B")).unwrap()

        page = service.list_dashboard(manajer.id).unwrap()
        assert page.page_info.total_items == 2

        service.decide(first.id, manajer.id, DecisionRequest(decision="APPROVE"))

        manajer_page = service.list_dashboard(manajer.id).unwrap()
        gm_page = service.list_dashboard(gm.id).unwrap()
        assert [letter.letter_number for letter in manajer_page.items] == ["002/B"]
        assert [letter.id for letter in gm_page.items] == [first.id]

    def test_dashboard_search(self, service, staff, manajer, gm, make_payload):
        service.create_letter(
            staff.id, make_payload(750_000, letter_number="010/X", letter_about="Kursi rapat")
        )
        service.create_letter(
            staff.id, make_payload(1_250_000, letter_number="011/Y", letter_about="Printer")
        )

        by_text = service.list_dashboard(manajer.id, search="kursi").unwrap()
        by_amount = service.list_dashboard(manajer.id, search="1250000").unwrap()

        assert [letter.letter_number for letter in by_text.items] == ["010/X"]
        assert [letter.letter_number for letter in by_amount.items] == ["011/Y"]

    def test_dashboard_pagination(self, service, staff, manajer, gm, make_payload):
        for n in range(3):
            service.create_letter(staff.id, make_payload(letter_number=f"{n:03d}/P"))

        page = service.list_dashboard(manajer.id, page=2, limit=2).unwrap()

        assert len(page.items) == 1
        assert page.page_info.to_dict() == {
            "total_items": 3,
            "page": 2,
            "per_page": 2,
            "total_pages": 2,
        }

    def test_history_lists_letters_actor_acted_on(self, service, letter, staff, manajer, gm):
        assert service.list_history(manajer.id).unwrap().page_info.total_items == 0

        service.decide(letter.id, manajer.id, DecisionRequest(decision="REJECT"))

        assert [l.id for l in service.list_history(manajer.id).unwrap().items] == [letter.id]
        assert [l.id for l in service.list_history(staff.id).unwrap().items] == [letter.id]
        assert service.list_history(gm.id).unwrap().items == []

    def test_unknown_actor(self, service):
        result = service.list_dashboard("nobody")
        assert result.error.code is ErrorCode.USER_NOT_FOUND
