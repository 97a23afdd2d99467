"""
HTTP surface tests through FastAPI's TestClient.
"""
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from procurement.db.session import get_db
from procurement.main import create_app

API = "/api/v1"


@pytest.fixture
def client(db, session_factory):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _as(user):
    return {"X-Actor-Id": user.id}


def _letter_body(**overrides):
    body = {
        "letter_number": "021/PBJ/UBGH/2024",
        "letter_about": "Pengadaan proyektor ruang rapat",
        "nominal": 1_500_000,
        "incoming_letter_date": "2024-05-02",
    }
    body.update(overrides)
    return body


class TestProcurementEndpoints:
    def test_create_letter(self, client, staff, manajer, gm):
        response = client.post(f"{API}/procurement", json=_letter_body(), headers=_as(staff))

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "PENDING_REVIEW"
        assert data["amount"] == 1_500_000
        assert data["current_approver"] == {"id": manajer.id, "name": "Budi Manajer"}
        assert data["unit"]["code"] == "UBGH"
        assert data["version"] == 1

    def test_actor_header_is_required(self, client):
        response = client.post(f"{API}/procurement", json=_letter_body())

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_oversized_amount_is_validation_error(self, client, staff):
        response = client.post(
            f"{API}/procurement",
            json=_letter_body(nominal=10**20),
            headers=_as(staff),
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_forbidden_create(self, client, staff):
        response = client.post(
            f"{API}/procurement",
            json=_letter_body(nominal=5_000_000),
            headers=_as(staff),
        )

        assert response.status_code == 403
        error = response.json()["error"]
        assert error["code"] == "AUTHORIZATION_FAILED"
        assert error["details"]["required_role"] == "GENERAL_AFFAIR"

    def test_decision_flow_and_progress(self, client, staff, manajer, gm):
        letter_id = client.post(
            f"{API}/procurement", json=_letter_body(), headers=_as(staff)
        ).json()["data"]["id"]

        wrong_turn = client.post(
            f"{API}/procurement/decision/{letter_id}",
            json={"decision": "APPROVE"},
            headers=_as(gm),
        )
        assert wrong_turn.status_code == 403

        for approver in (manajer, gm):
            response = client.post(
                f"{API}/procurement/decision/{letter_id}",
                json={"decision": "APPROVE", "comment": "Disetujui"},
                headers=_as(approver),
            )
            assert response.status_code == 200

        progress = client.get(f"{API}/procurement/{letter_id}/progress").json()["data"]
        assert progress["letter"]["status"] == "APPROVED"
        assert progress["letter"]["current_approver_id"] is None
        assert [entry["action"] for entry in progress["history"]] == [
            "CREATED",
            "REVIEWED",
            "APPROVED",
        ]
        assert progress["history"][1]["actor"]["name"] == "Budi Manajer"

    def test_revision_and_resubmit(self, client, staff, manajer, gm):
        letter_id = client.post(
            f"{API}/procurement", json=_letter_body(), headers=_as(staff)
        ).json()["data"]["id"]
        client.post(
            f"{API}/procurement/decision/{letter_id}",
            json={"decision": "REQUEST_REVISION", "comment": "Tambahkan penawaran"},
            headers=_as(manajer),
        )

        dashboard = client.get(f"{API}/procurement", headers=_as(staff)).json()["data"]
        assert [item["id"] for item in dashboard["items"]] == [letter_id]

        response = client.put(
            f"{API}/procurement/{letter_id}",
            json={"nominal": 1_750_000, "comment": "Penawaran dilampirkan"},
            headers=_as(staff),
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "PENDING_REVIEW"
        assert response.json()["data"]["amount"] == 1_750_000

    def test_stale_version_is_conflict(self, client, staff, manajer, gm):
        letter_id = client.post(
            f"{API}/procurement", json=_letter_body(), headers=_as(staff)
        ).json()["data"]["id"]

        response = client.post(
            f"{API}/procurement/decision/{letter_id}",
            json={"decision": "APPROVE", "expected_version": 4},
            headers=_as(manajer),
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONCURRENT_MODIFICATION"

    def test_dashboard_and_history(self, client, staff, manajer, gm):
        client.post(f"{API}/procurement", json=_letter_body(), headers=_as(staff))

        dashboard = client.get(f"{API}/procurement?limit=5", headers=_as(manajer)).json()["data"]
        history = client.get(f"{API}/procurement/history", headers=_as(staff)).json()["data"]

        assert len(dashboard["items"]) == 1
        assert dashboard["pagination"] == {
            "total_items": 1,
            "page": 1,
            "per_page": 5,
            "total_pages": 1,
        }
        assert history["pagination"]["total_items"] == 1

    def test_unknown_letter(self, client):
        response = client.get(f"{API}/procurement/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "LETTER_NOT_FOUND"

    def test_request_id_is_echoed(self, client):
        response = client.get(f"{API}/roles", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
        assert "X-Process-Time" in response.headers


class TestRuleEndpoints:
    def test_coverage(self, client):
        report = client.get(f"{API}/rules/coverage").json()["data"]

        assert report["complete"] is True
        assert report["gaps"] == []
        assert len(report["rules"]) == 4

    def test_list_and_get(self, client):
        rules = client.get(f"{API}/rules").json()["data"]["items"]
        first = client.get(f"{API}/rules/{rules[0]['id']}").json()["data"]

        assert first["name"] == "Hingga 2 Juta"
        assert [step["role"]["code"] for step in first["steps"]] == [
            "STAFF",
            "MANAJER_KEUANGAN",
            "GM",
        ]

    def test_create_overlapping_rule(self, client, roles):
        response = client.post(
            f"{API}/rules",
            json={
                "name": "Tier Baru",
                "min_amount": 0,
                "max_amount": 500_000,
                "steps": [
                    {"step_order": 1, "step_type": "CREATE", "role_id": roles["STAFF"].id},
                    {"step_order": 2, "step_type": "APPROVE", "role_id": roles["GM"].id},
                ],
            },
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"

    def test_update_delete_and_gap(self, client):
        rules = client.get(f"{API}/rules").json()["data"]["items"]
        top = rules[-1]

        assert client.put(f"{API}/rules/{top['id']}", json={"max_amount": 80_000_000}).status_code == 200
        gaps = client.get(f"{API}/rules/coverage").json()["data"]["gaps"]
        assert gaps == [{"low": 80_000_001, "high": None}]

        assert client.delete(f"{API}/rules/{top['id']}").status_code == 200
        assert client.get(f"{API}/rules/{top['id']}").status_code == 404

    def test_reassign_step_roles(self, client, roles):
        rule_id = client.get(f"{API}/rules").json()["data"]["items"][0]["id"]

        response = client.put(
            f"{API}/rules/{rule_id}/steps",
            json={"steps": [{"step_order": 3, "role_id": roles["KADIV_KEUANGAN"].id}]},
        )

        assert response.status_code == 200
        assert response.json()["data"]["steps"][2]["role"]["code"] == "KADIV_KEUANGAN"


class TestOrganizationEndpoints:
    def test_roles_and_units(self, client):
        roles = client.get(f"{API}/roles").json()["data"]
        units = client.get(f"{API}/units").json()["data"]

        assert len(roles) == 9
        assert {"HO", "UBGH"} <= {unit["code"] for unit in units}


class TestLifespan:
    def test_database_is_prepared_once_on_startup(self):
        app = create_app()

        with patch("procurement.main.prepare_database") as prepare:
            with TestClient(app):
                prepare.assert_called_once_with()

        assert app.router.on_startup == []
