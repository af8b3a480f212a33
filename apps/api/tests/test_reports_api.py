"""
API tests for the monthly report endpoints

The app's get_db dependency is overridden so requests share the test
session (see conftest.client).
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch
from uuid import uuid4

from core.security import create_access_token
from models import Athlete, MonthlyReport, Video
from services.report_cycle import CycleCreationError
from services.report_inputs import as_utc


def _generate(client, headers, force=False):
    return client.post("/v1/reports/generate", json={"force_generate": force}, headers=headers)


class TestAuthentication:

    def test_missing_token_is_401(self, client):
        response = client.post("/v1/reports/generate")
        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHORIZED"

    def test_invalid_token_is_401(self, client):
        response = client.get("/v1/reports", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_unknown_athlete_is_401(self, client):
        token = create_access_token({"sub": str(uuid4())})
        response = client.get("/v1/reports/cycle", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_blocked_athlete_is_403(self, client, db_session, test_athlete, auth_headers):
        test_athlete.is_blocked = True
        db_session.commit()
        response = client.get("/v1/reports", headers=auth_headers)
        assert response.status_code == 403


class TestGenerateEndpoint:

    def test_generates_due_report(self, client, db_session, test_athlete, auth_headers):
        db_session.add(Video(
            athlete_id=test_athlete.id,
            sport="baseball",
            module="hitting",
            efficiency_score=77,
            created_at=as_utc(test_athlete.created_at) + timedelta(days=2),
        ))
        db_session.commit()

        response = _generate(client, auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["report_ready"] is True
        assert body["report"]["sections"]["overview"]["total_uploads"] == 1
        assert "already_generated" not in body

    def test_second_call_is_not_due(self, client, auth_headers):
        first = _generate(client, auth_headers).json()
        second = _generate(client, auth_headers).json()

        assert second["report_ready"] is False
        assert second["days_remaining"] > 0
        assert second["last_report_id"] == first["report_id"]

    def test_body_is_optional(self, client, auth_headers):
        response = client.post("/v1/reports/generate", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["report_ready"] is True

    def test_force_generate(self, client, db_session, auth_headers):
        _generate(client, auth_headers)
        forced = _generate(client, auth_headers, force=True)

        assert forced.status_code == 200
        assert forced.json()["report_ready"] is True
        assert db_session.query(MonthlyReport).count() == 2

    def test_new_account_is_not_due(self, client, db_session):
        athlete = Athlete(email=f"new_{uuid4()}@example.com")
        db_session.add(athlete)
        db_session.commit()
        token = create_access_token({"sub": str(athlete.id)})

        response = _generate(client, {"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        body = response.json()
        assert body["report_ready"] is False
        assert body["days_remaining"] == 30

    def test_cycle_creation_failure_is_500(self, client, auth_headers):
        with patch("routers.reports.generate_monthly_report", side_effect=CycleCreationError("Failed to create report cycle")):
            response = _generate(client, auth_headers)

        assert response.status_code == 500
        assert response.json() == {
            "detail": "Failed to create report cycle",
            "error_code": "CYCLE_CREATION_FAILED",
        }


class TestCycleEndpoint:

    def test_cycle_status(self, client, auth_headers):
        response = client.get("/v1/reports/cycle", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["report_due"] is True
        assert body["days_remaining"] == 0
        assert body["reports_generated"] == 0

    def test_cycle_after_generation(self, client, auth_headers):
        _generate(client, auth_headers)
        body = client.get("/v1/reports/cycle", headers=auth_headers).json()
        assert body["report_due"] is False
        assert body["reports_generated"] == 1


class TestHistoryEndpoints:

    def test_list_and_detail(self, client, auth_headers):
        report_id = _generate(client, auth_headers).json()["report_id"]

        listing = client.get("/v1/reports", headers=auth_headers)
        assert listing.status_code == 200
        assert [r["id"] for r in listing.json()] == [report_id]
        assert "report_data" not in listing.json()[0]

        detail = client.get(f"/v1/reports/{report_id}", headers=auth_headers)
        assert detail.status_code == 200
        assert detail.json()["revision"] == 0
        assert "sections" in detail.json()["report_data"]

    def test_unknown_report_is_404(self, client, auth_headers):
        response = client.get(f"/v1/reports/{uuid4()}", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_other_athletes_report_is_404(self, client, db_session, auth_headers):
        other = Athlete(email=f"other_{uuid4()}@example.com")
        db_session.add(other)
        db_session.commit()
        report = MonthlyReport(
            athlete_id=other.id,
            report_period_start=datetime(2024, 1, 1, tzinfo=timezone.utc),
            report_period_end=datetime(2024, 1, 31, tzinfo=timezone.utc),
            report_data={"sections": {}},
        )
        db_session.add(report)
        db_session.commit()

        response = client.get(f"/v1/reports/{report.id}", headers=auth_headers)
        assert response.status_code == 404


class TestMarkerEndpoints:

    def test_viewed_downloaded_library(self, client, auth_headers):
        report_id = _generate(client, auth_headers).json()["report_id"]

        viewed = client.post(f"/v1/reports/{report_id}/viewed", headers=auth_headers)
        assert viewed.status_code == 200
        assert viewed.json()["viewed_at"] is not None

        downloaded = client.post(f"/v1/reports/{report_id}/downloaded", headers=auth_headers)
        assert downloaded.json()["downloaded_at"] is not None

        saved = client.post(f"/v1/reports/{report_id}/library", headers=auth_headers)
        assert saved.json()["saved_to_library"] is True

        unsaved = client.post(
            f"/v1/reports/{report_id}/library", json={"saved": False}, headers=auth_headers
        )
        assert unsaved.json()["saved_to_library"] is False

    def test_marker_on_unknown_report_is_404(self, client, auth_headers):
        response = client.post(f"/v1/reports/{uuid4()}/viewed", headers=auth_headers)
        assert response.status_code == 404


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
