"""End-to-end tests for the campaign and candidate CSV endpoints."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from cv_export.models import CampaignApplication, Candidate
from conftest import StubStorage, build_client, make_config

CAMPAIGN_HEADER = (
    "application_id,name,email,phone,position,segment,status,created_at,"
    "cv_key,cv_filename,cv_download_url,cv_error"
)
CANDIDATE_HEADER = "candidate_id,name,email,phone,role,status,created_at,cv_key,cv_download_url,cv_error"


def _lines(response) -> list[str]:
    return response.text.split("\n")


def _seed_campaign(session: Session) -> None:
    session.add_all([
        CampaignApplication(
            id="a1",
            name="Ola Nordmann",
            email="ola@example.no",
            phone="+47 900 00 000",
            position="elektriker",
            segment="lærling",
            status="new",
            created_at=datetime(2024, 5, 2, 9, 30, tzinfo=timezone.utc),
            cv_url="abc.pdf",
            cv_filename="CV Ola.pdf",
        ),
        CampaignApplication(
            id="a2",
            name="Kari",
            position="elektriker",
            created_at=datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc),
            cv_url="",
        ),
    ])
    session.commit()


class TestCampaignExport:
    def test_exports_rows_with_a_cv(self, db_session, storage):
        _seed_campaign(db_session)
        client = build_client(db_session, storage)

        response = client.get("/api/campaign/cvs", params={"secret": "abc"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "text/csv; charset=utf-8"
        assert response.headers["cache-control"] == "no-store, no-cache, must-revalidate"
        assert response.headers["x-total-applications"] == "2"
        assert response.headers["x-total-exported"] == "1"
        assert re.fullmatch(
            r'attachment; filename="campaign-elektriker-cvs-\d{4}-\d{2}-\d{2}\.csv"',
            response.headers["content-disposition"],
        )

        lines = _lines(response)
        assert lines[0] == CAMPAIGN_HEADER
        assert len(lines) == 2
        assert lines[1] == (
            "a1,Ola Nordmann,ola@example.no,+47 900 00 000,elektriker,lærling,new,"
            "2024-05-02T09:30:00,abc.pdf,CV Ola.pdf,"
            "https://storage.example.com/candidate-cvs/abc.pdf?expires=31536000,"
        )
        assert storage.calls == [("candidate-cvs", "abc.pdf", 31_536_000)]

    def test_include_missing_keeps_rows_without_cv(self, db_session, storage):
        _seed_campaign(db_session)
        client = build_client(db_session, storage)

        response = client.get("/api/campaign/cvs", params={"secret": "abc", "includeMissing": "true"})

        lines = _lines(response)
        assert response.headers["x-total-exported"] == "2"
        assert lines[2] == "a2,Kari,,,elektriker,,,2024-05-01T09:30:00,,,,"
        assert len(storage.calls) == 1

    def test_bucket_and_expiry_parameters(self, db_session, storage):
        _seed_campaign(db_session)
        client = build_client(db_session, storage)

        client.get(
            "/api/campaign/cvs",
            params={"secret": "abc", "bucket": " archive ", "expiresInDays": "2"},
        )

        assert storage.calls == [("archive", "abc.pdf", 172_800)]

    def test_position_is_normalized(self, db_session, storage):
        _seed_campaign(db_session)
        client = build_client(db_session, storage)

        response = client.get("/api/campaign/cvs", params={"secret": "abc", "position": "  ELEKTRIKER "})

        assert response.headers["x-total-applications"] == "2"

    def test_forbidden_without_secret(self, db_session, storage):
        client = build_client(db_session, storage)

        response = client.get("/api/campaign/cvs")

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden"}

    def test_forbidden_when_no_secret_configured(self, db_session, storage):
        client = build_client(db_session, storage, make_config(campaign_export_secret=""))

        response = client.get("/api/campaign/cvs", params={"secret": ""})

        assert response.status_code == 403

    def test_development_mode_skips_secret(self, db_session, storage):
        client = build_client(db_session, storage, make_config(app_env="development", campaign_export_secret=""))

        response = client.get("/api/campaign/cvs")

        assert response.status_code == 200
        assert response.text == CAMPAIGN_HEADER

    def test_blank_position_is_rejected(self, db_session, storage):
        client = build_client(db_session, storage)

        response = client.get("/api/campaign/cvs", params={"secret": "abc", "position": "   "})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing position"}

    def test_fetch_failure_returns_localized_error(self, storage):
        session = MagicMock(spec=Session)
        session.scalars.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))
        client = build_client(session, storage)

        response = client.get("/api/campaign/cvs", params={"secret": "abc"})

        assert response.status_code == 500
        assert response.json() == {"error": "Kunne ikke hente kampanjesoknader"}
        assert storage.calls == []


class TestCandidateExport:
    def _seed(self, session: Session) -> None:
        session.add_all([
            Candidate(
                id="c1",
                name='Per "Elektro" Hansen',
                primary_role="elektriker",
                status="active",
                created_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
                cv_key="broken.pdf",
            ),
            Candidate(
                id="c2",
                name="Hansen, Anne",
                primary_role="elektriker",
                created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
                cv_key="https://files.example.com/anne.pdf",
            ),
            Candidate(id="c3", primary_role="elektriker", cv_key="ok.pdf", created_at=None),
            Candidate(id="c4", primary_role="maler", cv_key="maler.pdf"),
        ])
        session.commit()

    def test_row_errors_do_not_fail_the_export(self, db_session):
        self._seed(db_session)
        storage = StubStorage(failures={"broken.pdf": "Object not found"})
        client = build_client(db_session, storage)

        response = client.get("/api/candidates/cvs", params={"secret": "abc"})

        assert response.status_code == 200
        assert response.headers["x-total-candidates"] == "3"
        assert response.headers["x-total-exported"] == "3"
        assert re.fullmatch(
            r'attachment; filename="candidates-elektriker-cvs-\d{4}-\d{2}-\d{2}\.csv"',
            response.headers["content-disposition"],
        )
        lines = _lines(response)
        assert lines == [
            CANDIDATE_HEADER,
            'c1,"Per ""Elektro"" Hansen",,,elektriker,active,2024-06-01T00:00:00,broken.pdf,,Object not found',
            'c2,"Hansen, Anne",,,elektriker,,2024-05-01T00:00:00,https://files.example.com/anne.pdf,'
            "https://files.example.com/anne.pdf,",
            "c3,,,,elektriker,,,ok.pdf,https://storage.example.com/candidate-cvs/ok.pdf?expires=31536000,",
        ]
        assert [call[1] for call in storage.calls] == ["broken.pdf", "ok.pdf"]

    def test_role_wins_over_position(self, db_session, storage):
        self._seed(db_session)
        client = build_client(db_session, storage)

        response = client.get("/api/candidates/cvs", params={"secret": "abc", "role": "maler", "position": "elektriker"})

        assert response.headers["x-total-candidates"] == "1"
        assert _lines(response)[1].startswith("c4,")

    def test_position_is_a_synonym_for_role(self, db_session, storage):
        self._seed(db_session)
        client = build_client(db_session, storage)

        response = client.get("/api/candidates/cvs", params={"secret": "abc", "position": "Maler"})

        assert response.headers["x-total-candidates"] == "1"
        assert "candidates-maler-cvs-" in response.headers["content-disposition"]

    def test_blank_role_is_rejected(self, db_session, storage):
        client = build_client(db_session, storage)

        response = client.get("/api/candidates/cvs", params={"secret": "abc", "role": " "})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing role"}

    def test_fetch_failure_returns_localized_error(self, storage):
        session = MagicMock(spec=Session)
        session.scalars.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))
        client = build_client(session, storage)

        response = client.get("/api/candidates/cvs", params={"secret": "abc"})

        assert response.status_code == 500
        assert response.json() == {"error": "Kunne ikke hente kandidater"}


def test_health(db_session, storage):
    client = build_client(db_session, storage)
    assert client.get("/api/health").json() == {"status": "ok"}
