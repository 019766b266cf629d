"""
Tests for periodic reports: period math per type, which inputs feed each
prompt, upsert on regeneration, listing and the feature flag.
"""
from datetime import date, datetime

from dayframe.services import crud
from tests.conftest import USER_ID

DAY_CONTENT = {"summary": "Daily summary text", "highlights": ["Shipped"], "problems": []}
WEEK_CONTENT = {"summary": "Weekly summary text", "patterns": ["Morning focus"], "key_observations": []}


def _post(client, headers, report_type, day):
    return client.post("/api/reports", json={"reportType": report_type, "date": day}, headers=headers)


class TestWeeklyReport:
    def test_weekly_uses_daily_summaries(self, client, auth_headers, fake_llm, run_db):
        async def _seed(db):
            await crud.upsert_daily_summary(db, USER_ID, date(2026, 3, 3), DAY_CONTENT, "m")
            await crud.upsert_daily_summary(db, USER_ID, date(2026, 3, 9), {"summary": "next week"}, "m")
            await crud.create_activity(db, USER_ID, "Wrote", datetime(2026, 3, 3, 9, 0))
            await crud.create_activity(db, USER_ID, "Ran", datetime(2026, 3, 4, 9, 0))

        run_db(_seed)
        resp = _post(client, auth_headers, "weekly", "2026-03-04")
        assert resp.status_code == 201
        data = resp.json()
        assert data["report_type"] == "weekly"
        assert data["start_date"] == "2026-03-02"
        assert data["end_date"] == "2026-03-08"
        assert data["content"]["patterns"] == ["Morning writing"]
        assert data["token_count"] == 300

        _, prompt, system = fake_llm.calls[0]
        assert "Week: Mar 2, 2026 to Mar 8, 2026" in prompt
        assert "Total activities logged: 2" in prompt
        assert "**2026-03-03**" in prompt
        assert "next week" not in prompt
        assert "a week of user data" in system

    def test_regenerate_upserts(self, client, auth_headers, fake_llm):
        first = _post(client, auth_headers, "weekly", "2026-03-04").json()
        second = _post(client, auth_headers, "weekly", "2026-03-06").json()
        assert first["id"] == second["id"]
        listed = client.get("/api/reports", params={"type": "weekly"}, headers=auth_headers).json()
        assert len(listed) == 1


class TestRollups:
    def test_monthly_reads_weekly_reports_in_month(self, client, auth_headers, fake_llm, run_db):
        async def _seed(db):
            await crud.upsert_periodic_report(db, USER_ID, "weekly", date(2026, 3, 2), date(2026, 3, 8), WEEK_CONTENT, "m")
            await crud.upsert_periodic_report(db, USER_ID, "weekly", date(2026, 2, 23), date(2026, 3, 1),
                                              {"summary": "late february"}, "m")
            await crud.create_activity(db, USER_ID, "a", datetime(2026, 3, 2, 9, 0))
            await crud.create_activity(db, USER_ID, "b", datetime(2026, 3, 2, 10, 0))
            await crud.create_activity(db, USER_ID, "c", datetime(2026, 3, 9, 9, 0))

        run_db(_seed)
        resp = _post(client, auth_headers, "monthly", "2026-03-15")
        assert resp.status_code == 201
        assert resp.json()["start_date"] == "2026-03-01"
        assert resp.json()["end_date"] == "2026-03-31"

        _, prompt, _ = fake_llm.calls[0]
        assert "**Week 1 (starting 2026-03-02)**" in prompt
        assert "late february" not in prompt
        assert "Total activities: 3" in prompt
        assert "Days with activity: 2" in prompt

    def test_quarterly_labels_months(self, client, auth_headers, fake_llm, run_db):
        run_db(lambda db: crud.upsert_periodic_report(
            db, USER_ID, "monthly", date(2026, 2, 1), date(2026, 2, 28), {"summary": "February"}, "m"))
        resp = _post(client, auth_headers, "quarterly", "2026-03-15")
        assert resp.json()["start_date"] == "2026-01-01"
        assert resp.json()["end_date"] == "2026-03-31"
        assert "**February 2026**" in fake_llm.calls[0][1]

    def test_biannual_second_half(self, client, auth_headers, fake_llm, run_db):
        run_db(lambda db: crud.upsert_periodic_report(
            db, USER_ID, "quarterly", date(2026, 7, 1), date(2026, 9, 30), {"summary": "Q3"}, "m"))
        resp = _post(client, auth_headers, "biannual", "2026-08-10")
        assert resp.status_code == 201
        assert resp.json()["start_date"] == "2026-07-01"
        assert resp.json()["end_date"] == "2026-12-31"
        assert "**Q3 2026**" in fake_llm.calls[0][1]

    def test_yearly_labels_quarters(self, client, auth_headers, fake_llm, run_db):
        async def _seed(db):
            await crud.upsert_periodic_report(db, USER_ID, "quarterly", date(2026, 1, 1), date(2026, 3, 31),
                                              {"summary": "Q1", "patterns": ["x"]}, "m")
            await crud.upsert_periodic_report(db, USER_ID, "quarterly", date(2025, 10, 1), date(2025, 12, 31),
                                              {"summary": "last year"}, "m")

        run_db(_seed)
        resp = _post(client, auth_headers, "yearly", "2026-05-05")
        assert resp.json()["start_date"] == "2026-01-01"
        prompt = fake_llm.calls[0][1]
        assert "Year: 2026" in prompt
        assert "**Q1 2026**" in prompt
        assert "last year" not in prompt


class TestValidation:
    def test_unknown_type(self, client, auth_headers, fake_llm):
        resp = _post(client, auth_headers, "daily", "2026-03-04")
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid or missing field: reportType"

    def test_missing_date(self, client, auth_headers):
        resp = client.post("/api/reports", json={"reportType": "weekly"}, headers=auth_headers)
        assert resp.status_code == 400

    def test_llm_failure(self, client, auth_headers, fake_llm):
        fake_llm.report_response = "not json"
        resp = _post(client, auth_headers, "weekly", "2026-03-04")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to generate report"}


class TestListReports:
    def test_list_all_and_by_type(self, client, auth_headers, run_db):
        async def _seed(db):
            await crud.upsert_periodic_report(db, USER_ID, "weekly", date(2026, 3, 2), date(2026, 3, 8), WEEK_CONTENT, "m")
            await crud.upsert_periodic_report(db, USER_ID, "monthly", date(2026, 3, 1), date(2026, 3, 31), {}, "m")

        run_db(_seed)
        all_reports = client.get("/api/reports", headers=auth_headers).json()
        assert [r["report_type"] for r in all_reports] == ["weekly", "monthly"]

        monthly = client.get("/api/reports", params={"type": "monthly"}, headers=auth_headers).json()
        assert len(monthly) == 1

    def test_invalid_type_filter(self, client, auth_headers):
        resp = client.get("/api/reports", params={"type": "hourly"}, headers=auth_headers)
        assert resp.status_code == 400

    def test_feature_disabled(self, client, auth_headers, set_env):
        set_env(FF_REPORTS_ENABLED="false")
        resp = client.get("/api/reports", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["error"] == "Feature disabled"
