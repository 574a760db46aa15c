"""Tests for the admin statistics endpoint."""

from tests.test_api.factories import ADMIN_HEADERS, CLEANER_HEADERS


class TestAdminStats:
    def test_admin_gets_report(self, client, mock_stats_service):
        resp = client.get("/api/admin/stats", headers=ADMIN_HEADERS)
        assert resp.status_code == 200

        data = resp.json()
        assert data["success"] is True
        assert data["system_stats"]["active_toilets"] == 4
        assert data["system_stats"]["toilets_with_problems"] == 1
        assert data["system_stats"]["average_rating"] == 3.25
        assert data["latency_ms"] >= 0

        cleaner = data["cleaner_stats"][0]
        assert cleaner["cleaner_name"] == "Dana"
        assert cleaner["average_cleaning_minutes"] == 15.0
        assert cleaner["ongoing_tasks"] == 1
        mock_stats_service.get_report.assert_awaited_once()

    def test_cleaner_is_forbidden(self, client, mock_stats_service):
        resp = client.get("/api/admin/stats", headers=CLEANER_HEADERS)
        assert resp.status_code == 403
        assert resp.json() == {
            "success": False,
            "message": "Admin role required",
            "error_type": "forbidden",
        }
        mock_stats_service.get_report.assert_not_awaited()

    def test_anonymous_is_unauthorized(self, client):
        resp = client.get("/api/admin/stats")
        assert resp.status_code == 401

    def test_cleaner_without_durations(self, client, mock_stats_service):
        report = mock_stats_service.get_report.return_value
        report["cleaner_stats"][0].update(
            completed_tasks=0,
            average_cleaning_minutes=None,
            fastest_cleaning_minutes=None,
            slowest_cleaning_minutes=None,
            total_cleaning_minutes=0.0,
        )

        cleaner = client.get("/api/admin/stats", headers=ADMIN_HEADERS).json()["cleaner_stats"][0]
        assert cleaner["average_cleaning_minutes"] is None
        assert cleaner["fastest_cleaning_minutes"] is None

    def test_service_failure(self, client, mock_stats_service):
        mock_stats_service.get_report.side_effect = RuntimeError("query timeout")

        resp = client.get("/api/admin/stats", headers=ADMIN_HEADERS)
        assert resp.status_code == 500
        assert resp.json()["error_type"] == "internal"
