"""
HTTP tests for the Peptide Tracker API routes.

Requests go through FastAPI's TestClient with the store bound to a
temporary database. Bodies and responses use camelCase field names.
"""
import httpx
import pytest

from server.peptide_api.config import get_settings
from server.peptide_api.main import app
from server.peptide_api.models import AlertDraft
from server.peptide_api.services.store import get_store

PEPTIDE_BODY = {
    "name": "BPC-157",
    "category": "recovery",
    "typicalDoseRange": {"min": 0.25, "max": 0.5, "unit": "mg", "frequency": "daily"},
    "safetyNotes": ["Rotate injection sites"],
}


def _injection_body(peptide_id: str, **overrides) -> dict:
    body = {
        "peptideId": peptide_id,
        "dose": 0.25,
        "doseUnit": "mg",
        "injectionSite": {"location": "abdomen", "side": "left"},
        "timestamp": "2026-03-09T09:00:00",
    }
    body.update(overrides)
    return body


class TestAuth:
    """Identity comes from the configured header."""

    def test_missing_header(self, client):
        response = client.get("/api/peptides")
        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized"

    def test_unknown_user(self, client):
        response = client.get("/api/peptides", headers={"X-User-Id": "ghost"})
        assert response.status_code == 404
        assert response.json()["detail"] == "User not found"

    def test_register_and_fetch(self, client):
        headers = {"X-User-Id": "new_user"}

        created = client.post("/api/users/me", json={"email": "new@example.com"}, headers=headers)
        assert created.status_code == 200
        assert created.json()["externalId"] == "new_user"
        assert created.json()["subscriptionTier"] == "free"

        again = client.post("/api/users/me", json={"email": "other@example.com"}, headers=headers)
        assert again.json()["id"] == created.json()["id"]

        me = client.get("/api/users/me", headers=headers)
        assert me.json()["email"] == "new@example.com"

    def test_update_user_preferences(self, client, auth_headers):
        response = client.put(
            "/api/users/me/preferences",
            json={"timezone": "Europe/Berlin", "units": {"weight": "lbs", "dose": "mcg"}},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["preferences"]["timezone"] == "Europe/Berlin"
        assert response.json()["preferences"]["units"]["weight"] == "lbs"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy", "service": "peptide-api"}


class TestPeptideRoutes:
    def test_create_get_delete(self, client, auth_headers):
        created = client.post("/api/peptides", json=PEPTIDE_BODY, headers=auth_headers)
        assert created.status_code == 201
        peptide = created.json()
        assert peptide["isCustom"] is True
        assert peptide["typicalDoseRange"]["unit"] == "mg"

        listed = client.get("/api/peptides", headers=auth_headers).json()
        assert [p["id"] for p in listed] == [peptide["id"]]

        assert client.delete(f"/api/peptides/{peptide['id']}", headers=auth_headers).status_code == 204
        assert client.get(f"/api/peptides/{peptide['id']}", headers=auth_headers).status_code == 404

    def test_invalid_dose_range(self, client, auth_headers):
        body = {**PEPTIDE_BODY, "typicalDoseRange": {"min": 2, "max": 1, "unit": "mg", "frequency": "daily"}}
        assert client.post("/api/peptides", json=body, headers=auth_headers).status_code == 422

    def test_update(self, client, auth_headers, peptide):
        response = client.put(
            f"/api/peptides/{peptide.id}", json={"category": "longevity"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["category"] == "longevity"
        assert response.json()["name"] == "BPC-157"

    def test_templates(self, client, auth_headers):
        assert client.get("/api/peptides/templates", headers=auth_headers).json() == []


class TestInjectionRoutes:
    def test_log_and_list(self, client, auth_headers, peptide):
        created = client.post("/api/injections", json=_injection_body(peptide.id), headers=auth_headers)
        assert created.status_code == 201

        listed = client.get("/api/injections", headers=auth_headers).json()
        assert len(listed) == 1
        assert listed[0]["peptideName"] == "BPC-157"
        assert listed[0]["injectionSite"]["location"] == "abdomen"
        assert listed[0]["injectionSite"]["side"] == "left"

    def test_unknown_peptide(self, client, auth_headers):
        response = client.post("/api/injections", json=_injection_body("missing"), headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Peptide not found"

    def test_unknown_protocol(self, client, auth_headers, peptide):
        body = _injection_body(peptide.id, protocolId="missing")
        assert client.post("/api/injections", json=body, headers=auth_headers).status_code == 404

    def test_dose_must_be_positive(self, client, auth_headers, peptide):
        body = _injection_body(peptide.id, dose=0)
        assert client.post("/api/injections", json=body, headers=auth_headers).status_code == 422

    def test_site_filter(self, client, auth_headers, peptide):
        client.post("/api/injections", json=_injection_body(peptide.id), headers=auth_headers)
        client.post(
            "/api/injections",
            json=_injection_body(peptide.id, injectionSite={"location": "thigh", "side": "right"}),
            headers=auth_headers,
        )

        response = client.get("/api/injections", params={"site": "thigh"}, headers=auth_headers)

        assert [i["injectionSite"]["location"] for i in response.json()] == ["thigh"]

    def test_limit_is_bounded(self, client, auth_headers):
        response = client.get("/api/injections", params={"limit": 500}, headers=auth_headers)
        assert response.status_code == 422

    def test_update_and_duplicate(self, client, auth_headers, peptide):
        injection = client.post(
            "/api/injections", json=_injection_body(peptide.id), headers=auth_headers
        ).json()

        updated = client.put(
            f"/api/injections/{injection['id']}", json={"notes": "evening"}, headers=auth_headers
        )
        assert updated.json()["notes"] == "evening"

        duplicate = client.post(f"/api/injections/{injection['id']}/duplicate", headers=auth_headers)
        assert duplicate.status_code == 201
        assert duplicate.json()["notes"] == "evening (duplicated)"
        assert duplicate.json()["id"] != injection["id"]

    def test_delete(self, client, auth_headers, peptide):
        injection = client.post(
            "/api/injections", json=_injection_body(peptide.id), headers=auth_headers
        ).json()

        assert client.delete(f"/api/injections/{injection['id']}", headers=auth_headers).status_code == 204
        assert client.get(f"/api/injections/{injection['id']}", headers=auth_headers).status_code == 404

    def test_weekly_summary(self, client, auth_headers, protocol):
        response = client.get("/api/injections/weekly-summary", headers=auth_headers)

        assert response.status_code == 200
        summary = response.json()
        assert len(summary["dailyActivity"]) == 7
        assert summary["totalInjections"] == 0
        assert summary["weeklyTrend"] in ("improving", "declining", "stable")


class TestProtocolRoutes:
    def _custom_protocol(self, client, auth_headers, peptide_id):
        return client.post("/api/protocols", json={
            "peptideId": peptide_id,
            "name": "CJC Mon/Thu",
            "dailyTarget": 1.0,
            "scheduleType": "custom",
            "scheduleConfig": {"days": ["monday", "thursday"]},
            "startDate": "2026-03-01",
        }, headers=auth_headers)

    def test_create_custom(self, client, auth_headers, peptide):
        response = self._custom_protocol(client, auth_headers, peptide.id)

        assert response.status_code == 201
        assert response.json()["scheduleConfig"]["days"] == ["monday", "thursday"]

    def test_custom_without_days(self, client, auth_headers, peptide):
        response = client.post("/api/protocols", json={
            "peptideId": peptide.id,
            "name": "Broken",
            "scheduleType": "custom",
            "startDate": "2026-03-01",
        }, headers=auth_headers)

        assert response.status_code == 422

    def test_update_cannot_empty_custom_days(self, client, auth_headers, peptide):
        protocol = self._custom_protocol(client, auth_headers, peptide.id).json()

        response = client.put(
            f"/api/protocols/{protocol['id']}", json={"scheduleConfig": {"days": []}}, headers=auth_headers
        )

        assert response.status_code == 400

    def test_switch_to_custom_keeps_stored_days(self, client, auth_headers, peptide):
        protocol = client.post("/api/protocols", json={
            "peptideId": peptide.id,
            "name": "CJC Weekly",
            "weeklyTarget": 2.0,
            "scheduleType": "weekly",
            "scheduleConfig": {"days": ["monday"]},
            "startDate": "2026-03-01",
        }, headers=auth_headers).json()

        response = client.put(
            f"/api/protocols/{protocol['id']}", json={"scheduleType": "custom"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["scheduleType"] == "custom"
        assert response.json()["scheduleConfig"]["days"] == ["monday"]

    def test_switch_to_custom_without_days(self, client, auth_headers, protocol):
        response = client.put(
            f"/api/protocols/{protocol.id}", json={"scheduleType": "custom"}, headers=auth_headers
        )

        assert response.status_code == 400

    def test_end_before_start_in_body(self, client, auth_headers, protocol):
        response = client.put(
            f"/api/protocols/{protocol.id}",
            json={"startDate": "2026-03-10", "endDate": "2026-03-01"},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_unknown_peptide(self, client, auth_headers):
        response = self._custom_protocol(client, auth_headers, "missing")
        assert response.status_code == 404

    def test_weekly_progress_with_trends(self, client, auth_headers, protocol):
        response = client.get(
            "/api/protocols/weekly-progress", params={"include_trends": "true"}, headers=auth_headers
        )

        assert response.status_code == 200
        progress = response.json()
        assert progress["totalActiveProtocols"] == 1
        assert progress["protocolProgresses"][0]["protocol"]["id"] == protocol.id
        assert len(progress["trends"]) == get_settings().trend_weeks

    def test_weekly_progress_without_trends(self, client, auth_headers, protocol):
        progress = client.get("/api/protocols/weekly-progress", headers=auth_headers).json()
        assert progress["trends"] is None

    def test_pause_and_delete(self, client, auth_headers, protocol):
        paused = client.put(
            f"/api/protocols/{protocol.id}", json={"isActive": False}, headers=auth_headers
        )
        assert paused.json()["isActive"] is False
        assert client.get("/api/protocols", headers=auth_headers).json() == []

        listed = client.get("/api/protocols", params={"include_inactive": "true"}, headers=auth_headers)
        assert len(listed.json()) == 1

        assert client.delete(f"/api/protocols/{protocol.id}", headers=auth_headers).status_code == 204
        assert client.get(f"/api/protocols/{protocol.id}", headers=auth_headers).status_code == 404


class TestWellnessRoutes:
    def test_record_and_list(self, client, auth_headers):
        created = client.post("/api/wellness-metrics", json={
            "metricType": "weight", "value": 82.5, "unit": "kg", "timestamp": "2026-03-09T07:00:00",
        }, headers=auth_headers)
        assert created.status_code == 201

        listed = client.get("/api/wellness-metrics", params={"metric_type": "weight"}, headers=auth_headers)
        assert [m["value"] for m in listed.json()] == [82.5]

    def test_unknown_injection(self, client, auth_headers):
        response = client.post("/api/wellness-metrics", json={
            "metricType": "mood", "value": 7, "unit": "score",
            "timestamp": "2026-03-09T07:00:00", "injectionId": "missing",
        }, headers=auth_headers)
        assert response.status_code == 404


class TestAlertRoutes:
    def test_invalid_action(self, client, auth_headers):
        response = client.post("/api/alerts", json={"action": "explode"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid action"

    def test_mark_read_needs_id(self, client, auth_headers):
        response = client.post("/api/alerts", json={"action": "markRead"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Alert ID required"

    def test_unknown_alert(self, client, auth_headers):
        response = client.post(
            "/api/alerts", json={"action": "dismiss", "alertId": "missing"}, headers=auth_headers
        )
        assert response.status_code == 404

    def test_calculate_then_list(self, client, auth_headers, protocol):
        calculated = client.post("/api/alerts", json={"action": "calculateAlerts"}, headers=auth_headers)

        assert calculated.status_code == 200
        body = calculated.json()
        assert body["message"].startswith("Created ")
        assert set(body["counts"]) == {"dose", "missedDose", "siteRotation", "milestones"}

        alerts = client.get("/api/alerts", headers=auth_headers).json()["alerts"]
        assert len(alerts) == sum(body["counts"].values())

    def test_mark_read(self, client, auth_headers, store, user):
        alert = store.create_alert(user.id, AlertDraft(
            alert_type="protocol_milestone", severity="success", title="25%", message="Keep going",
        ))

        response = client.post(
            "/api/alerts", json={"action": "markRead", "alertId": alert.id}, headers=auth_headers
        )
        assert response.json() == {"message": "Alert marked as read"}

        unread = client.get("/api/alerts", params={"unread_only": "true"}, headers=auth_headers)
        assert unread.json()["alerts"] == []

    def test_dismissed_alerts_in_history(self, client, auth_headers, store, user):
        alert = store.create_alert(user.id, AlertDraft(
            alert_type="site_rotation_reminder", severity="info", title="Rotate", message="Try the thigh",
        ))
        client.post("/api/alerts", json={"action": "dismiss", "alertId": alert.id}, headers=auth_headers)

        live = client.get("/api/alerts", headers=auth_headers).json()["alerts"]
        history = client.get(
            "/api/alerts", params={"active_only": "false"}, headers=auth_headers
        ).json()["alerts"]

        assert live == []
        assert [a["id"] for a in history] == [alert.id]
        assert history[0]["isDismissed"] is True


class TestNotificationPreferenceRoutes:
    def test_defaults(self, client, auth_headers):
        preferences = client.get("/api/user/notification-preferences", headers=auth_headers).json()["preferences"]

        assert preferences["doseLimit"]["threshold"] == 90
        assert preferences["missedDose"]["gracePeriodHours"] == 6
        assert preferences["quietHours"]["startTime"] == "22:00"

    def test_update(self, client, auth_headers):
        response = client.put("/api/user/notification-preferences", json={
            "preferences": {"doseLimit": {"enabled": True, "threshold": 80}},
        }, headers=auth_headers)
        assert response.json() == {"message": "Preferences updated successfully"}

        preferences = client.get("/api/user/notification-preferences", headers=auth_headers).json()["preferences"]
        assert preferences["doseLimit"]["threshold"] == 80
        assert preferences["siteRotation"]["maxConsecutiveUses"] == 3

    def test_threshold_is_a_percentage(self, client, auth_headers):
        response = client.put("/api/user/notification-preferences", json={
            "preferences": {"doseLimit": {"threshold": 150}},
        }, headers=auth_headers)
        assert response.status_code == 422


class TestAnalyticsRoutes:
    def test_sites_view(self, client, auth_headers, peptide):
        client.post("/api/injections", json=_injection_body(peptide.id), headers=auth_headers)

        response = client.get(
            "/api/analytics",
            params={"type": "sites", "start_date": "2026-03-01T00:00:00", "end_date": "2026-03-31T00:00:00"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        sites = response.json()["data"]
        assert sites[0]["location"] == "abdomen"
        assert sites[0]["usagePercentage"] == 100

    def test_comprehensive_default(self, client, auth_headers, protocol):
        data = client.get("/api/analytics", headers=auth_headers).json()["data"]

        assert set(data) >= {"protocolAdherence", "injectionSites", "timingPatterns", "keyInsights"}
        assert data["protocolAdherence"][0]["protocolId"] == protocol.id

    def test_invalid_type(self, client, auth_headers):
        response = client.get("/api/analytics", params={"type": "horoscope"}, headers=auth_headers)
        assert response.status_code == 400

    def test_reversed_range(self, client, auth_headers):
        response = client.get("/api/analytics", params={
            "start_date": "2026-03-10T00:00:00", "end_date": "2026-03-01T00:00:00",
        }, headers=auth_headers)
        assert response.status_code == 400

    def test_csv_export(self, client, auth_headers, protocol):
        response = client.get("/api/analytics/export", params={"format": "csv"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="peptide-analytics.csv"' in response.headers["content-disposition"]
        assert "PROTOCOL ADHERENCE" in response.text
        assert "BPC-157 Daily" in response.text

    def test_text_export(self, client, auth_headers, protocol):
        response = client.get("/api/analytics/export", params={"format": "pdf"}, headers=auth_headers)

        assert response.status_code == 200
        assert "peptide-analytics-report.txt" in response.headers["content-disposition"]
        assert "SUMMARY" in response.text

    def test_unsupported_format(self, client, auth_headers):
        response = client.get("/api/analytics/export", params={"format": "xml"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Unsupported format"


class TestAsyncClient:
    """The app also serves through an async transport."""

    @pytest.mark.asyncio
    async def test_peptide_list_over_asgi(self, store, user, peptide):
        app.dependency_overrides[get_store] = lambda: store
        try:
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/api/peptides", headers={"X-User-Id": user.external_id})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 200
        assert response.json()[0]["name"] == "BPC-157"
