"""Integration tests for the activities router and calendar exports."""

from datetime import date, timedelta

from fastapi.testclient import TestClient

BASE = "/api/activities"


def _create(client: TestClient, headers: dict, **overrides) -> dict:
    payload = {
        "title": "Reunión de padres",
        "date": (date.today() + timedelta(days=5)).isoformat(),
        "time": "17:00 - 19:00",
        "location": "Local del grupo",
        "section": "manada",
    }
    payload.update(overrides)
    response = client.post(BASE, json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestActivities:
    def test_family_cannot_create(self, client: TestClient, auth_headers: dict) -> None:
        response = client.post(
            BASE,
            json={"title": "X", "date": date.today().isoformat()},
            headers=auth_headers,
        )
        assert response.status_code == 403

    def test_public_listing(self, client: TestClient, monitor_headers: dict) -> None:
        created = _create(client, monitor_headers)
        _create(client, monitor_headers, title="Campamento tropa", section="tropa")

        response = client.get(BASE, params={"section": "manada"})

        assert response.status_code == 200
        assert [a["id"] for a in response.json()] == [created["id"]]

    def test_get_missing(self, client: TestClient) -> None:
        response = client.get(f"{BASE}/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "Activity 999 not found"


class TestCalendarExports:
    def test_download_ics(self, client: TestClient, monitor_headers: dict) -> None:
        created = _create(client, monitor_headers)

        response = client.get(f"{BASE}/{created['id']}/calendar.ics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/calendar")
        assert response.headers["content-disposition"] == (
            'attachment; filename="reunin-de-padres.ics"'
        )
        stamp = created["date"].replace("-", "")
        assert f"DTSTART:{stamp}T170000" in response.text
        assert f"DTEND:{stamp}T190000" in response.text

    def test_feed(self, client: TestClient, monitor_headers: dict) -> None:
        _create(client, monitor_headers)
        _create(client, monitor_headers, title="Festival", section=None)

        response = client.get(f"{BASE}/calendar.ics", params={"section": "manada"})

        assert response.status_code == 200
        assert response.text.count("BEGIN:VEVENT") == 2
        assert 'filename="osyris-manada.ics"' in response.headers["content-disposition"]

    def test_google_calendar_link(
        self, client: TestClient, monitor_headers: dict
    ) -> None:
        created = _create(client, monitor_headers)

        response = client.get(f"{BASE}/{created['id']}/google-calendar")

        assert response.status_code == 200
        assert response.json()["url"].startswith(
            "https://calendar.google.com/calendar/render?action=TEMPLATE"
        )
