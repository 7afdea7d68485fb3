"""
Unit tests for the activity log, timeline, baby and medicine API routes.
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from baby_tracker.models.base import utcnow


def iso(delta_hours: float = 0) -> str:
    return (utcnow() - timedelta(hours=delta_hours)).isoformat()


@pytest.fixture
def feed(client, auth_headers, sample_baby) -> dict:
    response = client.post(
        "/api/feed-log",
        json={
            "babyId": str(sample_baby.id),
            "time": iso(1),
            "type": "BOTTLE",
            "amount": 4,
            "unitAbbr": "OZ",
        },
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()["data"]


class TestFeedLogRoutes:
    def test_create(self, feed, sample_baby, sample_family):
        assert feed["babyId"] == str(sample_baby.id)
        assert feed["familyId"] == str(sample_family.id)
        # System caretaker entries are not attributed to anyone
        assert feed["caretakerId"] is None

    def test_list_and_get(self, client, auth_headers, feed, sample_baby):
        listed = client.get(
            "/api/feed-log", params={"babyId": str(sample_baby.id)}, headers=auth_headers
        )
        assert [log["id"] for log in listed.json()["data"]] == [feed["id"]]

        single = client.get(f"/api/feed-log/{feed['id']}", headers=auth_headers)
        assert single.json()["data"]["amount"] == 4

    def test_update(self, client, auth_headers, feed):
        response = client.put(
            f"/api/feed-log/{feed['id']}", json={"amount": 6.5}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["amount"] == 6.5

    def test_delete(self, client, auth_headers, feed):
        response = client.delete(f"/api/feed-log/{feed['id']}", headers=auth_headers)
        assert response.json() == {"success": True, "data": None}

        missing = client.get(f"/api/feed-log/{feed['id']}", headers=auth_headers)
        assert missing.status_code == 404
        assert missing.json()["error"] == "Feed log not found"

    def test_last_feed(self, client, auth_headers, feed, sample_baby):
        response = client.get(
            "/api/feed-log/last", params={"babyId": str(sample_baby.id)}, headers=auth_headers
        )
        assert response.json()["data"]["id"] == feed["id"]

    def test_null_time_400(self, client, auth_headers, feed):
        response = client.put(
            f"/api/feed-log/{feed['id']}", json={"time": None}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "time cannot be null"}
        unchanged = client.get(f"/api/feed-log/{feed['id']}", headers=auth_headers)
        assert unchanged.json()["data"]["time"] == feed["time"]

    def test_null_optional_field_clears_it(self, client, auth_headers, feed):
        response = client.put(
            f"/api/feed-log/{feed['id']}", json={"unitAbbr": None}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["unitAbbr"] is None

    def test_invalid_body_400(self, client, auth_headers, sample_baby):
        response = client.post(
            "/api/feed-log",
            json={"babyId": str(sample_baby.id), "time": iso(), "type": "JUICE"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_requires_auth(self, client, sample_family):
        assert client.get("/api/feed-log").status_code == 401


class TestFamilyIsolation:
    def test_other_family_cannot_read(self, client, other_auth_headers, feed):
        response = client.get(f"/api/feed-log/{feed['id']}", headers=other_auth_headers)
        assert response.status_code == 404

        listed = client.get("/api/feed-log", headers=other_auth_headers)
        assert listed.json()["data"] == []

    def test_other_family_cannot_update(self, client, other_auth_headers, feed):
        response = client.put(
            f"/api/feed-log/{feed['id']}", json={"amount": 1}, headers=other_auth_headers
        )

        assert response.status_code == 403
        assert response.json() == {"success": False, "error": "Forbidden"}

    def test_other_family_cannot_delete(self, client, other_auth_headers, feed):
        response = client.delete(f"/api/feed-log/{feed['id']}", headers=other_auth_headers)
        assert response.status_code == 403

    def test_cannot_log_for_other_familys_baby(self, client, auth_headers, other_baby):
        response = client.post(
            "/api/diaper-log",
            json={"babyId": str(other_baby.id), "time": iso(), "type": "WET"},
            headers=auth_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Baby not found in this family."


class TestOtherLogTypes:
    def test_sleep_log(self, client, auth_headers, sample_baby):
        response = client.post(
            "/api/sleep-log",
            json={"babyId": str(sample_baby.id), "startTime": iso(2), "type": "NAP"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["endTime"] is None

    def test_medicine_log(self, client, auth_headers, sample_baby, sample_medicine):
        response = client.post(
            "/api/medicine-log",
            json={
                "babyId": str(sample_baby.id),
                "medicineId": str(sample_medicine.id),
                "time": iso(),
                "doseAmount": 1.5,
                "unitAbbr": "ML",
            },
            headers=auth_headers,
        )
        assert response.status_code == 201

    def test_measurement(self, client, auth_headers, sample_baby):
        response = client.post(
            "/api/measurement",
            json={
                "babyId": str(sample_baby.id),
                "date": iso(),
                "type": "WEIGHT",
                "value": 7.2,
                "unit": "KG",
            },
            headers=auth_headers,
        )
        assert response.status_code == 201

    def test_bath_log_defaults(self, client, auth_headers, sample_baby):
        response = client.post(
            "/api/bath-log",
            json={"babyId": str(sample_baby.id), "time": iso()},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["soapUsed"] is True
        assert data["shampooUsed"] is True

    def test_bath_log_update(self, client, auth_headers, sample_baby):
        created = client.post(
            "/api/bath-log",
            json={"babyId": str(sample_baby.id), "time": iso(), "shampooUsed": False},
            headers=auth_headers,
        ).json()["data"]

        response = client.put(
            f"/api/bath-log/{created['id']}", json={"notes": "Splashy"}, headers=auth_headers
        )

        assert response.json()["data"]["notes"] == "Splashy"
        assert response.json()["data"]["shampooUsed"] is False

    def test_note_and_categories(self, client, auth_headers, sample_baby):
        for content, category in [
            ("Rolled over", "Milestone"),
            ("First laugh", "Milestone"),
            ("Ate carrots", "Food"),
            ("Quiet day", None),
        ]:
            response = client.post(
                "/api/note",
                json={
                    "babyId": str(sample_baby.id),
                    "time": iso(),
                    "content": content,
                    "category": category,
                },
                headers=auth_headers,
            )
            assert response.status_code == 201

        categories = client.get("/api/note/categories", headers=auth_headers)
        assert categories.json() == {"success": True, "data": ["Food", "Milestone"]}

    def test_note_categories_scoped_to_family(
        self, client, auth_headers, other_auth_headers, sample_baby
    ):
        client.post(
            "/api/note",
            json={
                "babyId": str(sample_baby.id),
                "time": iso(),
                "content": "Rolled over",
                "category": "Milestone",
            },
            headers=auth_headers,
        )

        response = client.get("/api/note/categories", headers=other_auth_headers)
        assert response.json()["data"] == []

    def test_note_requires_content(self, client, auth_headers, sample_baby):
        response = client.post(
            "/api/note",
            json={"babyId": str(sample_baby.id), "time": iso(), "content": ""},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_unknown_id_404(self, client, auth_headers):
        response = client.get(f"/api/diaper-log/{uuid4()}", headers=auth_headers)
        assert response.status_code == 404


class TestTimeline:
    def test_entries_and_status(self, client, auth_headers, sample_baby, feed):
        client.post(
            "/api/diaper-log",
            json={"babyId": str(sample_baby.id), "time": iso(0.5), "type": "DIRTY"},
            headers=auth_headers,
        )

        response = client.get(
            "/api/timeline", params={"babyId": str(sample_baby.id)}, headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert [entry["kind"] for entry in data["entries"]] == ["diaper", "feed"]
        status = {bubble["kind"]: bubble["status"] for bubble in data["status"]}
        assert status == {"feed": "ok", "diaper": "ok"}

    def test_includes_baths_and_notes(self, client, auth_headers, sample_baby, feed):
        client.post(
            "/api/bath-log",
            json={"babyId": str(sample_baby.id), "time": iso(0.5)},
            headers=auth_headers,
        )
        client.post(
            "/api/note",
            json={"babyId": str(sample_baby.id), "time": iso(0.25), "content": "Slept well"},
            headers=auth_headers,
        )

        response = client.get(
            "/api/timeline", params={"babyId": str(sample_baby.id)}, headers=auth_headers
        )

        entries = response.json()["data"]["entries"]
        assert [entry["kind"] for entry in entries] == ["note", "bath", "feed"]
        assert entries[1]["details"] == ["With soap and shampoo"]

    def test_other_familys_baby(self, client, other_auth_headers, sample_baby):
        response = client.get(
            "/api/timeline", params={"babyId": str(sample_baby.id)}, headers=other_auth_headers
        )
        assert response.status_code == 404


class TestBabiesAndMedicines:
    def test_add_and_list_baby(self, client, auth_headers):
        response = client.post(
            "/api/baby",
            json={"firstName": "Zoe", "lastName": "Smith", "birthDate": "2026-09-01T00:00:00Z"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["feedWarningTime"] == "03:00"

        listed = client.get("/api/baby", headers=auth_headers).json()["data"]
        assert [baby["firstName"] for baby in listed] == ["Zoe"]

    def test_babies_scoped_to_family(self, client, other_auth_headers, sample_baby):
        listed = client.get("/api/baby", headers=other_auth_headers).json()["data"]
        assert listed == []

    def test_add_medicine(self, client, auth_headers):
        response = client.post(
            "/api/medicine",
            json={"name": "Gripe water", "unitAbbr": "ML", "doseMinTime": "04:00"},
            headers=auth_headers,
        )
        assert response.status_code == 201

        listed = client.get("/api/medicine", headers=auth_headers).json()["data"]
        assert [m["name"] for m in listed] == ["Gripe water"]
