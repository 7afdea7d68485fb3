"""
Unit tests for the family API routes.
"""

from unittest.mock import patch

from baby_tracker.services import SlugGenerationError


class TestFamilyBySlug:
    """Test GET /api/family/by-slug/{slug}."""

    def test_found(self, client, sample_family):
        response = client.get("/api/family/by-slug/smith-family")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["id"] == str(sample_family.id)
        assert body["data"]["name"] == "The Smiths"
        assert body["data"]["slug"] == "smith-family"

    def test_not_found_is_200(self, client, sample_family):
        response = client.get("/api/family/by-slug/missing-family")

        assert response.status_code == 200
        assert response.json() == {"success": False, "error": "Family not found"}

    def test_inactive_family_not_found(self, client, db_session, sample_family):
        sample_family.is_active = False
        db_session.commit()

        response = client.get("/api/family/by-slug/smith-family")

        assert response.status_code == 200
        assert response.json()["success"] is False

    def test_no_auth_required(self, client, sample_family):
        assert client.get("/api/family/by-slug/smith-family").json()["success"] is True


class TestCurrentFamily:
    def test_requires_auth(self, client, sample_family):
        response = client.get("/api/family")

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Authentication required"}

    def test_callers_family(self, client, auth_headers, sample_family):
        response = client.get("/api/family", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["slug"] == "smith-family"

    def test_sysadmin_without_family_context(self, client, sysadmin_headers):
        response = client.get("/api/family", headers=sysadmin_headers)

        assert response.status_code == 403
        assert response.json()["error"] == "User is not associated with a family."

    def test_sysadmin_with_family_id(self, client, sysadmin_headers, other_family):
        response = client.get(
            "/api/family",
            headers=sysadmin_headers,
            params={"familyId": str(other_family.id)},
        )
        assert response.json()["data"]["slug"] == "jones-family"


class TestGenerateSlug:
    def test_generates_unused_slug(self, client, auth_headers):
        response = client.get("/api/family/generate-slug", headers=auth_headers)

        assert response.status_code == 200
        slug = response.json()["data"]["slug"]
        assert slug != "smith-family"
        assert "-" in slug

    def test_exhausted_is_500(self, client, auth_headers):
        with patch(
            "baby_tracker.api.family_routes.generate_unique_slug",
            side_effect=SlugGenerationError("exhausted"),
        ):
            response = client.get("/api/family/generate-slug", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to generate unique slug"}


class TestCreateSetupLink:
    def test_sysadmin_creates_invitation(self, client, sysadmin_headers, sample_family):
        response = client.post(
            "/api/family/create-setup-link",
            json={"password": "invite-password"},
            headers=sysadmin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data["token"]) == 6
        assert data["setupUrl"] == f"/setup/{data['token']}"
        assert data["expiresAt"]

    def test_family_admin_forbidden(self, client, auth_headers):
        response = client.post(
            "/api/family/create-setup-link",
            json={"password": "invite-password"},
            headers=auth_headers,
        )

        assert response.status_code == 403
        assert response.json()["error"] == "System administrator access required"

    def test_short_password(self, client, sysadmin_headers):
        response = client.post(
            "/api/family/create-setup-link",
            json={"password": "123"},
            headers=sysadmin_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Password must be at least 6 characters long"


class TestFamilyManage:
    def test_lists_every_family_with_counts(
        self, client, db_session, sysadmin_headers, sample_baby, other_family, sample_caretaker
    ):
        other_family.is_active = False
        db_session.commit()

        response = client.get("/api/family/manage", headers=sysadmin_headers)

        assert response.status_code == 200
        families = response.json()["data"]
        assert [family["slug"] for family in families] == ["smith-family", "jones-family"]
        assert families[0]["caretakerCount"] == 2
        assert families[0]["babyCount"] == 1
        assert families[1]["isActive"] is False
        assert families[1]["babyCount"] == 0

    def test_family_admin_forbidden(self, client, auth_headers):
        response = client.get("/api/family/manage", headers=auth_headers)
        assert response.status_code == 403

    def test_create(self, client, sysadmin_headers, sample_family):
        response = client.post(
            "/api/family/manage",
            json={"name": "The Browns", "slug": "brown-family", "isActive": False},
            headers=sysadmin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["slug"] == "brown-family"
        assert data["isActive"] is False

    def test_create_taken_slug_400(self, client, sysadmin_headers, sample_family):
        response = client.post(
            "/api/family/manage",
            json={"name": "Copycats", "slug": "smith-family"},
            headers=sysadmin_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Slug already exists"

    def test_create_requires_name_and_slug(self, client, sysadmin_headers):
        response = client.post(
            "/api/family/manage", json={"name": "No slug"}, headers=sysadmin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Name and slug are required"

    def test_update(self, client, sysadmin_headers, sample_family):
        response = client.put(
            "/api/family/manage",
            json={"id": str(sample_family.id), "name": "Smith Household", "isActive": False},
            headers=sysadmin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Smith Household"
        assert data["slug"] == "smith-family"
        assert data["isActive"] is False

    def test_update_unknown_family_404(self, client, sysadmin_headers):
        response = client.put(
            "/api/family/manage",
            json={"id": "00000000-0000-0000-0000-000000000000", "name": "Ghosts"},
            headers=sysadmin_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Family not found"

    def test_update_requires_id(self, client, sysadmin_headers):
        response = client.put(
            "/api/family/manage", json={"name": "Nobody"}, headers=sysadmin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Family ID is required"


class TestSetupInvites:
    def test_list(self, client, sysadmin_headers, other_family):
        response = client.get("/api/family/setup-invites", headers=sysadmin_headers)

        assert response.status_code == 200
        invites = response.json()["data"]
        assert len(invites) == 1
        assert invites[0]["isUsed"] is True
        assert invites[0]["family"]["slug"] == "jones-family"
        assert "password" not in invites[0]

    def test_revoke(self, client, sysadmin_headers, sample_family):
        client.post(
            "/api/family/create-setup-link",
            json={"password": "invite-password"},
            headers=sysadmin_headers,
        )
        invite = client.get("/api/family/setup-invites", headers=sysadmin_headers).json()["data"][0]

        response = client.delete(
            "/api/family/setup-invites", params={"id": invite["id"]}, headers=sysadmin_headers
        )

        assert response.json() == {"success": True, "data": {"id": invite["id"]}}
        remaining = client.get("/api/family/setup-invites", headers=sysadmin_headers)
        assert remaining.json()["data"] == []

    def test_revoke_requires_id(self, client, sysadmin_headers):
        response = client.delete("/api/family/setup-invites", headers=sysadmin_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Invite ID is required"

    def test_revoke_unknown_invite_404(self, client, sysadmin_headers):
        response = client.delete(
            "/api/family/setup-invites",
            params={"id": "00000000-0000-0000-0000-000000000000"},
            headers=sysadmin_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Invite not found"

    def test_family_admin_forbidden(self, client, auth_headers):
        response = client.get("/api/family/setup-invites", headers=auth_headers)
        assert response.status_code == 403
