"""HTTP surface for site records and the signed-in user's dashboard."""

from __future__ import annotations

from conftest import auth_headers, make_token

CREATE_BODY = {"templateId": "classic-pro-plumber", "businessType": "services", "category": "plumber"}


def create_site(client, headers=None) -> str:
    response = client.post("/api/sites", json=CREATE_BODY, headers=headers or {})
    assert response.status_code == 201, response.text
    return response.json()["data"]["siteId"]


class TestCreateSite:
    def test_guest_create(self, client) -> None:
        response = client.post("/api/sites", json=CREATE_BODY)
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "Success"
        assert body["status_code"] == "101"
        assert body["data"]["siteId"]

        site = client.get("/api/sites", params={"id": body["data"]["siteId"]}).json()["data"]
        assert site["ownerId"] is None
        assert site["designData"] == {}
        assert site["templateId"] == "classic-pro-plumber"

    def test_signed_in_create_is_owned(self, client) -> None:
        site_id = create_site(client, auth_headers("U1"))
        site = client.get("/api/sites", params={"id": site_id}).json()["data"]
        assert site["ownerId"] == "U1"

    def test_legacy_selected_template_id(self, client) -> None:
        body = {"selectedTemplateId": "modern-blue-plumber", "businessType": "services",
                "category": "plumber"}
        assert client.post("/api/sites", json=body).status_code == 201

    def test_missing_fields(self, client) -> None:
        response = client.post("/api/sites", json={"templateId": "classic-pro-plumber"})
        assert response.status_code == 400
        assert response.json()["status"] == "Failure"
        assert response.json()["message"] == "Missing required fields"

    def test_unknown_template(self, client) -> None:
        body = {**CREATE_BODY, "templateId": "nope"}
        response = client.post("/api/sites", json=body)
        assert response.status_code == 404
        assert response.json()["message"] == "Template not found"

    def test_invalid_token_rejected_even_for_guest_route(self, client) -> None:
        response = client.post("/api/sites", json=CREATE_BODY,
                               headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestReadSite:
    def test_missing_id(self, client) -> None:
        response = client.get("/api/sites")
        assert response.status_code == 400
        assert response.json()["message"] == "Site ID is required"

    def test_unknown_id(self, client) -> None:
        assert client.get("/api/sites", params={"id": "missing"}).status_code == 404


class TestSaveSite:
    def test_scenario_guest_then_claim(self, client) -> None:
        site_id = create_site(client)
        response = client.patch("/api/sites", headers=auth_headers("U1"),
                                json={"id": site_id, "designData": {"heroTitle": "Acme"}})
        assert response.status_code == 200, response.text
        data = response.json()["data"]
        assert data["ownerId"] == "U1"
        assert data["designData"] == {"heroTitle": "Acme"}

        other = client.patch("/api/sites", headers=auth_headers("U2"),
                             json={"id": site_id, "designData": {"heroTitle": "Mine now"}})
        assert other.status_code == 403

        stored = client.get("/api/sites", params={"id": site_id}).json()["data"]
        assert stored["ownerId"] == "U1"
        assert stored["designData"] == {"heroTitle": "Acme"}

    def test_legacy_site_id_field(self, client) -> None:
        site_id = create_site(client)
        response = client.patch("/api/sites", headers=auth_headers("U1"),
                                json={"siteId": site_id, "designData": {"title": "Shop"}})
        assert response.status_code == 200

    def test_requires_token(self, client) -> None:
        site_id = create_site(client)
        response = client.patch("/api/sites", json={"id": site_id, "designData": {}})
        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized"

    def test_expired_token(self, client) -> None:
        site_id = create_site(client)
        token = make_token("U1", expires_in=-60)
        response = client.patch("/api/sites", headers={"Authorization": f"Bearer {token}"},
                                json={"id": site_id, "designData": {}})
        assert response.status_code == 401

    def test_wrong_signature(self, client) -> None:
        site_id = create_site(client)
        response = client.patch("/api/sites", headers=auth_headers("U1", secret="other"),
                                json={"id": site_id, "designData": {}})
        assert response.status_code == 401

    def test_missing_id(self, client) -> None:
        response = client.patch("/api/sites", headers=auth_headers("U1"), json={"designData": {}})
        assert response.status_code == 400

    def test_unknown_site(self, client) -> None:
        response = client.patch("/api/sites", headers=auth_headers("U1"),
                                json={"id": "missing", "designData": {}})
        assert response.status_code == 404


class TestRenderSite:
    def test_edit_mode_render(self, client) -> None:
        site_id = create_site(client, auth_headers("U1"))
        client.patch("/api/sites", headers=auth_headers("U1"), json={
            "id": site_id,
            "designData": {"heroTitle": "Acme Plumbing", "__selectedPalette": "forest"},
        })

        response = client.get(f"/api/sites/{site_id}/render", params={"mode": "edit"})
        assert response.status_code == 200
        page = response.json()["data"]
        assert page["mode"] == "edit"
        assert page["palette"]["primary"] == "#14532d"
        assert '<span data-edit-key="heroTitle">Acme Plumbing</span>' in page["html"]
        assert any(r["key"] == "heroTitle" for r in page["editRegions"])

    def test_bad_mode(self, client) -> None:
        site_id = create_site(client)
        response = client.get(f"/api/sites/{site_id}/render", params={"mode": "draft"})
        assert response.status_code == 422


class TestPublishSite:
    def test_publish_with_domain(self, client) -> None:
        site_id = create_site(client, auth_headers("U1"))
        response = client.post(f"/api/sites/{site_id}/publish", headers=auth_headers("U1"),
                               json={"customDomain": "Acme-Plumbing.com"})
        assert response.status_code == 200, response.text
        data = response.json()["data"]
        assert data["customDomain"] == "acme-plumbing.com"
        assert data["publishedAt"] is not None

    def test_publish_without_body(self, client) -> None:
        site_id = create_site(client, auth_headers("U1"))
        response = client.post(f"/api/sites/{site_id}/publish", headers=auth_headers("U1"))
        assert response.status_code == 200

    def test_platform_domain_rejected(self, client) -> None:
        site_id = create_site(client, auth_headers("U1"))
        response = client.post(f"/api/sites/{site_id}/publish", headers=auth_headers("U1"),
                               json={"customDomain": "keystoneweb.com"})
        assert response.status_code == 400

    def test_requires_owner(self, client) -> None:
        site_id = create_site(client, auth_headers("U1"))
        response = client.post(f"/api/sites/{site_id}/publish", headers=auth_headers("U2"))
        assert response.status_code == 403


class TestUserSites:
    def test_lists_only_own_sites(self, client) -> None:
        mine = create_site(client, auth_headers("U1"))
        create_site(client, auth_headers("U2"))
        client.patch("/api/sites", headers=auth_headers("U1"),
                     json={"id": mine, "designData": {"title": "Acme"}})

        response = client.get("/api/user/sites", headers=auth_headers("U1"))
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["count"] == 1
        assert data["sites"][0]["id"] == mine
        assert data["sites"][0]["title"] == "Acme"
        assert data["sites"][0]["businessType"] == "services"

    def test_latest_site(self, client) -> None:
        create_site(client, auth_headers("U1"))
        latest = create_site(client, auth_headers("U1"))
        client.patch("/api/sites", headers=auth_headers("U1"),
                     json={"id": latest, "designData": {"title": "Newest"}})

        response = client.get("/api/user/latest-site", headers=auth_headers("U1"))
        assert response.status_code == 200
        assert response.json()["data"]["site"]["id"] == latest

    def test_latest_site_none(self, client) -> None:
        response = client.get("/api/user/latest-site", headers=auth_headers("nobody"))
        assert response.status_code == 404
        assert response.json()["message"] == "User has no sites yet"

    def test_requires_token(self, client) -> None:
        assert client.get("/api/user/sites").status_code == 401
        assert client.get("/api/user/latest-site").status_code == 401
