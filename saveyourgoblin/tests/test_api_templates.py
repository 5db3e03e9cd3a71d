"""
API tests for scenario templates.
"""

import pytest


@pytest.fixture
def template(api):
    response = api.post(
        "/api/templates",
        json={"name": " Goblin ambush ", "type": "mission", "scenario": "Goblins raid a caravan"},
    )
    assert response.status_code == 201
    return response.json()["data"]


class TestTemplates:
    def test_create(self, template):
        assert template["name"] == "Goblin ambush"
        assert template["description"] == ""
        assert template["type"] == "mission"
        assert template["is_favorite"] is False

    @pytest.mark.parametrize(
        "body",
        [
            {"type": "mission", "scenario": "x"},
            {"name": "x", "scenario": "x"},
            {"name": "x", "type": "mission", "scenario": "   "},
        ],
    )
    def test_create_requires_fields(self, api, body):
        response = api.post("/api/templates", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "Missing required fields: name, type, or scenario"

    def test_create_rejects_unknown_type(self, api):
        response = api.post("/api/templates", json={"name": "x", "type": "monster", "scenario": "x"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid content type"

    def test_list_by_type(self, api, template):
        api.post("/api/templates", json={"name": "Bard", "type": "character", "scenario": "A bard"})

        assert len(api.get("/api/templates").json()["data"]) == 2
        missions = api.get("/api/templates", params={"type": "mission"}).json()["data"]
        assert [t["id"] for t in missions] == [template["id"]]
        assert len(api.get("/api/templates", params={"type": "monster"}).json()["data"]) == 2

    def test_list_most_recently_updated_first(self, api, template):
        api.post("/api/templates", json={"name": "Later", "type": "mission", "scenario": "x"})
        api.patch(f"/api/templates/{template['id']}", json={"description": "Road encounter"})

        names = [t["name"] for t in api.get("/api/templates").json()["data"]]
        assert names == ["Goblin ambush", "Later"]

    def test_get_and_missing(self, api, template):
        assert api.get(f"/api/templates/{template['id']}").json()["data"] == template
        response = api.get("/api/templates/missing")
        assert response.status_code == 404
        assert response.json()["detail"] == "Template not found"

    def test_update(self, api, template):
        response = api.patch(
            f"/api/templates/{template['id']}",
            json={"is_favorite": True, "scenario": "Goblins raid a ferry", "user_id": "someone-else"},
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["is_favorite"] is True
        assert data["scenario"] == "Goblins raid a ferry"
        assert data["created_at"] == template["created_at"]

    def test_update_validation(self, api, template):
        url = f"/api/templates/{template['id']}"
        assert api.patch(url, json={"type": "monster"}).status_code == 400
        assert api.patch(url, json={"name": ""}).status_code == 400
        response = api.patch(url, json={"unknown": 1})
        assert response.status_code == 400
        assert response.json()["detail"] == "No valid fields to update"
        assert api.patch("/api/templates/missing", json={"name": "x"}).status_code == 404

    def test_delete(self, api, template):
        assert api.delete(f"/api/templates/{template['id']}").json() == {"success": True}
        assert api.get("/api/templates").json()["data"] == []
        assert api.delete(f"/api/templates/{template['id']}").status_code == 404

    def test_requires_token(self, api):
        response = api.get("/api/templates", headers={"Authorization": "Bearer wrong"})
        assert response.status_code == 401
