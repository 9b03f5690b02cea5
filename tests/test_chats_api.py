"""Tests for the chats API."""

from fastapi.testclient import TestClient

from tests.conftest import auth

MISSING_ID = "0123456789abcdef01234567"


def create(client: TestClient, title="My board", user="alice", elements=None):
    body = {"title": title}
    if elements is not None:
        body["elements"] = elements
    response = client.post("/api/chats", json=body, headers=auth(user))
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestAuth:

    def test_missing_token_is_401(self, client: TestClient):
        response = client.get("/api/chats")
        assert response.status_code == 401
        assert response.json()["success"] is False
        assert response.headers["www-authenticate"] == "Bearer"


class TestCreate:

    def test_create_returns_envelope(self, client: TestClient):
        response = client.post("/api/chats", json={"title": "Sketches"}, headers=auth("alice"))

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Chat created successfully"
        chat = body["data"]
        assert chat["title"] == "Sketches"
        assert chat["elements"] == []
        assert len(chat["id"]) == 24
        assert {"createdAt", "updatedAt"} <= chat.keys()
        assert "userId" not in chat and "user_id" not in chat

    def test_create_with_elements(self, client: TestClient, rectangle_payload):
        chat = create(client, elements=[rectangle_payload])
        assert chat["elements"] == [rectangle_payload]

    def test_title_length_validated(self, client: TestClient):
        for title in ("", "x" * 201):
            response = client.post("/api/chats", json={"title": title}, headers=auth("alice"))
            assert response.status_code == 400
            body = response.json()
            assert body["error"] == "Validation failed"
            assert body["details"][0]["field"] == "title"

    def test_bad_element_rejects_whole_payload(self, client: TestClient, rectangle_payload):
        bad = dict(rectangle_payload, id="bad", strokeWidth=3)
        response = client.post(
            "/api/chats",
            json={"title": "t", "elements": [rectangle_payload, bad]},
            headers=auth("alice"),
        )
        assert response.status_code == 400
        assert response.json()["details"][0]["field"].startswith("elements.1")

        listing = client.get("/api/chats", headers=auth("alice")).json()["data"]
        assert listing["total"] == 0

    def test_duplicate_element_ids_rejected(self, client: TestClient, rectangle_payload):
        response = client.post(
            "/api/chats",
            json={"title": "t", "elements": [rectangle_payload, rectangle_payload]},
            headers=auth("alice"),
        )
        assert response.status_code == 400
        assert "rect-1" in response.json()["details"][0]["message"]


class TestList:

    def test_pagination_newest_first(self, client: TestClient):
        for i in range(3):
            create(client, title=f"chat {i}")

        page = client.get("/api/chats?page=1&limit=2", headers=auth("alice")).json()["data"]
        assert [c["title"] for c in page["data"]] == ["chat 2", "chat 1"]
        assert (page["total"], page["page"], page["limit"], page["totalPages"]) == (3, 1, 2, 2)

        second = client.get("/api/chats?page=2&limit=2", headers=auth("alice")).json()["data"]
        assert [c["title"] for c in second["data"]] == ["chat 0"]

    def test_search_is_case_insensitive_substring(self, client: TestClient):
        create(client, title="Architecture Diagram")
        create(client, title="Groceries")

        found = client.get("/api/chats?search=diag", headers=auth("alice")).json()["data"]
        assert [c["title"] for c in found["data"]] == ["Architecture Diagram"]
        assert found["total"] == 1

    def test_search_treats_wildcards_literally(self, client: TestClient):
        create(client, title="100% done")
        create(client, title="1000 done")
        found = client.get("/api/chats", params={"search": "0%"}, headers=auth("alice")).json()["data"]
        assert [c["title"] for c in found["data"]] == ["100% done"]

    def test_defaults(self, client: TestClient):
        data = client.get("/api/chats", headers=auth("alice")).json()["data"]
        assert (data["page"], data["limit"], data["total"], data["totalPages"], data["data"]) == (1, 10, 0, 0, [])

    def test_query_bounds(self, client: TestClient):
        for query in ("page=0", "limit=0", "limit=101", "page=abc"):
            response = client.get(f"/api/chats?{query}", headers=auth("alice"))
            assert response.status_code == 400, query

    def test_only_own_chats_listed(self, client: TestClient):
        create(client, title="mine", user="alice")
        create(client, title="theirs", user="bob")
        data = client.get("/api/chats", headers=auth("alice")).json()["data"]
        assert [c["title"] for c in data["data"]] == ["mine"]


class TestSingleChat:

    def test_get(self, client: TestClient):
        chat = create(client)
        response = client.get(f"/api/chats/{chat['id']}", headers=auth("alice"))
        assert response.status_code == 200
        assert response.json()["data"] == chat

    def test_invalid_id_is_400(self, client: TestClient):
        response = client.get("/api/chats/not-an-id", headers=auth("alice"))
        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "id"

    def test_missing_is_404(self, client: TestClient):
        response = client.get(f"/api/chats/{MISSING_ID}", headers=auth("alice"))
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Chat not found"}

    def test_update_title_keeps_elements(self, client: TestClient, rectangle_payload):
        chat = create(client, elements=[rectangle_payload])
        response = client.put(f"/api/chats/{chat['id']}", json={"title": "Renamed"}, headers=auth("alice"))

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Chat updated successfully"
        assert body["data"]["title"] == "Renamed"
        assert body["data"]["elements"] == [rectangle_payload]

    def test_update_elements(self, client: TestClient, rectangle_payload):
        chat = create(client)
        response = client.put(
            f"/api/chats/{chat['id']}", json={"elements": [rectangle_payload]}, headers=auth("alice")
        )
        assert response.json()["data"]["elements"] == [rectangle_payload]
        assert response.json()["data"]["title"] == "My board"

    def test_delete(self, client: TestClient):
        chat = create(client)
        response = client.delete(f"/api/chats/{chat['id']}", headers=auth("alice"))
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Chat deleted successfully"}

        assert client.get(f"/api/chats/{chat['id']}", headers=auth("alice")).status_code == 404
        assert client.delete(f"/api/chats/{chat['id']}", headers=auth("alice")).status_code == 404


class TestSaveElements:

    def test_save_and_load_round_trip(self, client: TestClient, rectangle_payload):
        chat = create(client)
        elements = [
            rectangle_payload,
            {
                "id": "draw-1", "type": "draw", "x": 0, "y": 0, "width": 10, "height": 5,
                "angle": 0, "strokeColor": "#000", "backgroundColor": "transparent",
                "strokeWidth": 1, "strokeStyle": "dotted", "roughness": 0, "opacity": 0.5,
                "isDeleted": False, "points": [{"x": 0, "y": 0}, {"x": 10, "y": 5}],
            },
            {
                "id": "code-1", "type": "code", "x": 5, "y": 5, "width": 450, "height": 300,
                "angle": 0, "strokeColor": "#8b5cf6", "backgroundColor": "transparent",
                "strokeWidth": 2, "strokeStyle": "solid", "roughness": 1, "opacity": 1,
                "isDeleted": False, "code": "print(1)", "codeLanguage": "python",
                "codeOutput": "1", "codeExplanation": "prints one", "isExecuting": False,
            },
        ]

        response = client.post(
            f"/api/chats/{chat['id']}/elements", json={"elements": elements}, headers=auth("alice")
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Elements saved successfully"

        loaded = client.get(f"/api/chats/{chat['id']}", headers=auth("alice")).json()["data"]
        assert loaded["elements"] == elements

    def test_last_write_wins(self, client: TestClient, rectangle_payload):
        chat = create(client)
        url = f"/api/chats/{chat['id']}/elements"
        client.post(url, json={"elements": [rectangle_payload]}, headers=auth("alice"))
        client.post(url, json={"elements": []}, headers=auth("alice"))
        loaded = client.get(f"/api/chats/{chat['id']}", headers=auth("alice")).json()["data"]
        assert loaded["elements"] == []

    def test_elements_required(self, client: TestClient):
        chat = create(client)
        response = client.post(f"/api/chats/{chat['id']}/elements", json={}, headers=auth("alice"))
        assert response.status_code == 400


class TestOwnership:

    def test_foreign_chat_is_not_found_everywhere(self, client: TestClient, rectangle_payload):
        chat = create(client, user="alice", elements=[rectangle_payload])
        url = f"/api/chats/{chat['id']}"
        bob = auth("bob")

        assert client.get(url, headers=bob).status_code == 404
        assert client.put(url, json={"title": "mine now"}, headers=bob).status_code == 404
        assert client.post(f"{url}/elements", json={"elements": []}, headers=bob).status_code == 404
        assert client.delete(url, headers=bob).status_code == 404

        untouched = client.get(url, headers=auth("alice")).json()["data"]
        assert untouched["title"] == "My board"
        assert untouched["elements"] == [rectangle_payload]


class TestMisc:

    def test_health(self, client: TestClient):
        body = client.get("/api/health").json()
        assert body["success"] is True
        assert body["database"] is True

    def test_unknown_route(self, client: TestClient):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Route not found"}
