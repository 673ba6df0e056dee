import pytest
from unittest.mock import MagicMock

from conftest import auth_headers
from taskboard.main import global_exception_handler, settings


class TestBoardScenario:
    """A sprint worked through the HTTP API"""

    @pytest.mark.asyncio
    async def test_status_drives_list_placement(self, client, users):
        alice = auth_headers(users.alice)

        response = await client.post("/api/v1/boards", json={"title": "Sprint board"}, headers=alice)
        assert response.status_code == 201
        board_id = response.json()["id"]

        sprint = (await client.post(
            "/api/v1/lists", json={"board_id": board_id, "title": "Sprint 1"}, headers=alice
        )).json()
        done = (await client.post(
            "/api/v1/lists", json={"board_id": board_id, "title": "Done"}, headers=alice
        )).json()
        assert [sprint["order"], done["order"]] == [0, 1]

        response = await client.post(
            "/api/v1/cards",
            json={"board_id": board_id, "title": "Login page", "list_id": sprint["id"]},
            headers=alice,
        )
        assert response.status_code == 201
        card = response.json()
        assert card["status"] == "todo"
        assert card["order"] == 0

        response = await client.put(f"/api/v1/cards/{card['id']}", json={"status": "done"}, headers=alice)
        assert response.status_code == 200
        assert response.json()["list_id"] == done["id"]

        board = (await client.get(f"/api/v1/boards/{board_id}", headers=alice)).json()
        lists = {board_list["title"]: board_list for board_list in board["lists"]}
        assert lists["Sprint 1"]["card_ids"] == []
        assert lists["Done"]["card_ids"] == [card["id"]]

        response = await client.post(
            "/api/v1/cards/move",
            json={"card_id": card["id"], "new_order": 4, "new_list_id": sprint["id"]},
            headers=alice,
        )
        assert response.status_code == 200
        assert response.json()["from_list_id"] == done["id"]
        assert response.json()["card"]["list_id"] == sprint["id"]
        assert response.json()["card"]["order"] == 4

        response = await client.get(f"/api/v1/cards/board/{board_id}/status/done", headers=alice)
        assert [item["id"] for item in response.json()] == [card["id"]]
        response = await client.get(f"/api/v1/cards/board/{board_id}/status/blocked", headers=alice)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_collaboration_and_notifications(self, client, users):
        alice = auth_headers(users.alice)
        bob = auth_headers(users.bob)
        board_id = (await client.post("/api/v1/boards", json={"title": "Team"}, headers=alice)).json()["id"]

        response = await client.post(
            f"/api/v1/boards/{board_id}/members", json={"member_id": users.bob.id}, headers=alice
        )
        assert response.status_code == 200
        assert [member["id"] for member in response.json()["members"]] == [users.alice.id, users.bob.id]

        response = await client.post(
            f"/api/v1/boards/{board_id}/members", json={"member_id": users.bob.id}, headers=alice
        )
        assert response.status_code == 409

        card = (await client.post(
            "/api/v1/cards",
            json={"board_id": board_id, "title": "API docs", "assignee_ids": [users.bob.id]},
            headers=alice,
        )).json()
        response = await client.post(
            "/api/v1/comments", json={"card_id": card["id"], "text": "@bob can you review?"}, headers=alice
        )
        assert response.status_code == 201
        assert response.json()["author"]["name"] == "Alice"

        response = await client.get("/api/v1/notifications", headers=bob)
        body = response.json()
        assert body["total"] == 3
        assert {item["type"] for item in body["notifications"]} == {"board", "card", "comment"}

        ids = [item["id"] for item in body["notifications"]]
        response = await client.post("/api/v1/notifications/mark-read", json={"notification_ids": ids[:1]}, headers=bob)
        assert response.status_code == 200
        unread = (await client.get("/api/v1/notifications/unread", headers=bob)).json()
        assert len(unread) == 2

        await client.post("/api/v1/notifications/mark-all-read", headers=bob)
        assert (await client.get("/api/v1/notifications/unread", headers=bob)).json() == []

        response = await client.get("/api/v1/cards/" + str(card["id"]), headers=bob)
        assert response.status_code == 200
        assert [comment["text"] for comment in response.json()["comments"]] == ["@bob can you review?"]

        response = await client.get("/api/v1/users/search", params={"q": "CAR"}, headers=bob)
        assert [user["name"] for user in response.json()] == ["Carol"]

    @pytest.mark.asyncio
    async def test_deleted_board_is_gone_everywhere(self, client, users):
        alice = auth_headers(users.alice)
        board_id = (await client.post("/api/v1/boards", json={"title": "Temp"}, headers=alice)).json()["id"]
        list_id = (await client.post(
            "/api/v1/lists", json={"board_id": board_id, "title": "To Do"}, headers=alice
        )).json()["id"]
        card_id = (await client.post(
            "/api/v1/cards", json={"board_id": board_id, "title": "Soon gone", "list_id": list_id}, headers=alice
        )).json()["id"]

        response = await client.delete(f"/api/v1/boards/{board_id}", headers=alice)
        assert response.json() == {"message": "Board deleted successfully"}

        assert (await client.get(f"/api/v1/boards/{board_id}", headers=alice)).status_code == 404
        assert (await client.get(f"/api/v1/cards/{card_id}", headers=alice)).status_code == 404
        response = await client.put(f"/api/v1/lists/{list_id}", json={"title": "x"}, headers=alice)
        assert response.status_code == 404
        assert (await client.get("/api/v1/boards", headers=alice)).json() == {"boards": [], "total": 0}

    @pytest.mark.asyncio
    async def test_strangers_see_not_found(self, client, users):
        alice = auth_headers(users.alice)
        carol = auth_headers(users.carol)
        board_id = (await client.post("/api/v1/boards", json={"title": "Private"}, headers=alice)).json()["id"]

        response = await client.get(f"/api/v1/boards/{board_id}", headers=carol)

        assert response.status_code == 404
        assert response.json() == {"status": "failed", "message": "Board not found"}


class TestErrorHandling:
    """Unexpected errors"""

    @pytest.mark.asyncio
    async def test_unhandled_error_hides_details(self):
        request = MagicMock()
        request.method = "GET"
        request.url.path = "/boom"

        response = await global_exception_handler(request, RuntimeError("db exploded"))

        assert response.status_code == 500
        assert b"Something went wrong" in response.body
        assert b"db exploded" not in response.body
        assert settings.is_development is False

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.json() == {"message": "Taskboard API is running"}
