"""
Tests for task CRUD, completion, search, and soft deletion.
"""

import uuid

import pytest


async def create_task(client, title="Buy milk", description=""):
    response = await client.post(
        "/v1/tasks", json={"title": title, "description": description}
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateTask:

    async def test_create(self, authenticated_client, alice):
        response = await authenticated_client.post(
            "/v1/tasks",
            json={"title": "  Buy milk  ", "description": "Two litres, semi-skimmed!"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Buy milk"
        assert data["description"] == "Two litres, semi-skimmed!"
        assert data["is_completed"] is False
        assert data["user_id"] == alice["id"]

    async def test_description_is_optional(self, authenticated_client):
        task = await create_task(authenticated_client, "Call mum")
        assert task["description"] == ""

    @pytest.mark.parametrize("title", ["", "   ", "Buy milk!", "a" * 256])
    async def test_invalid_title(self, authenticated_client, title):
        response = await authenticated_client.post("/v1/tasks", json={"title": title})
        assert response.status_code == 422

    async def test_invalid_description(self, authenticated_client):
        response = await authenticated_client.post(
            "/v1/tasks", json={"title": "Buy milk", "description": "<script>"}
        )
        assert response.status_code == 422

    async def test_description_too_long(self, authenticated_client):
        response = await authenticated_client.post(
            "/v1/tasks", json={"title": "Buy milk", "description": "a" * 2256}
        )
        assert response.status_code == 422


class TestReadTasks:

    async def test_list_own_tasks(self, authenticated_client):
        await create_task(authenticated_client, "First")
        await create_task(authenticated_client, "Second")

        response = await authenticated_client.get("/v1/tasks")
        assert response.status_code == 200
        titles = [t["title"] for t in response.json()]
        assert sorted(titles) == ["First", "Second"]

    async def test_get_one(self, authenticated_client):
        task = await create_task(authenticated_client)
        response = await authenticated_client.get(f"/v1/tasks/{task['id']}")
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == task["id"]
        assert data["title"] == "Buy milk"

    async def test_get_missing(self, authenticated_client):
        response = await authenticated_client.get(f"/v1/tasks/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["error"] == "task not found"

    async def test_get_with_invalid_id(self, authenticated_client):
        response = await authenticated_client.get("/v1/tasks/not-a-uuid")
        assert response.status_code == 422


class TestSearchTasks:

    async def test_case_insensitive_match_on_title_and_description(self, authenticated_client):
        await create_task(authenticated_client, "Buy MILK")
        await create_task(authenticated_client, "Shopping", "milk and eggs")
        await create_task(authenticated_client, "Walk the dog")

        response = await authenticated_client.get("/v1/tasks/search", params={"query": "Milk"})
        assert response.status_code == 200
        assert {t["title"] for t in response.json()} == {"Buy MILK", "Shopping"}

    async def test_empty_query_matches_everything(self, authenticated_client):
        await create_task(authenticated_client, "One")
        await create_task(authenticated_client, "Two")

        response = await authenticated_client.get("/v1/tasks/search")
        assert len(response.json()) == 2

    async def test_limit(self, authenticated_client):
        for i in range(3):
            await create_task(authenticated_client, f"Task {i}")

        response = await authenticated_client.get("/v1/tasks/search", params={"limit": 2})
        assert len(response.json()) == 2

    async def test_default_limit(self, authenticated_client):
        for i in range(12):
            await create_task(authenticated_client, f"Task {i}")

        response = await authenticated_client.get("/v1/tasks/search", params={"limit": 0})
        assert len(response.json()) == 10


class TestUpdateTask:

    async def test_update(self, authenticated_client):
        task = await create_task(authenticated_client)
        response = await authenticated_client.put(
            f"/v1/tasks/{task['id']}",
            json={"title": "Buy oat milk", "description": "No dairy."},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Buy oat milk"
        assert data["description"] == "No dairy."
        assert data["is_completed"] is False

    async def test_update_with_completion(self, authenticated_client):
        task = await create_task(authenticated_client)
        response = await authenticated_client.put(
            f"/v1/tasks/{task['id']}", json={"title": "Buy milk", "is_completed": True}
        )
        assert response.json()["is_completed"] is True

    async def test_completion_toggle(self, authenticated_client):
        task = await create_task(authenticated_client)
        url = f"/v1/tasks/{task['id']}/completion"

        done = await authenticated_client.patch(url, json={"is_completed": True})
        assert done.status_code == 200
        assert done.json()["is_completed"] is True

        # Repeating the same state is a no-op, not an error
        again = await authenticated_client.patch(url, json={"is_completed": True})
        assert again.json()["is_completed"] is True

        undone = await authenticated_client.patch(url, json={"is_completed": False})
        assert undone.json()["is_completed"] is False


class TestDeleteTask:

    async def test_soft_delete(self, authenticated_client):
        task = await create_task(authenticated_client)

        response = await authenticated_client.delete(f"/v1/tasks/{task['id']}")
        assert response.status_code == 204

        assert (await authenticated_client.get(f"/v1/tasks/{task['id']}")).status_code == 404
        assert (await authenticated_client.get("/v1/tasks")).json() == []

    async def test_delete_twice(self, authenticated_client):
        task = await create_task(authenticated_client)
        await authenticated_client.delete(f"/v1/tasks/{task['id']}")

        response = await authenticated_client.delete(f"/v1/tasks/{task['id']}")
        assert response.status_code == 404
