from fastapi import status

from taskboard.models.comment import Comment
from taskboard.models.task import Task


def _create_task(client, project_id, **fields):
    body = {"title": "Write docs", "projectId": project_id, **fields}
    response = client.post("/api/v1/tasks", json=body)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


class TestCreateTask:
    """POST /api/v1/tasks"""

    def test_defaults_and_positions(self, authenticated_client, create_project):
        client, user = authenticated_client
        project = create_project(user)

        first = _create_task(client, project.id, title="First")
        second = _create_task(client, project.id, title="Second", priority="urgent")

        assert first["status"] == "todo"
        assert first["priority"] == "medium"
        assert first["creatorId"] == user.id
        assert first["project"] == {"id": project.id, "name": project.name, "color": project.color}
        assert first["_count"] == {"comments": 0, "files": 0}
        assert second["position"] == first["position"] + 1
        assert second["priority"] == "urgent"

    def test_due_date_returned_in_utc(self, authenticated_client, create_project):
        client, user = authenticated_client
        project = create_project(user)

        created = _create_task(client, project.id, dueDate="2030-01-01T09:30:00+02:00")
        fetched = client.get(f"/api/v1/tasks/{created['id']}").json()

        assert created["dueDate"] == "2030-01-01T07:30:00Z"
        assert fetched["dueDate"] == "2030-01-01T07:30:00Z"
        assert fetched["createdAt"].endswith("Z")

    def test_non_member_forbidden(
        self, authenticated_client, create_test_user, create_project
    ):
        client, _ = authenticated_client
        other = create_test_user(email="other@example.com", name="Other")
        project = create_project(other)

        response = client.post("/api/v1/tasks", json={"title": "Sneaky", "projectId": project.id})

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_invalid_status_rejected(self, authenticated_client, create_project):
        client, user = authenticated_client
        project = create_project(user)

        response = client.post(
            "/api/v1/tasks",
            json={"title": "Bad", "projectId": project.id, "status": "blocked"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"][0]["field"] == "status"


class TestListTasks:
    """GET /api/v1/tasks"""

    def test_filters(self, authenticated_client, create_project):
        client, user = authenticated_client
        project = create_project(user)
        _create_task(client, project.id, title="Fix login bug", status="in_progress")
        _create_task(client, project.id, title="Release notes", description="mention login")
        _create_task(client, project.id, title="Deploy", priority="high")

        by_status = client.get("/api/v1/tasks", params={"status": "in_progress"}).json()
        by_priority = client.get(
            "/api/v1/tasks", params={"projectId": project.id, "priority": "high"}
        ).json()
        by_search = client.get("/api/v1/tasks", params={"search": "LOGIN"}).json()

        assert [task["title"] for task in by_status] == ["Fix login bug"]
        assert [task["title"] for task in by_priority] == ["Deploy"]
        assert {task["title"] for task in by_search} == {"Fix login bug", "Release notes"}

    def test_without_project_only_member_tasks(
        self, authenticated_client, create_test_user, create_project, auth_headers
    ):
        client, user = authenticated_client
        other = create_test_user(email="other@example.com", name="Other")
        mine = create_project(user)
        theirs = create_project(other)
        _create_task(client, mine.id, title="Visible")
        client.post(
            "/api/v1/tasks",
            json={"title": "Invisible", "projectId": theirs.id},
            headers=auth_headers(other),
        )

        response = client.get("/api/v1/tasks")

        assert [task["title"] for task in response.json()] == ["Visible"]


class TestTaskDetail:
    """GET /api/v1/tasks/{id}"""

    def test_detail_with_comments_oldest_first(self, authenticated_client, create_project):
        client, user = authenticated_client
        project = create_project(user)
        task = _create_task(client, project.id)
        client.post(f"/api/v1/tasks/{task['id']}/comments", json={"content": "first"})
        client.post(f"/api/v1/tasks/{task['id']}/comments", json={"content": "second"})

        response = client.get(f"/api/v1/tasks/{task['id']}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [comment["content"] for comment in data["comments"]] == ["first", "second"]
        assert data["comments"][0]["user"]["id"] == user.id
        assert data["files"] == []
        assert data["_count"]["comments"] == 2

    def test_unknown_task(self, authenticated_client):
        client, _ = authenticated_client

        response = client.get("/api/v1/tasks/12345")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"error": "Task not found"}


class TestUpdateTask:
    """PUT /api/v1/tasks/{id}"""

    def test_partial_update_keeps_other_fields(self, authenticated_client, create_project):
        client, user = authenticated_client
        project = create_project(user)
        task = _create_task(
            client, project.id, description="keep me", dueDate="2030-01-01T00:00:00Z"
        )

        response = client.put(f"/api/v1/tasks/{task['id']}", json={"status": "done"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "done"
        assert data["description"] == "keep me"
        assert data["dueDate"].startswith("2030-01-01T00:00:00")

    def test_explicit_null_clears_fields(self, authenticated_client, create_project):
        client, user = authenticated_client
        project = create_project(user)
        task = _create_task(
            client,
            project.id,
            description="temp",
            dueDate="2030-01-01T00:00:00Z",
            assigneeNames=["Nobody Here"],
        )

        response = client.put(
            f"/api/v1/tasks/{task['id']}",
            json={"description": None, "dueDate": None, "assigneeNames": []},
        )

        data = response.json()
        assert data["description"] is None
        assert data["dueDate"] is None
        assert data["assigneeNames"] is None


class TestDeleteTask:
    """DELETE /api/v1/tasks/{id}"""

    def test_delete_removes_comments(self, authenticated_client, create_project, db_session):
        client, user = authenticated_client
        project = create_project(user)
        task = _create_task(client, project.id)
        client.post(f"/api/v1/tasks/{task['id']}/comments", json={"content": "note"})

        response = client.delete(f"/api/v1/tasks/{task['id']}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"message": "Task deleted successfully"}
        assert db_session.query(Task).filter(Task.id == task["id"]).first() is None
        assert db_session.query(Comment).filter(Comment.task_id == task["id"]).count() == 0


class TestComments:
    """POST /api/v1/tasks/{id}/comments"""

    def test_blank_comment_rejected(self, authenticated_client, create_project):
        client, user = authenticated_client
        project = create_project(user)
        task = _create_task(client, project.id)

        response = client.post(f"/api/v1/tasks/{task['id']}/comments", json={"content": "  "})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_comment_on_missing_task(self, authenticated_client):
        client, _ = authenticated_client

        response = client.post("/api/v1/tasks/777/comments", json={"content": "hello"})

        assert response.status_code == status.HTTP_404_NOT_FOUND
