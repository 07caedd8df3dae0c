from datetime import timedelta

from fastapi import status

from taskboard.core.security import create_access_token, create_user_token
from taskboard.models.project import Project
from taskboard.models.task import Task
from taskboard.models.user import User


class TestRegisterEndpoint:
    """POST /api/v1/auth/register"""

    def test_register_returns_user_and_working_token(self, client, db_session):
        payload = {"email": "Alice@Example.com", "password": "secret123", "name": " Alice "}
        response = client.post("/api/v1/auth/register", json=payload)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["user"]["email"] == "alice@example.com"
        assert data["user"]["name"] == "Alice"
        assert data["user"]["role"] == "member"
        assert "passwordhash" not in data["user"]

        me = client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {data['token']}"}
        )
        assert me.status_code == status.HTTP_200_OK
        assert me.json()["user"]["id"] == data["user"]["id"]
        assert "createdAt" in me.json()["user"]

        db_user = db_session.query(User).filter(User.email == "alice@example.com").first()
        assert db_user is not None
        assert db_user.passwordhash != "secret123"

    def test_register_duplicate_email(self, client, create_test_user):
        create_test_user(email="taken@example.com")

        response = client.post(
            "/api/v1/auth/register",
            json={"email": "taken@example.com", "password": "secret123", "name": "Other"},
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json() == {"error": "Email already registered"}

    def test_register_validation_errors_list_fields(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "not-an-email", "password": "123", "name": "Bob"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["error"] == "Validation error"
        fields = {error["field"] for error in data["errors"]}
        assert {"email", "password"} <= fields


class TestLoginEndpoint:
    """POST /api/v1/auth/login"""

    def test_login_success(self, client, create_test_user):
        user = create_test_user(email="login@example.com", password="CorrectHorse1")

        response = client.post(
            "/api/v1/auth/login",
            json={"email": "login@example.com", "password": "CorrectHorse1"},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["user"]["id"] == user.id
        assert response.json()["token"]

    def test_login_wrong_password(self, client, create_test_user):
        create_test_user(email="login@example.com", password="CorrectHorse1")

        response = client.post(
            "/api/v1/auth/login",
            json={"email": "login@example.com", "password": "wrong-password"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"error": "Invalid credentials"}

    def test_login_unknown_email(self, client):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "ghost@example.com", "password": "whatever"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestAuthGate:
    """Bearer token handling on protected routes"""

    def test_missing_token(self, client):
        response = client.get("/api/v1/projects")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"error": "Access token required"}

    def test_malformed_token(self, client):
        response = client.get(
            "/api/v1/projects", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {"error": "Invalid token"}

    def test_expired_token(self, client, create_test_user):
        user = create_test_user()
        token = create_access_token(
            data={"sub": str(user.id), "email": user.email},
            expires_delta=timedelta(minutes=-5),
        )

        response = client.get(
            "/api/v1/projects", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {"error": "Token expired"}

    def test_token_for_deleted_user(self, client, create_test_user, db_session):
        user = create_test_user()
        headers = {"Authorization": f"Bearer {create_user_token(user)}"}
        db_session.delete(user)
        db_session.commit()

        protected = client.get("/api/v1/projects", headers=headers)
        me = client.get("/api/v1/auth/me", headers=headers)

        assert protected.status_code == status.HTTP_401_UNAUTHORIZED
        assert protected.json() == {"error": "User not found"}
        assert me.status_code == status.HTTP_404_NOT_FOUND


class TestDemoLogin:
    """POST /api/v1/auth/demo"""

    def test_demo_provisions_workspace_once(self, client, db_session):
        first = client.post("/api/v1/auth/demo")
        second = client.post("/api/v1/auth/demo")

        assert first.status_code == status.HTTP_200_OK
        assert second.status_code == status.HTTP_200_OK
        assert first.json()["user"]["id"] == second.json()["user"]["id"]

        demo_user_id = first.json()["user"]["id"]
        assert db_session.query(Project).filter(Project.creator_id == demo_user_id).count() == 3
        assert db_session.query(Task).filter(Task.creator_id == demo_user_id).count() == 12

        projects = client.get(
            "/api/v1/projects",
            headers={"Authorization": f"Bearer {second.json()['token']}"},
        )
        assert projects.status_code == status.HTTP_200_OK
        assert len(projects.json()) == 3
