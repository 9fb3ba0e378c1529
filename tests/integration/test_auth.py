"""
Integration tests for authentication and account management endpoints.
"""
import pytest
from httpx import AsyncClient
from jose import jwt

from app.core.config import settings
from app.db import repositories


@pytest.mark.integration
@pytest.mark.asyncio
class TestRegistration:
    """Test user registration."""

    async def test_register_success(self, client: AsyncClient):
        """Test successful user registration."""
        response = await client.post(
            "/auth/register",
            json={"username": "newuser", "email": "newuser@example.com", "password": "Test123!@#"},
        )

        assert response.status_code == 201
        data = response.json()
        assert "accessToken" in data
        assert data["user"]["username"] == "newuser"
        assert data["user"]["email"] == "newuser@example.com"
        assert "password" not in data["user"]
        assert "hashedPassword" not in data["user"]

    async def test_register_duplicate_username(self, client: AsyncClient, test_user):
        """Test registration with a taken username."""
        response = await client.post(
            "/auth/register",
            json={"username": "testuser", "email": "different@example.com", "password": "Test123!@#"},
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "Username or email already exists"

    async def test_register_duplicate_email(self, client: AsyncClient, test_user):
        """Test registration with a taken email."""
        response = await client.post(
            "/auth/register",
            json={"username": "someoneelse", "email": "testuser@example.com", "password": "Test123!@#"},
        )

        assert response.status_code == 409

    async def test_register_same_user_twice(self, client: AsyncClient):
        """Test registering the same account twice."""
        body = {"username": "twice", "email": "twice@example.com", "password": "Test123!@#"}

        first = await client.post("/auth/register", json=body)
        second = await client.post("/auth/register", json=body)

        assert first.status_code == 201
        assert second.status_code == 409

    async def test_register_weak_password(self, client: AsyncClient):
        """Test registration with a weak password."""
        response = await client.post(
            "/auth/register",
            json={"username": "weakling", "email": "weak@example.com", "password": "password"},
        )

        assert response.status_code == 400
        assert "uppercase" in response.json()["detail"]

    async def test_register_duplicate_with_weak_password(self, client: AsyncClient, test_user):
        """Test that a taken username is reported before the password policy."""
        response = await client.post(
            "/auth/register",
            json={"username": "testuser", "email": "fresh@example.com", "password": "weak"},
        )

        assert response.status_code == 409

    async def test_register_race_is_conflict_not_server_error(self, client: AsyncClient, test_user, monkeypatch):
        """Test that a duplicate slipping past the pre-check still yields 409."""
        async def no_conflict(*args, **kwargs):
            return None

        monkeypatch.setattr(repositories, "find_conflicting_user", no_conflict)

        response = await client.post(
            "/auth/register",
            json={"username": "testuser", "email": "racer@example.com", "password": "Test123!@#"},
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "Username or email already exists"

    async def test_register_invalid_email(self, client: AsyncClient):
        """Test registration with a malformed email."""
        response = await client.post(
            "/auth/register",
            json={"username": "bademail", "email": "not-an-email", "password": "Test123!@#"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["detail"] == "Validation failed"
        assert any(err["field"] == "email" for err in body["errors"])

    async def test_register_missing_fields(self, client: AsyncClient):
        """Test registration with missing fields."""
        response = await client.post("/auth/register", json={"username": "onlyname"})

        assert response.status_code == 400


@pytest.mark.integration
@pytest.mark.asyncio
class TestLogin:
    """Test login with username or email."""

    async def test_login_with_username(self, client: AsyncClient, test_user):
        """Test login by username."""
        response = await client.post("/auth/login", json={"username": "testuser", "password": "Test123!@#"})

        assert response.status_code == 200
        data = response.json()
        assert data["user"] == {"id": test_user.id, "username": "testuser", "email": "testuser@example.com"}

    async def test_login_with_email_in_username_slot(self, client: AsyncClient, test_user):
        """Test login by email gives the same token shape."""
        by_name = await client.post("/auth/login", json={"username": "testuser", "password": "Test123!@#"})
        by_email = await client.post(
            "/auth/login", json={"username": "testuser@example.com", "password": "Test123!@#"}
        )

        assert by_email.status_code == 200
        name_claims = jwt.decode(by_name.json()["accessToken"], settings.JWT_SECRET, algorithms=["HS256"])
        email_claims = jwt.decode(by_email.json()["accessToken"], settings.JWT_SECRET, algorithms=["HS256"])
        assert set(name_claims) == set(email_claims)
        assert name_claims["sub"] == email_claims["sub"] == str(test_user.id)

    async def test_login_wrong_password(self, client: AsyncClient, test_user):
        """Test login with a wrong password."""
        response = await client.post("/auth/login", json={"username": "testuser", "password": "Wrong123!@#"})

        assert response.status_code == 401

    async def test_login_unknown_user_matches_wrong_password(self, client: AsyncClient, test_user):
        """Test that an unknown user looks like a wrong password."""
        unknown = await client.post("/auth/login", json={"username": "ghost", "password": "Test123!@#"})
        wrong = await client.post("/auth/login", json={"username": "testuser", "password": "Wrong123!@#"})

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json()


@pytest.mark.integration
@pytest.mark.asyncio
class TestProfile:

    async def test_profile(self, client: AsyncClient, test_user, user_token):
        """Test reading the current user's profile."""
        response = await client.get("/auth/profile", headers={"Authorization": f"Bearer {user_token}"})

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == test_user.id
        assert data["username"] == "testuser"
        assert data["firstName"] == "Testuser"
        assert data["role"] == "user"
        assert data["isActive"] is False

    async def test_profile_without_token(self, client: AsyncClient):
        """Test profile access without a token."""
        response = await client.get("/auth/profile")

        assert response.status_code == 401

    async def test_profile_with_invalid_token(self, client: AsyncClient):
        """Test profile access with a malformed token."""
        response = await client.get("/auth/profile", headers={"Authorization": "Bearer invalid.token.here"})

        assert response.status_code == 401

    async def test_profile_after_account_deleted(self, client: AsyncClient, test_user, user_token):
        """Test that a token for a deleted user is rejected."""
        await client.delete(f"/auth/delete/{test_user.id}", headers={"Authorization": f"Bearer {user_token}"})

        response = await client.get("/auth/profile", headers={"Authorization": f"Bearer {user_token}"})

        assert response.status_code == 401


@pytest.mark.integration
@pytest.mark.asyncio
class TestUserManagement:

    async def test_update_own_profile(self, client: AsyncClient, test_user, user_token):
        """Test updating one's own names."""
        response = await client.put(
            f"/auth/update/{test_user.id}",
            json={"firstName": "Ada", "lastName": "Lovelace"},
            headers={"Authorization": f"Bearer {user_token}"},
        )

        assert response.status_code == 200
        assert response.json()["firstName"] == "Ada"
        assert response.json()["lastName"] == "Lovelace"

    async def test_update_password_then_login(self, client: AsyncClient, test_user, user_token):
        """Test that a changed password replaces the old one."""
        response = await client.put(
            f"/auth/update/{test_user.id}",
            json={"password": "N3w!Passw0rd"},
            headers={"Authorization": f"Bearer {user_token}"},
        )
        assert response.status_code == 200

        old = await client.post("/auth/login", json={"username": "testuser", "password": "Test123!@#"})
        new = await client.post("/auth/login", json={"username": "testuser", "password": "N3w!Passw0rd"})
        assert old.status_code == 401
        assert new.status_code == 200

    async def test_update_to_taken_username(self, client: AsyncClient, test_user, other_user, user_token):
        """Test renaming to a taken username."""
        response = await client.put(
            f"/auth/update/{test_user.id}",
            json={"username": "otheruser"},
            headers={"Authorization": f"Bearer {user_token}"},
        )

        assert response.status_code == 409

    async def test_update_keeping_own_username(self, client: AsyncClient, test_user, user_token):
        """Test resubmitting one's own username and email."""
        response = await client.put(
            f"/auth/update/{test_user.id}",
            json={"username": "testuser", "email": "testuser@example.com"},
            headers={"Authorization": f"Bearer {user_token}"},
        )

        assert response.status_code == 200

    async def test_update_unknown_user(self, client: AsyncClient, user_token):
        """Test updating an unknown user."""
        response = await client.put(
            "/auth/update/99999",
            json={"firstName": "Nobody"},
            headers={"Authorization": f"Bearer {user_token}"},
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "User with ID 99999 not found"

    async def test_update_other_user_is_masked(self, client: AsyncClient, test_user, other_user, other_token):
        """Test that updating someone else looks like not found."""
        response = await client.put(
            f"/auth/update/{test_user.id}",
            json={"firstName": "Hijacked"},
            headers={"Authorization": f"Bearer {other_token}"},
        )

        assert response.status_code == 404
        assert response.json()["detail"] == f"User with ID {test_user.id} not found"

    async def test_admin_may_update_other_user(self, client: AsyncClient, test_user, admin_token):
        """Test that an admin may update another user."""
        response = await client.put(
            f"/auth/update/{test_user.id}",
            json={"lastName": "Moderated"},
            headers={"Authorization": f"Bearer {admin_token}"},
        )

        assert response.status_code == 200
        assert response.json()["lastName"] == "Moderated"

    async def test_delete_own_account_removes_events(self, client: AsyncClient, test_user, test_events, user_token):
        """Test deleting one's own account and events."""
        response = await client.delete(
            f"/auth/delete/{test_user.id}", headers={"Authorization": f"Bearer {user_token}"}
        )

        assert response.status_code == 200
        assert response.json() == {"message": "User deleted successfully"}

        listing = await client.get("/events")
        assert listing.json()["total"] == 0

    async def test_delete_other_user_is_masked(self, client: AsyncClient, test_user, other_user, other_token):
        """Test that deleting someone else looks like not found."""
        response = await client.delete(
            f"/auth/delete/{test_user.id}", headers={"Authorization": f"Bearer {other_token}"}
        )

        assert response.status_code == 404

    async def test_delete_unknown_user(self, client: AsyncClient, user_token):
        """Test deleting an unknown user."""
        response = await client.delete("/auth/delete/99999", headers={"Authorization": f"Bearer {user_token}"})

        assert response.status_code == 404

    async def test_delete_requires_auth(self, client: AsyncClient, test_user):
        """Test account deletion without a token."""
        response = await client.delete(f"/auth/delete/{test_user.id}")

        assert response.status_code == 401
