"""
Unit tests for authentication and role-based authorization.

Tests:
- Bearer token verification (missing, forged, expired, no email)
- Mapping the token email to a registered user
- Role checks on admin and evaluator routes
"""

from datetime import timedelta

from jose import jwt

from app.core.security import decode_supabase_token
from app.models.user import User


class TestTokenVerification:
    """Test the bearer token dependency"""

    def test_missing_token(self, client):
        response = client.get("/api/v1/users/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "No token provided"
        assert response.headers["www-authenticate"] == "Bearer"

    def test_forged_token(self, client, evaluator_user, token_factory):
        token = token_factory(evaluator_user.email, secret="not-the-project-secret")
        response = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    def test_expired_token(self, client, evaluator_user, token_factory):
        token = token_factory(evaluator_user.email, expires_in=timedelta(minutes=-5))
        response = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    def test_token_without_email(self, client, test_settings):
        token = jwt.encode({"sub": "anonymous"}, test_settings.SUPABASE_JWT_SECRET, algorithm="HS256")
        response = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["detail"] == "User email not found in token"

    def test_secret_not_configured(self, client, evaluator_headers, monkeypatch, test_settings):
        monkeypatch.setattr(test_settings, "SUPABASE_JWT_SECRET", "")
        response = client.get("/api/v1/users/me", headers=evaluator_headers)

        assert response.status_code == 401
        assert response.json()["detail"] == "JWT secret not configured"

    def test_decode_ignores_audience(self, test_settings, token_factory):
        """Supabase tokens carry aud=authenticated, which is not pinned"""
        payload = decode_supabase_token(token_factory("someone@qualitylab.io"))

        assert payload["email"] == "someone@qualitylab.io"
        assert payload["aud"] == "authenticated"


class TestCurrentUser:
    """Test resolving the registered user"""

    def test_registered_user(self, client, evaluator_user, evaluator_headers):
        response = client.get("/api/v1/users/me", headers=evaluator_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == evaluator_user.id
        assert data["email"] == "evaluator@qualitylab.io"
        assert data["role"]["name"] == "evaluator"

    def test_unregistered_email(self, client, roles, auth_headers):
        response = client.get("/api/v1/users/me", headers=auth_headers("stranger@qualitylab.io"))

        assert response.status_code == 403
        assert response.json()["detail"] == "User not registered"


class TestRoleChecks:
    """Test require_admin / require_evaluator"""

    def test_evaluator_denied_on_admin_route(self, client, evaluator_headers):
        response = client.get("/api/v1/users", headers=evaluator_headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "Insufficient role"

    def test_admin_allowed_on_evaluator_route(self, client, admin_headers, evaluator_user):
        response = client.get(f"/api/v1/users/{evaluator_user.id}", headers=admin_headers)
        assert response.status_code == 200

    def test_user_without_role(self, client, db_session, auth_headers):
        user = User(name="No Role", email="norole@qualitylab.io")
        db_session.add(user)
        db_session.commit()

        headers = auth_headers(user.email)

        # Any registered user can read their own profile
        assert client.get("/api/v1/users/me", headers=headers).status_code == 200

        response = client.get(f"/api/v1/users/{user.id}", headers=headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "User without role"
