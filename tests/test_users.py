"""
Unit tests for user endpoints.
"""

from app.models.user import User


class TestListUsers:

    def test_admin_lists_all_users(self, client, admin_headers, admin_user, evaluator_user):
        response = client.get("/api/v1/users", headers=admin_headers)

        assert response.status_code == 200
        emails = [u["email"] for u in response.json()]
        assert emails == [admin_user.email, evaluator_user.email]


class TestGetUser:

    def test_get_user(self, client, evaluator_headers, admin_user):
        response = client.get(f"/api/v1/users/{admin_user.id}", headers=evaluator_headers)

        assert response.status_code == 200
        assert response.json()["name"] == "Ana Admin"
        assert response.json()["role"]["name"] == "admin"

    def test_get_user_not_found(self, client, evaluator_headers):
        response = client.get("/api/v1/users/9999", headers=evaluator_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "User not found"


class TestUpdateRole:

    def test_promote_evaluator(self, client, admin_headers, evaluator_user):
        response = client.patch(
            f"/api/v1/users/{evaluator_user.id}/role",
            json={"role_name": "admin"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["role"]["name"] == "admin"

    def test_unknown_role(self, client, admin_headers, evaluator_user):
        response = client.patch(
            f"/api/v1/users/{evaluator_user.id}/role",
            json={"role_name": "superuser"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Role superuser not found"

    def test_user_not_found(self, client, admin_headers):
        response = client.patch("/api/v1/users/9999/role", json={"role_name": "admin"}, headers=admin_headers)
        assert response.status_code == 404

    def test_evaluator_cannot_assign_roles(self, client, evaluator_headers, evaluator_user):
        response = client.patch(
            f"/api/v1/users/{evaluator_user.id}/role",
            json={"role_name": "admin"},
            headers=evaluator_headers,
        )
        assert response.status_code == 403


class TestRegister:
    """Test POST /users/register"""

    def test_new_user_gets_evaluator_role(self, client, db_session, roles, auth_headers):
        headers = auth_headers("nuevo@qualitylab.io")

        response = client.post("/api/v1/users/register", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "nuevo@qualitylab.io"
        assert data["name"] == "nuevo"
        assert data["role"]["name"] == "evaluator"

        # The registered user can now use the API
        me = client.get("/api/v1/users/me", headers=headers)
        assert me.status_code == 200
        assert me.json()["id"] == data["id"]

    def test_register_twice(self, client, db_session, roles, auth_headers):
        headers = auth_headers("nuevo@qualitylab.io")

        first = client.post("/api/v1/users/register", headers=headers)
        second = client.post("/api/v1/users/register", json={"name": "Otro Nombre"}, headers=headers)

        assert second.status_code == 200
        assert second.json() == first.json()
        assert db_session.query(User).filter(User.email == "nuevo@qualitylab.io").count() == 1

    def test_custom_name(self, client, roles, auth_headers):
        response = client.post(
            "/api/v1/users/register",
            json={"name": "Nora Nueva"},
            headers=auth_headers("nora@qualitylab.io"),
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Nora Nueva"

    def test_existing_admin_keeps_role(self, client, admin_user, admin_headers):
        response = client.post("/api/v1/users/register", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["id"] == admin_user.id
        assert response.json()["role"]["name"] == "admin"

    def test_roles_not_seeded(self, client, auth_headers):
        response = client.post("/api/v1/users/register", headers=auth_headers("nuevo@qualitylab.io"))

        assert response.status_code == 400
        assert response.json()["detail"] == "Role evaluator not found in database"

    def test_requires_token(self, client, roles):
        response = client.post("/api/v1/users/register")

        assert response.status_code == 401
        assert response.json()["detail"] == "No token provided"
