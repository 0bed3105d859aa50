from models.log import Log
from models.users import User


def register(client, email="jane@pharmacy.com", password="s3cret-pass", name="Jane"):
    return client.post("/register", json={"email": email, "password": password, "name": name})


class TestAuth:
    def test_register_login_me(self, client):
        response = register(client, email="Jane@Pharmacy.com")
        assert response.status_code == 201
        assert response.json()["email"] == "jane@pharmacy.com"
        assert response.json()["role"] == "customer"

        login = client.post("/login", json={"email": "jane@pharmacy.com", "password": "s3cret-pass"})
        assert login.status_code == 200
        token = login.json()["access_token"]

        me = client.get("/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["name"] == "Jane"

    def test_duplicate_email(self, client):
        register(client)

        response = register(client, email="JANE@pharmacy.com")

        assert response.status_code == 400
        assert response.json()["error"] == "Email already registered"

    def test_wrong_password_is_logged(self, client, db):
        register(client)

        response = client.post("/login", json={"email": "jane@pharmacy.com", "password": "nope"})

        assert response.status_code == 401
        failed = db.query(Log).filter(Log.action == "LOGIN", Log.status == "FAIL").all()
        assert len(failed) == 1

    def test_invalid_token(self, client):
        response = client.get("/me", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"


class TestAdminAccess:
    def test_status_reports_permissions(self, client, auth_headers):
        data = client.get("/admin/status", headers=auth_headers).json()

        assert data["role"]["name"] == "super_admin"
        assert data["role"]["permissions"]["can_manage_inventory"] is True

    def test_customer_is_not_admin(self, client):
        register(client)
        token = client.post("/login", json={"email": "jane@pharmacy.com", "password": "s3cret-pass"}).json()["access_token"]

        response = client.get("/admin/status", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json()["error"] == "Admin access required"

    def test_grant_and_revoke_role(self, client, db, auth_headers):
        user_id = register(client).json()["id"]

        granted = client.put(f"/admin/users/{user_id}/role", json={"role": "admin"}, headers=auth_headers)
        assert granted.status_code == 200
        assert granted.json()["role"]["permissions"]["can_manage_admins"] is False
        assert db.query(User).filter(User.id == user_id).one().role == "admin"

        token = client.post("/login", json={"email": "jane@pharmacy.com", "password": "s3cret-pass"}).json()["access_token"]
        headers = {"Authorization": f"Bearer {token}"}
        assert client.get("/admin/inventory", headers=headers).status_code == 200
        assert client.get("/admin/roles", headers=headers).status_code == 403

        revoked = client.delete(f"/admin/users/{user_id}/role", headers=auth_headers)
        assert revoked.status_code == 200
        assert client.get("/admin/inventory", headers=headers).status_code == 403

    def test_unknown_role(self, client, auth_headers):
        user_id = register(client).json()["id"]

        response = client.put(f"/admin/users/{user_id}/role", json={"role": "owner"}, headers=auth_headers)

        assert response.status_code == 400

    def test_cannot_revoke_self(self, client, auth_headers, super_admin):
        response = client.delete(f"/admin/users/{super_admin.user_id}/role", headers=auth_headers)

        assert response.status_code == 400

    def test_user_listing(self, client, auth_headers, editor_admin):
        register(client)

        admins = client.get("/admin/users?admins_only=true", headers=auth_headers).json()
        everyone = client.get("/admin/users", headers=auth_headers).json()

        assert admins["total"] == 2
        assert everyone["total"] == 3
        roles = {u["email"]: u["admin_role"] for u in everyone["items"]}
        assert roles["editor@pharmacy.com"] == "catalog_editor"
        assert roles["jane@pharmacy.com"] is None

    def test_logs_require_analytics_permission(self, client, auth_headers, editor_headers):
        assert client.get("/logs", headers=auth_headers).status_code == 200
        assert client.get("/logs", headers=editor_headers).status_code == 403

    def test_logs_filter_by_action(self, client, auth_headers, category):
        client.post("/admin/categories", json={"name": "Baby Care"}, headers=auth_headers)

        data = client.get("/logs?action=category&status=success", headers=auth_headers).json()

        assert data["total"] == 1
        assert data["items"][0]["action"] == "CATEGORY_CREATE"
        assert data["items"][0]["user_email"] == "root@pharmacy.com"
