"""
Employee management tests.

Verifies:
- Admins add employees with a login account in one step
- Edits keep the employee record and login account in sync
- Deleting removes both; non-admins are refused
"""

import pytest

from storefront.extensions import db
from storefront.models import Employee, User
from storefront.services.auth_service import verify_password


def new_employee(**overrides):
    body = {
        "name": "Eve Ops",
        "username": "eve",
        "email": "eve@shop.test",
        "password": "warehouse1",
        "position": "Packer",
        "role": "staff",
    }
    body.update(overrides)
    return body


class TestAddEmployee:

    def test_creates_employee_and_login(self, client, admin_headers):
        resp = client.post("/api/employees", json=new_employee(), headers=admin_headers)

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["role"] == "staff"
        assert body["employee_code"] == f"{body['id']:03d}"

        user = db.session.query(User).filter_by(username="eve").one()
        assert verify_password("warehouse1", user.password_hash)

        login = client.post("/api/auth/login", json={"username": "eve", "password": "warehouse1"})
        assert login.status_code == 200

    def test_duplicate_username(self, client, admin_headers, customer):
        resp = client.post("/api/employees", json=new_employee(username="alice"), headers=admin_headers)
        assert resp.status_code == 409
        assert db.session.query(Employee).count() == 0

    @pytest.mark.parametrize("overrides", [
        {"name": ""},
        {"role": "admin"},
        {"password": "123"},
        {"email": "not-email"},
    ])
    def test_invalid(self, client, admin_headers, overrides):
        resp = client.post("/api/employees", json=new_employee(**overrides), headers=admin_headers)
        assert resp.status_code == 400
        assert db.session.query(User).filter_by(username="eve").count() == 0

    def test_staff_cannot_manage_employees(self, client, staff_headers):
        assert client.get("/api/employees", headers=staff_headers).status_code == 403
        assert client.post("/api/employees", json=new_employee(), headers=staff_headers).status_code == 403


class TestEditAndDelete:

    @pytest.fixture
    def eve(self, client, admin_headers):
        return client.post("/api/employees", json=new_employee(), headers=admin_headers).get_json()

    def test_list(self, client, admin_headers, eve):
        resp = client.get("/api/employees", headers=admin_headers)
        assert [e["username"] for e in resp.get_json()["employees"]] == ["eve"]

    def test_edit_syncs_login_account(self, client, admin_headers, eve):
        resp = client.put(f"/api/employees/{eve['id']}", json={
            "email": "eve.ops@shop.test",
            "status": "inactive",
            "role": "employee",
            "position": "Lead",
        }, headers=admin_headers)

        assert resp.status_code == 200
        user = db.session.get(User, eve["user_id"])
        assert (user.email, user.status, user.role) == ("eve.ops@shop.test", "inactive", "employee")
        assert db.session.get(Employee, eve["id"]).position == "Lead"

        login = client.post("/api/auth/login", json={"username": "eve", "password": "warehouse1"})
        assert login.status_code == 403

    def test_edit_rejects_unknown_field(self, client, admin_headers, eve):
        resp = client.put(f"/api/employees/{eve['id']}", json={"salary": 1}, headers=admin_headers)
        assert resp.status_code == 400

    def test_edit_missing(self, client, admin_headers):
        assert client.put("/api/employees/999", json={"name": "X"}, headers=admin_headers).status_code == 404

    def test_delete_removes_login(self, client, admin_headers, eve):
        resp = client.delete(f"/api/employees/{eve['id']}", headers=admin_headers)

        assert resp.status_code == 200
        assert db.session.get(Employee, eve["id"]) is None
        assert db.session.get(User, eve["user_id"]) is None
