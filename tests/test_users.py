from conftest import PASSWORD, auth_headers

from autocare.models import Role, User
from autocare.security import decode_access_token


def register(client, **overrides):
    payload = {
        "fullName": "Nina New",
        "email": "nina@example.com",
        "password": "hunter22",
        "phone": "(555) 123-4567",
    }
    payload.update(overrides)
    return client.post("/auth/register", json=payload)


# ============================================================================
# AUTH
# ============================================================================


def test_register_returns_customer_token(client, db):
    response = register(client, email="Nina@Example.com")
    assert response.status_code == 201
    body = response.json()
    assert body["role"] == "CUSTOMER"
    assert body["email"] == "nina@example.com"
    assert body["tokenType"] == "Bearer"
    assert decode_access_token(body["token"])["sub"] == str(body["id"])

    stored = db.query(User).filter_by(email="nina@example.com").one()
    assert stored.password_hash != "hunter22"
    assert stored.phone == "5551234567"


def test_register_duplicate_email_conflicts(client, customer):
    response = register(client, email=customer.email)
    assert response.status_code == 400
    assert "already exists" in response.json()["detail"]


def test_register_validation(client):
    assert register(client, password="123").status_code == 400
    assert register(client, email="nope").status_code == 400
    assert register(client, fullName="  ").status_code == 400


def test_login_and_me(client, customer):
    response = client.post("/auth/login", json={"email": customer.email, "password": PASSWORD})
    assert response.status_code == 200
    token = response.json()["token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["id"] == customer.id
    assert me.json()["fullName"] == "Carol Customer"


def test_login_wrong_password(client, customer):
    response = client.post("/auth/login", json={"email": customer.email, "password": "wrong-pass"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


def test_login_unknown_email(client):
    response = client.post("/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
    assert response.status_code == 401


def test_login_disabled_account(client, make_user):
    disabled = make_user(Role.CUSTOMER, enabled=False)
    response = client.post("/auth/login", json={"email": disabled.email, "password": PASSWORD})
    assert response.status_code == 403


def test_login_is_rate_limited(client, customer):
    payload = {"email": customer.email, "password": "wrong-pass"}
    statuses = [client.post("/auth/login", json=payload).status_code for _ in range(11)]
    assert statuses[:10] == [401] * 10
    assert statuses[10] == 429


# ============================================================================
# SUPER ADMIN
# ============================================================================


def test_super_admin_creates_employee(client, super_admin):
    response = client.post(
        "/super-admin/users",
        json={
            "fullName": "Ed Worker",
            "email": "ed@example.com",
            "password": "secret99",
            "role": "EMPLOYEE",
        },
        headers=auth_headers(super_admin),
    )
    assert response.status_code == 201
    assert response.json()["role"] == "EMPLOYEE"
    assert response.json()["enabled"] is True


def test_only_super_admin_creates_users(client, admin):
    response = client.post(
        "/super-admin/users",
        json={"fullName": "X", "email": "x@example.com", "password": "secret99", "role": "ADMIN"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 403


def test_list_users_paged(client, super_admin, customer, employee):
    response = client.get(
        "/super-admin/users", params={"page": 0, "size": 2}, headers=auth_headers(super_admin)
    )
    assert response.status_code == 200
    page = response.json()
    assert page["totalElements"] == 3
    assert page["totalPages"] == 2
    assert len(page["content"]) == 2


def test_statistics(client, super_admin, customer, employee, admin, make_user):
    make_user(Role.CUSTOMER, enabled=False)
    response = client.get("/super-admin/users/statistics", headers=auth_headers(super_admin))
    assert response.json() == {
        "totalUsers": 5,
        "enabledUsers": 4,
        "disabledUsers": 1,
        "adminCount": 1,
        "employeeCount": 1,
        "customerCount": 2,
    }


def test_users_by_role(client, super_admin, employee, customer):
    response = client.get("/super-admin/users/role/EMPLOYEE", headers=auth_headers(super_admin))
    assert [u["id"] for u in response.json()] == [employee.id]


def test_toggle_status_round_trip(client, super_admin, customer):
    headers = auth_headers(super_admin)
    first = client.patch(f"/super-admin/users/{customer.id}/toggle-status", headers=headers)
    assert first.json()["enabled"] is False
    second = client.patch(f"/super-admin/users/{customer.id}/toggle-status", headers=headers)
    assert second.json()["enabled"] is True


def test_super_admin_accounts_are_protected(client, super_admin, make_user):
    other = make_user(Role.SUPER_ADMIN)
    headers = auth_headers(super_admin)
    assert client.delete(f"/super-admin/users/{other.id}", headers=headers).status_code == 403
    assert client.patch(f"/super-admin/users/{other.id}/toggle-status", headers=headers).status_code == 403


def test_delete_user(client, super_admin, make_user):
    doomed = make_user(Role.CUSTOMER)
    headers = auth_headers(super_admin)
    assert client.delete(f"/super-admin/users/{doomed.id}", headers=headers).status_code == 204
    assert client.delete(f"/super-admin/users/{doomed.id}", headers=headers).status_code == 404


# ============================================================================
# STAFF DIRECTORY
# ============================================================================


def test_employee_directory_skips_disabled(client, admin, employee, make_user):
    make_user(Role.EMPLOYEE, enabled=False)
    response = client.get("/users/employees", headers=auth_headers(admin))
    assert [u["id"] for u in response.json()] == [employee.id]


def test_customers_cannot_browse_directory(client, customer):
    assert client.get("/users/customers", headers=auth_headers(customer)).status_code == 403
    assert client.get(f"/users/{customer.id}", headers=auth_headers(customer)).status_code == 403
