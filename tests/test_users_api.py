# tests/test_users_api.py
import uuid

from app.models.user import User

API = "/api/v1/users"


def test_first_request_provisions_cashier(client, session, headers_for):
    newcomer = User(id=uuid.uuid4(), email="dewi@example.com", name="")

    r = client.get(f"{API}/me", headers=headers_for(newcomer))

    assert r.status_code == 200
    assert r.json()["role"] == "cashier"
    assert r.json()["name"] == "dewi"
    assert session.get(User, newcomer.id) is not None


def test_invalid_token_is_rejected(client):
    r = client.get(f"{API}/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_update_own_profile(client, cashier_headers):
    r = client.patch(f"{API}/me", json={"name": "  Bobby "}, headers=cashier_headers)

    assert r.status_code == 200
    assert r.json()["name"] == "Bobby"


def test_profile_cannot_change_role(client, cashier_headers):
    r = client.patch(f"{API}/me", json={"role": "admin"}, headers=cashier_headers)
    assert r.status_code == 422


def test_deactivated_user_is_locked_out(client, admin_headers, cashier, cashier_headers):
    r = client.patch(
        f"{API}/{cashier.id}/status",
        json={"is_active": False},
        headers=admin_headers,
    )
    assert r.json()["is_active"] is False

    r = client.get(f"{API}/me", headers=cashier_headers)
    assert r.status_code == 403
    assert r.json()["detail"] == "Account is deactivated"


def test_admin_manages_roles(client, admin, admin_headers, cashier, cashier_headers):
    assert client.get(API, headers=cashier_headers).status_code == 403

    r = client.patch(f"{API}/{cashier.id}/role", json={"role": "admin"}, headers=admin_headers)
    assert r.json()["role"] == "admin"

    r = client.get(API, params={"role": "admin"}, headers=admin_headers)
    assert {u["email"] for u in r.json()} == {admin.email, cashier.email}

    r = client.patch(f"{API}/{admin.id}/role", json={"role": "cashier"}, headers=admin_headers)
    assert r.status_code == 400


def test_unknown_user_is_404(client, admin_headers):
    r = client.get(f"{API}/{uuid.uuid4()}", headers=admin_headers)
    assert r.status_code == 404
