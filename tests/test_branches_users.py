from sqlmodel import select

from models import Credential, Role, User
from services.user_service import ensure_master

NEW_USER = {
    "email": "Nuevo@Example.com",
    "password": "clave123",
    "username": "nuevo",
    "role": "USER",
}


# --- Branches ---

def test_any_user_lists_branches(client, user_a, branch_b, headers_for):
    resp = client.get("/api/branches/", headers=headers_for(user_a))

    assert resp.status_code == 200
    assert [b["name"] for b in resp.json()["data"]] == ["Centro", "Norte"]


def test_user_cannot_create_branch(client, user_a, headers_for):
    resp = client.post("/api/branches/", json={"name": "Sur"}, headers=headers_for(user_a))

    assert resp.status_code == 403
    assert resp.json() == {
        "success": False,
        "message": "No tiene permisos para realizar esta acción",
        "code": "PERMISSION_DENIED",
    }


def test_admin_manages_branches(client, admin_a, headers_for):
    headers = headers_for(admin_a)

    created = client.post("/api/branches/", json={"name": " Sur "}, headers=headers)
    assert created.status_code == 200
    branch_id = created.json()["data"]["id"]
    assert created.json()["data"]["name"] == "Sur"

    renamed = client.put(f"/api/branches/{branch_id}", json={"name": "Sur 2"}, headers=headers)
    assert renamed.json()["data"]["name"] == "Sur 2"

    assert client.delete(f"/api/branches/{branch_id}", headers=headers).status_code == 200
    assert client.get(f"/api/branches/{branch_id}", headers=headers).status_code == 404


def test_blank_branch_name_rejected(client, admin_a, headers_for):
    resp = client.post("/api/branches/", json={"name": "  "}, headers=headers_for(admin_a))

    assert resp.status_code == 400
    assert resp.json()["field"] == "name"


def test_deleting_branch_leaves_users_without_branch(client, session, master, user_a, branch_a, headers_for):
    resp = client.delete(f"/api/branches/{branch_a.id}", headers=headers_for(master))
    assert resp.status_code == 200

    session.refresh(user_a)
    assert user_a.branch_id == branch_a.id

    listed = client.get("/api/users/", params={"branchId": branch_a.id}, headers=headers_for(master))
    assert [u["username"] for u in listed.json()["data"]] == ["user_a"]


# --- Users ---

def test_admin_cannot_manage_users(client, admin_a, headers_for):
    headers = headers_for(admin_a)

    assert client.get("/api/users/", headers=headers).status_code == 403
    assert client.post("/api/users/", json=NEW_USER, headers=headers).status_code == 403


def test_master_creates_user_and_keeps_session(client, session, master, branch_a, headers_for):
    headers = headers_for(master)

    resp = client.post("/api/users/", json={**NEW_USER, "branchId": branch_a.id}, headers=headers)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["email"] == "nuevo@example.com"
    assert data["branchId"] == branch_a.id
    assert resp.json()["message"] == 'Usuario "nuevo" creado exitosamente'

    me = client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["data"]["user"]["id"] == master.id

    credential = session.exec(select(Credential).where(Credential.email == "nuevo@example.com")).one()
    assert credential.id == data["id"]

    login = client.post("/api/auth/login", json={"email": "nuevo@example.com", "password": "clave123"})
    assert login.status_code == 200


def test_email_already_in_use(client, session, master, user_a, headers_for):
    resp = client.post(
        "/api/users/", json={**NEW_USER, "email": "USER_A@example.com"}, headers=headers_for(master)
    )

    assert resp.status_code == 409
    assert resp.json()["code"] == "EMAIL_ALREADY_IN_USE"
    assert len(session.exec(select(User)).all()) == 2


def test_weak_password(client, session, master, headers_for):
    resp = client.post("/api/users/", json={**NEW_USER, "password": "123"}, headers=headers_for(master))

    assert resp.status_code == 400
    assert resp.json()["message"] == "La contraseña debe tener al menos 6 caracteres"
    assert session.exec(select(Credential).where(Credential.email == "nuevo@example.com")).first() is None


def test_invalid_email(client, master, headers_for):
    resp = client.post("/api/users/", json={**NEW_USER, "email": "no-es-email"}, headers=headers_for(master))

    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_EMAIL"


def test_unknown_branch_rejected(client, master, headers_for):
    resp = client.post("/api/users/", json={**NEW_USER, "branchId": "missing"}, headers=headers_for(master))

    assert resp.status_code == 400
    assert resp.json()["field"] == "branchId"


def test_update_user_role_and_branch(client, master, user_a, branch_b, headers_for):
    resp = client.put(
        f"/api/users/{user_a.id}",
        json={"role": "ADMIN", "branchId": branch_b.id},
        headers=headers_for(master),
    )

    data = resp.json()["data"]
    assert data["role"] == "ADMIN"
    assert data["branchId"] == branch_b.id
    assert data["username"] == "user_a"


def test_master_cannot_delete_self(client, master, headers_for):
    resp = client.delete(f"/api/users/{master.id}", headers=headers_for(master))

    assert resp.status_code == 400
    assert resp.json()["message"] == "No puede eliminar su propio usuario"


def test_delete_user(client, session, master, user_a, headers_for):
    user_id = user_a.id

    assert client.delete(f"/api/users/{user_id}", headers=headers_for(master)).status_code == 200

    assert session.get(User, user_id) is None
    assert client.get(f"/api/users/{user_id}", headers=headers_for(master)).status_code == 404


def test_list_users_by_branch(client, master, user_a, user_b, admin_a, branch_a, headers_for):
    resp = client.get("/api/users/", params={"branchId": branch_a.id}, headers=headers_for(master))

    assert [u["username"] for u in resp.json()["data"]] == ["admin_a", "user_a"]

    everyone = client.get("/api/users/", headers=headers_for(master)).json()["data"]
    assert len(everyone) == 4


def test_ensure_master_only_on_empty_store(session):
    created = ensure_master(session, "jefe@example.com", "secret123")
    assert created.role == Role.MASTER
    assert created.branch_id is None

    assert ensure_master(session, "otro@example.com", "secret123") is None
