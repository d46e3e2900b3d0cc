import pytest
from sqlmodel import select

from core.errors import PermissionDeniedError, ValidationError
from models import Client, ClientStatus, Role
from schemas.schemas import ClientCreate, ClientUpdate
from services import client_service

VALID_CLIENT = {
    "firstName": "Ana",
    "lastName": "Gómez",
    "mobile": "1155550000",
    "interestType": "Dólares",
}


def client_in(**overrides) -> ClientCreate:
    return ClientCreate(**{**VALID_CLIENT, **overrides})


def count_clients(session) -> int:
    return len(session.exec(select(Client)).all())


def test_interest_or_amount_required(session, user_a):
    with pytest.raises(ValidationError) as exc_info:
        client_service.create_client(session, client_in(interestType=None), user_a)

    assert exc_info.value.message == "Debe especificar qué busca o el monto a invertir"
    assert count_clients(session) == 0


def test_investment_amount_alone_is_enough(session, user_a):
    created = client_service.create_client(
        session, client_in(interestType="", investmentAmount=5000), user_a
    )

    assert created.interest_type is None
    assert created.investment_amount == 5000


@pytest.mark.parametrize("field", ["firstName", "lastName", "mobile"])
def test_required_fields(session, user_a, field):
    with pytest.raises(ValidationError) as exc_info:
        client_service.create_client(session, client_in(**{field: "  "}), user_a)

    assert exc_info.value.field == field
    assert count_clients(session) == 0


def test_user_without_branch_cannot_create(session, make_user):
    drifter = make_user("drifter", Role.USER)

    with pytest.raises(ValidationError) as exc_info:
        client_service.create_client(session, client_in(), drifter)
    assert exc_info.value.field == "branchId"


def test_user_is_forced_to_own_branch(session, user_a, branch_b):
    created = client_service.create_client(session, client_in(branchId=branch_b.id), user_a)

    assert created.branch_id == user_a.branch_id
    assert created.status == ClientStatus.PENDING
    assert created.updated_at == created.created_at


def test_admin_may_choose_branch(session, admin_a, branch_b):
    created = client_service.create_client(session, client_in(branchId=branch_b.id), admin_a)

    assert created.branch_id == branch_b.id


def test_admin_defaults_to_own_branch(session, admin_a):
    created = client_service.create_client(session, client_in(branchId=""), admin_a)

    assert created.branch_id == admin_a.branch_id


def test_update_status_stamps_updated_at(session, user_a):
    created = client_service.create_client(session, client_in(), user_a)
    first_stamp = created.updated_at

    updated = client_service.update_client(
        session, created.id, ClientUpdate(status=ClientStatus.CONTACTED), user_a
    )

    assert updated.status == ClientStatus.CONTACTED
    assert updated.updated_at >= first_stamp


def test_invalid_update_leaves_record_untouched(session, user_a):
    created = client_service.create_client(session, client_in(), user_a)

    with pytest.raises(ValidationError):
        client_service.update_client(
            session, created.id, ClientUpdate(interestType="", investmentAmount=None), user_a
        )

    session.refresh(created)
    assert created.interest_type == "Dólares"


def test_user_cannot_move_client_to_other_branch(session, user_a, branch_b):
    created = client_service.create_client(session, client_in(), user_a)

    updated = client_service.update_client(session, created.id, ClientUpdate(branchId=branch_b.id), user_a)

    assert updated.branch_id == user_a.branch_id


def test_other_branch_client_is_forbidden(session, user_a, user_b):
    created = client_service.create_client(session, client_in(), user_a)

    with pytest.raises(PermissionDeniedError):
        client_service.get_client(session, created.id, user_b)
    with pytest.raises(PermissionDeniedError):
        client_service.delete_client(session, created.id, user_b)
    assert count_clients(session) == 1


def test_listing_is_scoped_by_branch(client, user_a, user_b, master, headers_for):
    client.post("/api/clients/", json=VALID_CLIENT, headers=headers_for(user_a))
    client.post("/api/clients/", json={**VALID_CLIENT, "firstName": "Bruno"}, headers=headers_for(user_b))

    mine = client.get("/api/clients/", headers=headers_for(user_a)).json()["data"]
    assert [c["firstName"] for c in mine] == ["Ana"]
    assert all(c["branchId"] == user_a.branch_id for c in mine)

    everything = client.get("/api/clients/", headers=headers_for(master)).json()["data"]
    assert {c["firstName"] for c in everything} == {"Ana", "Bruno"}


def test_search_and_status_filter(client, user_a, headers_for):
    headers = headers_for(user_a)
    client.post("/api/clients/", json=VALID_CLIENT, headers=headers)
    client.post(
        "/api/clients/",
        json={**VALID_CLIENT, "firstName": "Carlos", "lastName": "Ruiz", "status": "COMPLETED"},
        headers=headers,
    )

    found = client.get("/api/clients/", params={"search": "ruiz"}, headers=headers).json()["data"]
    assert [c["lastName"] for c in found] == ["Ruiz"]

    completed = client.get("/api/clients/", params={"status": "COMPLETED"}, headers=headers).json()["data"]
    assert [c["firstName"] for c in completed] == ["Carlos"]


def test_sort_by_last_name(client, user_a, headers_for):
    headers = headers_for(user_a)
    for last_name in ("Zárate", "Acosta", "Medina"):
        client.post("/api/clients/", json={**VALID_CLIENT, "lastName": last_name}, headers=headers)

    resp = client.get("/api/clients/", params={"sortField": "lastName", "sortOrder": "asc"}, headers=headers)

    assert [c["lastName"] for c in resp.json()["data"]] == ["Acosta", "Medina", "Zárate"]


def test_unknown_sort_field_is_rejected(client, user_a, headers_for):
    resp = client.get("/api/clients/", params={"sortField": "mobile"}, headers=headers_for(user_a))

    assert resp.status_code == 422


def test_validation_error_envelope(client, session, user_a, headers_for):
    resp = client.post(
        "/api/clients/", json={**VALID_CLIENT, "interestType": ""}, headers=headers_for(user_a)
    )

    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "message": "Debe especificar qué busca o el monto a invertir",
        "code": "VALIDATION_ERROR",
        "field": "interestType",
    }
    assert count_clients(session) == 0


def test_update_and_delete_over_api(client, session, user_a, headers_for):
    headers = headers_for(user_a)
    created = client.post("/api/clients/", json=VALID_CLIENT, headers=headers).json()["data"]

    resp = client.put(f"/api/clients/{created['id']}", json={"mobile": "1144440000"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["mobile"] == "1144440000"

    assert client.delete(f"/api/clients/{created['id']}", headers=headers).status_code == 200
    assert count_clients(session) == 0


@pytest.mark.parametrize("amount", [0, -1500])
def test_investment_amount_must_be_positive(session, user_a, amount):
    with pytest.raises(ValidationError) as exc_info:
        client_service.create_client(session, client_in(investmentAmount=amount), user_a)

    assert exc_info.value.field == "investmentAmount"
    assert count_clients(session) == 0


def test_update_rejects_non_positive_amount(session, user_a):
    created = client_service.create_client(session, client_in(investmentAmount=1000), user_a)

    with pytest.raises(ValidationError):
        client_service.update_client(session, created.id, ClientUpdate(investmentAmount=0), user_a)

    session.refresh(created)
    assert created.investment_amount == 1000
