import pytest
from datetime import date
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import engine
from backend.app.main import app
from backend.app.services import invoices as invoice_service


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def register_and_login(client: TestClient, email: str, password: str) -> str:
    client.post("/auth/register", json={"email": email, "password": password})
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    return resp.json()["access_token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def create_company(client: TestClient, token: str) -> int:
    resp = client.post("/companies/", json={"name": "Acme Builders"}, headers=auth(token))
    assert resp.status_code == 201
    return resp.json()["id"]


def create_project(client: TestClient, token: str, company_id: int, name: str, manager_id: int | None = None) -> int:
    resp = client.post(
        f"/companies/{company_id}/projects/",
        json={"name": name, "project_manager_id": manager_id},
        headers=auth(token),
    )
    assert resp.status_code == 201
    return resp.json()["id"]


def create_invoice(client: TestClient, token: str, company_id: int, **overrides):
    body = {
        "client_name": "Harbor Holdings",
        "client_email": "ap@example.com",
        "amount": "1000.00",
        "due_date": "2030-01-31",
    }
    body.update(overrides)
    resp = client.post(f"/companies/{company_id}/invoices/", json=body, headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()


def record_payment(client: TestClient, token: str, company_id: int, invoice_id: int, amount: str):
    resp = client.post(
        f"/companies/{company_id}/invoices/{invoice_id}/payments",
        json={"amount": amount, "payment_method": "ach"},
        headers=auth(token),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_invoice_defaults_to_draft_with_generated_number():
    client = TestClient(app)
    token = register_and_login(client, "inv1@example.com", "secret")
    company_id = create_company(client, token)

    first = create_invoice(client, token, company_id)
    second = create_invoice(client, token, company_id)
    assert first["status"] == "draft"
    assert first["invoice_number"] == "INV-0001"
    assert second["invoice_number"] == "INV-0002"
    assert first["payment_option"] == "regular"
    assert str(first["amount"]).startswith("1000")


def test_duplicate_invoice_number_returns_400():
    client = TestClient(app)
    token = register_and_login(client, "inv2@example.com", "secret")
    company_id = create_company(client, token)
    create_invoice(client, token, company_id, invoice_number="INV-7000")

    resp = client.post(
        f"/companies/{company_id}/invoices/",
        json={"invoice_number": "INV-7000", "client_name": "X", "client_email": "x@example.com", "amount": "5.00"},
        headers=auth(token),
    )
    assert resp.status_code == 400


def test_invalid_invoice_payload_returns_422():
    client = TestClient(app)
    token = register_and_login(client, "inv3@example.com", "secret")
    company_id = create_company(client, token)
    resp = client.post(
        f"/companies/{company_id}/invoices/",
        json={"client_name": "X", "client_email": "not-an-email", "amount": "-5.00"},
        headers=auth(token),
    )
    assert resp.status_code == 422


def test_invoice_project_must_belong_to_company():
    client = TestClient(app)
    token = register_and_login(client, "inv4@example.com", "secret")
    company_a = create_company(client, token)
    company_b = create_company(client, token)
    foreign_project = create_project(client, token, company_b, "Other Job")

    resp = client.post(
        f"/companies/{company_a}/invoices/",
        json={"client_name": "X", "client_email": "x@example.com", "amount": "5.00", "project_id": foreign_project},
        headers=auth(token),
    )
    assert resp.status_code == 404


def test_invoice_inherits_project_manager_from_project():
    client = TestClient(app)
    token = register_and_login(client, "inv5@example.com", "secret")
    me = client.get("/auth/me", headers=auth(token)).json()
    company_id = create_company(client, token)
    project_id = create_project(client, token, company_id, "Warehouse", manager_id=me["id"])

    invoice = create_invoice(client, token, company_id, project_id=project_id)
    assert invoice["project_id"] == project_id
    assert invoice["project_manager_id"] == me["id"]


def test_list_invoices_filters_by_project_and_unassigned():
    client = TestClient(app)
    token = register_and_login(client, "inv6@example.com", "secret")
    me = client.get("/auth/me", headers=auth(token)).json()
    company_id = create_company(client, token)
    project_id = create_project(client, token, company_id, "Warehouse", manager_id=me["id"])
    on_project = create_invoice(client, token, company_id, project_id=project_id)
    unassigned = create_invoice(client, token, company_id)

    resp = client.get(f"/companies/{company_id}/invoices/", params={"project_id": project_id}, headers=auth(token))
    assert [inv["id"] for inv in resp.json()] == [on_project["id"]]

    resp = client.get(f"/companies/{company_id}/invoices/", params={"project_id": "unassigned"}, headers=auth(token))
    assert [inv["id"] for inv in resp.json()] == [unassigned["id"]]

    resp = client.get(
        f"/companies/{company_id}/invoices/", params={"project_manager_id": me["id"]}, headers=auth(token)
    )
    assert [inv["id"] for inv in resp.json()] == [on_project["id"]]

    resp = client.get(f"/companies/{company_id}/invoices/", params={"project_id": "abc"}, headers=auth(token))
    assert resp.status_code == 400


def test_list_invoices_sorting_and_validation():
    client = TestClient(app)
    token = register_and_login(client, "inv7@example.com", "secret")
    company_id = create_company(client, token)
    create_invoice(client, token, company_id, amount="300.00")
    create_invoice(client, token, company_id, amount="100.00")
    create_invoice(client, token, company_id, amount="200.00")

    resp = client.get(
        f"/companies/{company_id}/invoices/",
        params={"sort_by": "amount", "sort_order": "asc"},
        headers=auth(token),
    )
    assert [inv["amount"] for inv in resp.json()] == ["100.00", "200.00", "300.00"]

    resp = client.get(f"/companies/{company_id}/invoices/", params={"sort_by": "nope"}, headers=auth(token))
    assert resp.status_code == 400
    resp = client.get(f"/companies/{company_id}/invoices/", params={"sort_order": "sideways"}, headers=auth(token))
    assert resp.status_code == 400
    resp = client.get(f"/companies/{company_id}/invoices/", params={"status": "void"}, headers=auth(token))
    assert resp.status_code == 400


def test_invoices_are_scoped_to_company_members():
    client = TestClient(app)
    token_a = register_and_login(client, "inv8a@example.com", "secret")
    token_b = register_and_login(client, "inv8b@example.com", "secret")
    company_a = create_company(client, token_a)
    company_b = create_company(client, token_b)
    invoice = create_invoice(client, token_a, company_a)

    assert client.get(f"/companies/{company_a}/invoices/{invoice['id']}", headers=auth(token_b)).status_code == 404
    assert client.get(f"/companies/{company_b}/invoices/{invoice['id']}", headers=auth(token_b)).status_code == 404
    assert client.get(f"/companies/{company_b}/invoices/", headers=auth(token_b)).json() == []


def test_send_invoice_only_from_draft():
    client = TestClient(app)
    token = register_and_login(client, "inv9@example.com", "secret")
    company_id = create_company(client, token)
    invoice = create_invoice(client, token, company_id)

    resp = client.post(f"/companies/{company_id}/invoices/{invoice['id']}/send", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["status"] == "sent"

    resp = client.post(f"/companies/{company_id}/invoices/{invoice['id']}/send", headers=auth(token))
    assert resp.status_code == 400


def test_patch_invoice_status_and_due_date():
    client = TestClient(app)
    token = register_and_login(client, "inv10@example.com", "secret")
    company_id = create_company(client, token)
    invoice = create_invoice(client, token, company_id)

    resp = client.patch(
        f"/companies/{company_id}/invoices/{invoice['id']}",
        json={"status": "overdue", "due_date": "2030-03-01"},
        headers=auth(token),
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "overdue"
    assert resp.json()["due_date"] == "2030-03-01"

    resp = client.patch(
        f"/companies/{company_id}/invoices/{invoice['id']}",
        json={"status": "void"},
        headers=auth(token),
    )
    assert resp.status_code == 422


def test_raising_invoice_amount_rederives_status():
    client = TestClient(app)
    token = register_and_login(client, "inv11@example.com", "secret")
    company_id = create_company(client, token)
    invoice = create_invoice(client, token, company_id)
    record_payment(client, token, company_id, invoice["id"], "1000.00")

    resp = client.patch(
        f"/companies/{company_id}/invoices/{invoice['id']}",
        json={"amount": "1500.00"},
        headers=auth(token),
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "partially_paid"


def test_mark_overdue_only_touches_past_due_open_invoices():
    client = TestClient(app)
    token = register_and_login(client, "inv12@example.com", "secret")
    company_id = create_company(client, token)
    past_due = create_invoice(client, token, company_id, due_date="2030-01-01")
    future = create_invoice(client, token, company_id, due_date="2030-06-01")
    draft = create_invoice(client, token, company_id, due_date="2030-01-01")
    for inv in (past_due, future):
        client.post(f"/companies/{company_id}/invoices/{inv['id']}/send", headers=auth(token))

    resp = client.post(
        f"/companies/{company_id}/invoices/mark-overdue", params={"as_of": "2030-02-01"}, headers=auth(token)
    )
    assert resp.status_code == 200
    assert resp.json() == {"marked_overdue": 1}

    def status_of(inv):
        return client.get(f"/companies/{company_id}/invoices/{inv['id']}", headers=auth(token)).json()["status"]

    assert status_of(past_due) == "overdue"
    assert status_of(future) == "sent"
    assert status_of(draft) == "draft"


def test_aging_summary_uses_remaining_balance():
    client = TestClient(app)
    token = register_and_login(client, "inv13@example.com", "secret")
    company_id = create_company(client, token)
    current = create_invoice(client, token, company_id, amount="100.00", due_date="2030-03-01")
    late = create_invoice(client, token, company_id, amount="1000.00", due_date="2030-01-01")
    very_late = create_invoice(client, token, company_id, amount="50.00", due_date="2029-09-01")
    paid = create_invoice(client, token, company_id, amount="75.00", due_date="2030-01-01")
    create_invoice(client, token, company_id, amount="999.00", due_date="2029-01-01")  # stays draft
    for inv in (current, late, very_late, paid):
        client.post(f"/companies/{company_id}/invoices/{inv['id']}/send", headers=auth(token))
    record_payment(client, token, company_id, late["id"], "400.00")
    record_payment(client, token, company_id, paid["id"], "75.00")

    resp = client.get(
        f"/companies/{company_id}/invoices/aging-summary", params={"as_of": "2030-02-01"}, headers=auth(token)
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["as_of"] == date(2030, 2, 1).isoformat()
    buckets = data["buckets"]
    assert buckets["current"] == {"count": 1, "total_balance": "100.00"}
    assert buckets["days_1_30"] == {"count": 0, "total_balance": "0.00"}
    assert buckets["days_31_60"] == {"count": 1, "total_balance": "600.00"}
    assert buckets["days_61_90"] == {"count": 0, "total_balance": "0.00"}
    assert buckets["days_90_plus"] == {"count": 1, "total_balance": "50.00"}


def test_project_manager_must_belong_to_company():
    client = TestClient(app)
    token = register_and_login(client, "inv14@example.com", "secret")
    outsider_token = register_and_login(client, "inv14out@example.com", "secret")
    outsider = client.get("/auth/me", headers=auth(outsider_token)).json()
    company_id = create_company(client, token)

    resp = client.post(
        f"/companies/{company_id}/invoices/",
        json={
            "client_name": "X",
            "client_email": "x@example.com",
            "amount": "5.00",
            "project_manager_id": outsider["id"],
        },
        headers=auth(token),
    )
    assert resp.status_code == 400

    resp = client.post(
        f"/companies/{company_id}/projects/",
        json={"name": "Warehouse", "project_manager_id": outsider["id"]},
        headers=auth(token),
    )
    assert resp.status_code == 400


def test_invoice_number_taken_by_concurrent_insert_returns_400(monkeypatch):
    client = TestClient(app)
    token = register_and_login(client, "inv15@example.com", "secret")
    company_id = create_company(client, token)
    create_invoice(client, token, company_id, invoice_number="INV-0500")

    # The pre-insert check misses the row, as when another request inserts it first
    monkeypatch.setattr(invoice_service, "_invoice_number_taken", lambda db, company_id, number: False)
    resp = client.post(
        f"/companies/{company_id}/invoices/",
        json={"invoice_number": "INV-0500", "client_name": "X", "client_email": "x@example.com", "amount": "5.00"},
        headers=auth(token),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invoice number already exists"

    monkeypatch.undo()
    assert len(client.get(f"/companies/{company_id}/invoices/", headers=auth(token)).json()) == 1
