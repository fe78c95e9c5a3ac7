from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from conftest import make_estimate

from gardenbook.main import app
from gardenbook.services.auth_service import get_session_provider
from gardenbook.services.storage_service import LocalStore, get_store
from gardenbook.services.sync_service import SyncReconciler, get_sync_reconciler

YEAR = date.today().year


@pytest.fixture
def client(store, sessions):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_session_provider] = lambda: sessions
    app.dependency_overrides[get_sync_reconciler] = lambda: SyncReconciler(store, None, sessions)
    yield TestClient(app)
    app.dependency_overrides.clear()


def _saved_estimate(client, **fields):
    estimate = make_estimate(**fields)
    response = client.put(f"/api/estimates/{estimate.id}", json=estimate.to_json_dict())
    assert response.status_code == 200, response.text
    return response.json()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_new_estimate_is_not_persisted(client):
    response = client.post("/api/estimates/new")

    assert response.status_code == 200
    body = response.json()
    assert body["estimateNumber"] == f"NL-{YEAR}-001"
    assert body["status"] == "draft"
    assert body["projectSections"][0]["name"] == "Main"
    assert client.get("/api/estimates").json() == []
    assert client.get("/api/estimates/next-number").json() == {"number": f"NL-{YEAR}-001"}


def test_saving_peeked_estimate_consumes_number(client):
    draft = client.post("/api/estimates/new").json()
    draft["client"]["name"] = "Jane Gardener"

    response = client.put(f"/api/estimates/{draft['id']}", json=draft)

    assert response.status_code == 200
    assert client.get("/api/estimates/next-number").json()["number"] == f"NL-{YEAR}-002"


def test_empty_estimate_is_rejected(client):
    draft = client.post("/api/estimates/new").json()

    response = client.put(f"/api/estimates/{draft['id']}", json=draft)

    assert response.status_code == 422
    assert "client name" in response.json()["detail"]


def test_estimate_id_must_match_url(client):
    estimate = make_estimate()

    response = client.put("/api/estimates/other-id", json=estimate.to_json_dict())

    assert response.status_code == 400


def test_estimate_detail_includes_totals(client):
    saved = _saved_estimate(client)

    response = client.get(f"/api/estimates/{saved['id']}")

    assert response.status_code == 200
    totals = response.json()["totals"]
    assert totals["taxableTotal"] == 50.0
    assert totals["tax"] == 5.0
    assert totals["grandTotal"] == 155.0


def test_preview_totals_for_unsaved_estimate(client):
    estimate = make_estimate()

    response = client.post("/api/estimates/totals", json=estimate.to_json_dict())

    assert response.json()["subtotal"] == 150.0


def test_missing_estimate_is_404(client):
    assert client.get("/api/estimates/missing").status_code == 404
    assert client.delete("/api/estimates/missing").status_code == 404
    assert client.post("/api/estimates/missing/duplicate").status_code == 404


def test_list_is_most_recent_first(client):
    first = _saved_estimate(client, estimate_number="NL-2026-001")
    second = _saved_estimate(client, estimate_number="NL-2026-002")

    ids = [e["id"] for e in client.get("/api/estimates").json()]

    assert ids == [second["id"], first["id"]]


def test_duplicate_and_delete(client):
    saved = _saved_estimate(client)

    duplicate = client.post(f"/api/estimates/{saved['id']}/duplicate").json()
    assert duplicate["id"] != saved["id"]
    assert duplicate["status"] == "draft"

    assert client.delete(f"/api/estimates/{saved['id']}").status_code == 200
    assert [e["id"] for e in client.get("/api/estimates").json()] == [duplicate["id"]]


def test_import_single_estimate(client):
    response = client.post("/api/estimates/import", json={
        "client": {"name": "Imported"},
        "projectSections": [{"name": "Patio", "plantMaterial": [{"description": "Olive", "quantity": 1, "unitPrice": 90}]}],
    })

    assert response.status_code == 200
    assert response.json()["estimateNumber"] == f"NL-{YEAR}-001"


def test_import_single_estimate_with_wrong_typed_sections(client):
    response = client.post("/api/estimates/import", json={"projectSections": 5, "taxableCategories": 5})

    assert response.status_code == 200
    assert [s["name"] for s in response.json()["projectSections"]] == ["Main"]


def test_contract_from_estimate(client):
    saved = _saved_estimate(client)

    response = client.post("/api/contracts", json={"estimateId": saved["id"], "warranty": "One year"})

    assert response.status_code == 200
    contract = response.json()
    assert contract["contractNumber"] == f"NL-C-{YEAR}-001"
    assert contract["warranty"] == "One year"
    assert "Payment Schedule" in contract["terms"]
    detail = client.get(f"/api/contracts/{contract['id']}").json()
    assert detail["totals"]["grandTotal"] == 155.0
    assert client.post("/api/contracts", json={"estimateId": "missing"}).status_code == 404


def test_invoice_payments_update_status(client):
    saved = _saved_estimate(client)
    invoice = client.post("/api/invoices/from-estimate", json={"estimateId": saved["id"]}).json()
    assert invoice["invoiceNumber"] == f"NL-INV-{YEAR}-001"
    assert invoice["status"] == "unpaid"

    invoice = client.post(f"/api/invoices/{invoice['id']}/payments", json={"amount": 60}).json()
    assert invoice["status"] == "partial"

    invoice = client.post(f"/api/invoices/{invoice['id']}/payments", json={"amount": 95}).json()
    assert invoice["status"] == "paid"

    totals = client.get(f"/api/invoices/{invoice['id']}").json()["totals"]
    assert totals["amountPaid"] == 155.0
    assert totals["balanceRemaining"] == 0.0

    payment_id = invoice["payments"][0]["id"]
    invoice = client.delete(f"/api/invoices/{invoice['id']}/payments/{payment_id}").json()
    assert invoice["status"] == "partial"


def test_payment_must_be_positive(client):
    saved = _saved_estimate(client)
    invoice = client.post("/api/invoices/from-estimate", json={"estimateId": saved["id"]}).json()

    response = client.post(f"/api/invoices/{invoice['id']}/payments", json={"amount": -5})

    assert response.status_code == 422


def test_saved_invoice_status_is_recomputed(client):
    saved = _saved_estimate(client)
    invoice = client.post("/api/invoices/from-estimate", json={"estimateId": saved["id"]}).json()
    invoice["status"] = "paid"

    response = client.put(f"/api/invoices/{invoice['id']}", json=invoice)

    assert response.json()["status"] == "unpaid"


def test_standalone_invoice(client):
    response = client.post("/api/invoices/standalone", json={
        "client": {"name": "Walk-in Client"},
        "items": [
            {"description": "Consult", "amount": 150},
            {"description": "Travel", "amount": 40},
            {"description": "", "amount": 0},
        ],
    })

    assert response.status_code == 200
    invoice = response.json()
    assert invoice["estimateId"] == ""
    assert len(invoice["standaloneItems"]) == 2
    totals = client.get(f"/api/invoices/{invoice['id']}").json()["totals"]
    assert totals["grandTotal"] == 190.0
    assert totals["standalone"] is True


def test_invalid_standalone_invoice_burns_no_number(client):
    response = client.post("/api/invoices/standalone", json={
        "client": {"name": ""},
        "items": [{"description": "Consult", "amount": 150}],
    })

    assert response.status_code == 422
    assert client.get("/api/invoices").json() == []
    ok = client.post("/api/invoices/standalone", json={
        "client": {"name": "Walk-in Client"},
        "items": [{"description": "Consult", "amount": 150}],
    }).json()
    assert ok["invoiceNumber"] == f"NL-INV-{YEAR}-001"


def test_catalog_replace_and_search(client):
    response = client.put("/api/catalog/plant", json=[
        {"type": "plant", "name": "Japanese Maple", "category": "Planting", "defaultUnitPrice": 180},
        {"type": "service", "name": "Lavender"},
    ])
    assert response.status_code == 200
    assert {i["type"] for i in response.json()} == {"plant"}

    results = client.get("/api/catalog/search", params={"q": "map jap"}).json()
    assert [i["name"] for i in results] == ["Japanese Maple"]
    assert client.get("/api/catalog/search", params={"q": "j"}).json() == []
    assert client.get("/api/catalog/search", params={"q": "lav", "type": "service"}).json() == []


def test_unknown_catalog_type_is_rejected(client):
    assert client.get("/api/catalog/trees").status_code == 422


def test_settings_update(client):
    current = client.get("/api/settings").json()
    current["company"]["phone"] = "310-555-0100"

    response = client.put("/api/settings", json=current)

    assert response.status_code == 200
    assert client.get("/api/settings").json()["company"]["phone"] == "310-555-0100"


def test_export_and_import(client):
    saved = _saved_estimate(client)
    backup = client.get("/api/data/export").json()
    assert backup["version"] == 1

    client.delete(f"/api/estimates/{saved['id']}")
    response = client.post("/api/data/import", json=backup)

    assert response.status_code == 200
    assert [e["id"] for e in client.get("/api/estimates").json()] == [saved["id"]]


def test_unsupported_backup_version(client):
    response = client.post("/api/data/import", json={"version": 2})

    assert response.status_code == 400
    assert response.json()["detail"] == "Unsupported data version: 2"


def test_storage_full_maps_to_507(engine, sessions):
    tiny = LocalStore(
        session_factory=sessionmaker(autocommit=False, autoflush=False, bind=engine),
        quota_bytes=100,
    )
    app.dependency_overrides[get_store] = lambda: tiny
    try:
        estimate = make_estimate()
        response = TestClient(app).put(f"/api/estimates/{estimate.id}", json=estimate.to_json_dict())
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 507


def test_sync_status_when_disabled(client):
    status = client.get("/api/sync/status").json()

    assert status == {"status": "idle", "enabled": False, "userId": None, "pending": []}
    assert client.post("/api/sync/sign-in", json={"userId": "operator-1"}).status_code == 400
