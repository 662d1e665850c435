"""End-to-end checks through the HTTP layer."""
import uuid
from decimal import Decimal


def invoice_payload(client_id, **overrides):
    payload = {
        "client_id": str(client_id),
        "issue_date": "2024-06-15",
        "subtotal": "1000.00",
        "line_items": [{"description": "Consulting", "quantity": 10, "rate": 100}],
    }
    payload.update(overrides)
    return payload


async def test_health(client, session_factory, monkeypatch):
    monkeypatch.setattr("billbook.database.async_session_factory", session_factory)
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["checks"]["database"] == "connected"


async def test_create_and_fetch_invoice(client, company, clients):
    response = await client.post("/api/v1/invoices", json=invoice_payload(clients["local"].id))
    assert response.status_code == 201
    body = response.json()
    assert body["invoice_number"] == "INV/2425/001"
    assert body["status"] == "DRAFT"
    assert body["tax_type"] == "CGST_SGST"
    assert Decimal(body["grand_total"]) == Decimal("1180")
    assert body["line_items"][0]["description"] == "Consulting"

    fetched = await client.get(f"/api/v1/invoices/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["invoice_number"] == "INV/2425/001"

    listing = await client.get("/api/v1/invoices")
    assert listing.json()["total"] == 1


async def test_duplicate_manual_number_returns_409(client, company, clients):
    payload = invoice_payload(clients["local"].id, numbering={"mode": "MANUAL", "number": "MAN/001"})
    assert (await client.post("/api/v1/invoices", json=payload)).status_code == 201

    response = await client.post("/api/v1/invoices", json=payload)
    assert response.status_code == 409
    body = response.json()
    assert body["type"] == "DocumentNumberConflict"
    assert body["details"]["number"] == "MAN/001"


async def test_manual_numbering_requires_number(client, company, clients):
    payload = invoice_payload(clients["local"].id, numbering={"mode": "MANUAL"})
    assert (await client.post("/api/v1/invoices", json=payload)).status_code == 422


async def test_unknown_invoice_returns_404(client):
    response = await client.get(f"/api/v1/invoices/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.json()["type"] == "NotFoundError"


async def test_payments_flow(client, company, clients):
    created = await client.post("/api/v1/invoices", json=invoice_payload(clients["foreign"].id))
    invoice_id = created.json()["id"]

    first = await client.post(
        f"/api/v1/invoices/{invoice_id}/payments",
        json={"amount_received": "400", "payment_date": "2024-07-01", "payment_method": "WIRE"},
    )
    assert first.status_code == 201
    assert first.json()["invoice_status"] == "PARTIAL"
    assert Decimal(first.json()["balance_due"]) == Decimal("600")

    second = await client.post(
        f"/api/v1/invoices/{invoice_id}/payments",
        json={"amount_received": "600", "payment_date": "2024-07-15"},
    )
    assert second.json()["invoice_status"] == "PAID"

    listing = await client.get(f"/api/v1/invoices/{invoice_id}/payments")
    assert len(listing.json()["items"]) == 2
    assert Decimal(listing.json()["total_paid"]) == Decimal("1000")

    invoice = await client.get(f"/api/v1/invoices/{invoice_id}")
    assert invoice.json()["status"] == "PAID"


async def test_negative_payment_is_rejected(client, company, clients):
    created = await client.post("/api/v1/invoices", json=invoice_payload(clients["foreign"].id))
    response = await client.post(
        f"/api/v1/invoices/{created.json()['id']}/payments",
        json={"amount_received": "-10", "payment_date": "2024-07-01"},
    )
    assert response.status_code == 422


async def test_invoice_status_rules(client, company, clients):
    created = await client.post("/api/v1/invoices", json=invoice_payload(clients["local"].id))
    invoice_id = created.json()["id"]

    sent = await client.patch(f"/api/v1/invoices/{invoice_id}/status", json={"status": "SENT"})
    assert sent.json()["status"] == "SENT"

    paid = await client.patch(f"/api/v1/invoices/{invoice_id}/status", json={"status": "PAID"})
    assert paid.status_code == 422


async def test_tax_classification(client, company):
    response = await client.post("/api/v1/tax/classify", json={"client_state_code": 29, "client_country": "India"})
    body = response.json()
    assert body["tax_type"] == "IGST"
    assert Decimal(body["breakdown"]["igst"]) == Decimal("18")
    assert body["warning"] is None


async def test_tax_classification_without_company_profile(client):
    response = await client.post("/api/v1/tax/classify", json={"client_state_code": 27})
    body = response.json()
    assert body["tax_type"] == "IGST"
    assert body["warning"]


async def test_sequence_reset_and_preview(client, company, clients):
    response = await client.put(
        "/api/v1/settings/sequence",
        json={"type": "INVOICE", "next_number": 50, "on_date": "2024-06-15"},
    )
    assert response.status_code == 200
    assert response.json()["scope_key"] == "24-25"
    assert response.json()["last_count"] == 49

    preview = await client.get("/api/v1/invoices/next-number", params={"issue_date": "2024-06-15"})
    assert preview.json()["next_number"] == "INV/2425/050"

    created = await client.post("/api/v1/invoices", json=invoice_payload(clients["local"].id))
    assert created.json()["invoice_number"] == "INV/2425/050"


async def test_document_settings_roundtrip(client):
    response = await client.put(
        "/api/v1/settings/documents",
        json={"invoice_format": "TAX/{FY}/{SEQ:4}", "quotation_format": "QT/{CC}/{SEQ}"},
    )
    assert response.status_code == 200
    assert response.json()["warnings"] == []

    stored = await client.get("/api/v1/settings/documents")
    assert stored.json()["invoice_format"] == "TAX/{FY}/{SEQ:4}"


async def test_company_profile(client):
    assert (await client.get("/api/v1/settings/company")).status_code == 404

    saved = await client.put("/api/v1/settings/company", json={"company_name": "Acme", "home_state_code": 27})
    assert saved.status_code == 200
    assert saved.json()["home_state_code"] == 27


async def test_quotation_lifecycle(client, company, clients):
    created = await client.post("/api/v1/quotations", json=invoice_payload(clients["foreign"].id))
    assert created.status_code == 201
    quotation = created.json()
    assert quotation["quotation_number"] == "Q/US2425/001"

    accepted = await client.patch(f"/api/v1/quotations/{quotation['id']}/status", json={"status": "ACCEPTED"})
    assert accepted.json()["status"] == "ACCEPTED"

    deleted = await client.delete(f"/api/v1/quotations/{quotation['id']}")
    assert deleted.status_code == 204
    assert (await client.get(f"/api/v1/quotations/{quotation['id']}")).status_code == 404


async def test_client_lifecycle(client, company):
    created = await client.post(
        "/api/v1/clients",
        json={"company_name": "Mysuru Silks", "tax_id": "29AABCM1234L1Z9", "state_code": 29},
    )
    assert created.status_code == 201
    body = created.json()
    assert body["state_name"] == "Karnataka"
    assert body["country"] == "India"

    fetched = await client.get(f"/api/v1/clients/{body['id']}")
    assert fetched.json()["company_name"] == "Mysuru Silks"

    listing = await client.get("/api/v1/clients", params={"search": "silk"})
    assert listing.json()["total"] == 1

    invoice = await client.post("/api/v1/invoices", json=invoice_payload(body["id"]))
    assert invoice.status_code == 201
    assert invoice.json()["tax_type"] == "IGST"


async def test_unknown_client_returns_404(client):
    response = await client.get(f"/api/v1/clients/{uuid.uuid4()}")
    assert response.status_code == 404


async def test_client_with_unknown_state_code_is_rejected(client):
    response = await client.post("/api/v1/clients", json={"company_name": "Nowhere Ltd", "state_code": 50})
    assert response.status_code == 422


async def test_tax_classification_rejects_unknown_state_code(client, company):
    response = await client.post("/api/v1/tax/classify", json={"client_state_code": 50})
    assert response.status_code == 422
