import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

INVOICE = "http://testserver/api/uploads/invoices/inv.pdf"
PROOF = "http://testserver/api/uploads/payment-proofs/p.png"


async def create(async_client: AsyncClient, headers: dict, amount=450.0, category_id="equipment") -> dict:
    payload = {
        "description": "Camera lens rental",
        "amount": amount,
        "category_id": category_id,
        "project_id": "proj_7",
        "invoice_url": INVOICE,
    }
    resp = await async_client.post("/api/finance/direct-expenses", json=payload, headers=headers)
    assert resp.status_code == 201
    return resp.json()


async def test_create_approve_pay(async_client: AsyncClient, finance_headers, admin_headers):
    eid = (await create(async_client, finance_headers))["id"]

    resp = await async_client.get("/api/admin/direct-expenses?type=pending", headers=admin_headers)
    assert [e["id"] for e in resp.json()["data"]] == [eid]

    resp = await async_client.post(f"/api/admin/direct-expenses/{eid}/approve",
                                   json={"notes": "Within budget"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["status"] == "APPROVED"

    resp = await async_client.get("/api/finance/direct-expenses?type=to_pay", headers=finance_headers)
    assert [e["id"] for e in resp.json()["data"]] == [eid]

    resp = await async_client.post(f"/api/finance/direct-expenses/{eid}/pay",
                                   json={"payment_proof_url": PROOF, "payment_date": "2026-04-02T09:30:00"},
                                   headers=finance_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "PAID"
    assert body["payment_date"].startswith("2026-04-02T09:30")

    resp = await async_client.get("/api/expenses/summary?group_by=category", headers=finance_headers)
    assert resp.status_code == 200
    assert resp.json() == [{"key": "equipment", "total_expense": 450.0, "total_count": 1}]

async def test_staff_cannot_create(async_client: AsyncClient, staff_headers):
    payload = {"description": "Lens", "amount": 10, "category_id": "equipment", "invoice_url": INVOICE}
    resp = await async_client.post("/api/finance/direct-expenses", json=payload, headers=staff_headers)
    assert resp.status_code == 403

async def test_missing_category_is_400(async_client: AsyncClient, finance_headers):
    payload = {"description": "Lens", "amount": 10, "invoice_url": INVOICE}
    resp = await async_client.post("/api/finance/direct-expenses", json=payload, headers=finance_headers)
    assert resp.status_code == 400
    assert resp.json()["details"]["field"] == "category_id"

async def test_finance_cannot_approve(async_client: AsyncClient, finance_headers):
    eid = (await create(async_client, finance_headers))["id"]
    resp = await async_client.post(f"/api/admin/direct-expenses/{eid}/approve", headers=finance_headers)
    assert resp.status_code == 403

async def test_pay_pending_is_409(async_client: AsyncClient, finance_headers):
    eid = (await create(async_client, finance_headers))["id"]
    resp = await async_client.post(f"/api/finance/direct-expenses/{eid}/pay",
                                   json={"payment_proof_url": PROOF}, headers=finance_headers)
    assert resp.status_code == 409

async def test_reject_twice_is_409(async_client: AsyncClient, finance_headers, admin_headers):
    eid = (await create(async_client, finance_headers))["id"]
    resp = await async_client.post(f"/api/admin/direct-expenses/{eid}/reject",
                                   json={"reason": "Duplicate"}, headers=admin_headers)
    assert resp.status_code == 200
    resp = await async_client.post(f"/api/admin/direct-expenses/{eid}/reject",
                                   json={"reason": "Duplicate"}, headers=admin_headers)
    assert resp.status_code == 409

async def test_get_unknown_is_404(async_client: AsyncClient, admin_headers):
    resp = await async_client.get("/api/admin/direct-expenses/nope", headers=admin_headers)
    assert resp.status_code == 404

async def test_finance_statistics_are_own(async_client: AsyncClient, finance_headers, other_finance_headers,
                                          admin_headers):
    await create(async_client, finance_headers, amount=100)
    await create(async_client, other_finance_headers, amount=900)

    resp = await async_client.get("/api/finance/direct-expenses/statistics", headers=finance_headers)
    assert resp.json()["total"] == 1
    assert resp.json()["total_amount"] == 100.0

    resp = await async_client.get("/api/admin/direct-expenses/statistics", headers=admin_headers)
    assert resp.json()["total"] == 2

async def test_ledger_rebuild_is_admin_only(async_client: AsyncClient, finance_headers, admin_headers):
    resp = await async_client.post("/api/expenses/rebuild", headers=finance_headers)
    assert resp.status_code == 403
    resp = await async_client.post("/api/expenses/rebuild", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == {"status": "success", "entities": 0}

async def test_staff_cannot_read_ledger(async_client: AsyncClient, staff_headers):
    resp = await async_client.get("/api/expenses", headers=staff_headers)
    assert resp.status_code == 403
