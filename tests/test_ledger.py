from datetime import datetime

import pytest

from database import expenses_collection, reimbursements_collection
from exceptions import ValidationError
from models.direct_expense import DirectExpenseCreate
from models.expense import ExpenseFilter
from models.reimbursement import ReimbursementCreate

pytestmark = pytest.mark.asyncio

PROOF = "http://testserver/api/uploads/payment-proofs/p.png"


async def paid_reimbursement(service, staff, finance, admin, amount, project_id=None, description="Train ticket"):
    r = await service.submit(staff, ReimbursementCreate(
        description=description, amount=amount, project_id=project_id,
        receipt_url="http://testserver/api/uploads/receipts/r.png",
        expense_date=datetime(2026, 2, 10),
    ))
    await service.review(finance, r.id)
    await service.approve(admin, r.id)
    return await service.mark_as_paid(finance, r.id, PROOF)


async def paid_direct_expense(service, finance, admin, amount, category_id, project_id=None):
    e = await service.create_direct_expense(finance, DirectExpenseCreate(
        description="Lighting hire", amount=amount, category_id=category_id, project_id=project_id,
        invoice_url="http://testserver/api/uploads/invoices/i.pdf",
        expense_date=datetime(2026, 3, 5),
    ))
    await service.approve_direct_expense(admin, e.id)
    return await service.mark_as_paid(finance, e.id, PROOF)


async def test_record_paid_is_idempotent(ledger, reimbursement_service, staff, finance, admin):
    r = await paid_reimbursement(reimbursement_service, staff, finance, admin, 80.0)
    doc = await reimbursements_collection.find_one({"id": r.id}, {"_id": 0})

    first = await ledger.record_paid("REIMBURSEMENT", doc, finance.id)
    second = await ledger.record_paid("REIMBURSEMENT", doc, finance.id)
    assert first["id"] == second["id"]
    assert await expenses_collection.count_documents({"source_id": r.id}) == 1

async def test_unpaid_entities_are_not_posted(ledger, reimbursement_service, staff):
    r = await reimbursement_service.submit(staff, ReimbursementCreate(
        description="Snacks", amount=9.5, receipt_url="http://testserver/r.png",
    ))
    doc = await reimbursements_collection.find_one({"id": r.id}, {"_id": 0})
    with pytest.raises(ValidationError):
        await ledger.record_paid("REIMBURSEMENT", doc, "finance_1")
    assert await expenses_collection.count_documents({}) == 0

async def test_rebuild_restores_missing_entries(ledger, reimbursement_service, direct_expense_service,
                                                staff, finance, admin):
    await paid_reimbursement(reimbursement_service, staff, finance, admin, 40.0)
    await paid_direct_expense(direct_expense_service, finance, admin, 300.0, "equipment")
    await reimbursement_service.submit(staff, ReimbursementCreate(
        description="Still pending", amount=5, receipt_url="http://testserver/r.png",
    ))
    await expenses_collection.delete_many({})

    assert await ledger.rebuild() == 2
    assert await expenses_collection.count_documents({}) == 2

    # Replaying again changes nothing
    assert await ledger.rebuild() == 2
    assert await expenses_collection.count_documents({}) == 2

async def test_list_expenses_filters(ledger, reimbursement_service, direct_expense_service, staff, finance, admin):
    await paid_reimbursement(reimbursement_service, staff, finance, admin, 40.0, project_id="proj_a")
    await paid_direct_expense(direct_expense_service, finance, admin, 300.0, "equipment", project_id="proj_a")
    await paid_direct_expense(direct_expense_service, finance, admin, 70.0, "travel", project_id="proj_b")

    page = await ledger.list_expenses(ExpenseFilter(project_id="proj_a"))
    assert page.pagination.total == 2

    page = await ledger.list_expenses(ExpenseFilter(source_type="DIRECT_EXPENSE", sort_by="amount", sort_order="asc"))
    assert [e.amount for e in page.data] == [70.0, 300.0]

    page = await ledger.list_expenses(ExpenseFilter(start_date=datetime(2026, 3, 1)))
    assert {e.source_type for e in page.data} == {"DIRECT_EXPENSE"}

async def test_summaries(ledger, reimbursement_service, direct_expense_service, staff, finance, admin):
    await paid_reimbursement(reimbursement_service, staff, finance, admin, 40.0, project_id="proj_a")
    await paid_reimbursement(reimbursement_service, staff, finance, admin, 60.0, project_id="proj_b")
    await paid_direct_expense(direct_expense_service, finance, admin, 300.0, "equipment", project_id="proj_a")

    by_project = {row.key: row for row in await ledger.summary_by_project()}
    assert by_project["proj_a"].total_expense == 340.0
    assert by_project["proj_a"].total_count == 2
    assert by_project["proj_b"].total_expense == 60.0

    by_category = await ledger.summary_by_category()
    assert [row.key for row in by_category] == ["equipment", "Reimbursement"]
    assert by_category[1].total_expense == 100.0
