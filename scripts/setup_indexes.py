import sys
import os
import asyncio
from pymongo import ASCENDING, DESCENDING

# Add parent directory to path to import database
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import users_collection, reimbursements_collection, direct_expenses_collection, expenses_collection
from logging_config import setup_logging, get_logger

setup_logging()
logger = get_logger("setup_indexes")

async def create_indexes():
    print("🚀 Starting Index Creation...")

    # --- Users ---
    print("\n📦 Users Collection:")
    # Every request loads the actor by id
    await users_collection.create_index([("id", ASCENDING)], unique=True)
    print("✅ Created index: (id UNIQUE)")
    await users_collection.create_index([("email", ASCENDING)], unique=True)
    print("✅ Created index: (email UNIQUE)")

    # --- Reimbursements ---
    print("\n📦 Reimbursements Collection:")
    # Transitions: find_one_and_update({id, status})
    await reimbursements_collection.create_index([("id", ASCENDING)], unique=True)
    print("✅ Created index: (id UNIQUE)")
    # Queues: find({status: X}).sort(submitted_at)
    await reimbursements_collection.create_index([("status", ASCENDING), ("submitted_at", DESCENDING)])
    print("✅ Created index: (status, submitted_at DESC)")
    # My reimbursements and staff statistics
    await reimbursements_collection.create_index([("submitted_by", ASCENDING), ("submitted_at", DESCENDING)])
    print("✅ Created index: (submitted_by, submitted_at DESC)")

    # --- Direct Expenses ---
    print("\n📦 Direct Expenses Collection:")
    await direct_expenses_collection.create_index([("id", ASCENDING)], unique=True)
    print("✅ Created index: (id UNIQUE)")
    await direct_expenses_collection.create_index([("status", ASCENDING), ("created_at", DESCENDING)])
    print("✅ Created index: (status, created_at DESC)")
    await direct_expenses_collection.create_index([("created_by", ASCENDING), ("created_at", DESCENDING)])
    print("✅ Created index: (created_by, created_at DESC)")

    # --- Expense Ledger ---
    print("\n📦 Expenses Collection:")
    # One ledger entry per paid source
    await expenses_collection.create_index([("source_type", ASCENDING), ("source_id", ASCENDING)], unique=True)
    print("✅ Created index: (source_type, source_id UNIQUE)")
    await expenses_collection.create_index([("project_id", ASCENDING), ("expense_date", DESCENDING)])
    print("✅ Created index: (project_id, expense_date DESC)")
    await expenses_collection.create_index([("category_id", ASCENDING), ("expense_date", DESCENDING)])
    print("✅ Created index: (category_id, expense_date DESC)")

    logger.info("Indexes ensured for users, reimbursements, direct_expenses, expenses")
    print("\n✨ All indexes created successfully!")

if __name__ == "__main__":
    # Ensure event loop for async driver
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    loop.run_until_complete(create_indexes())
