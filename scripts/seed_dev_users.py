import sys
import os
import asyncio
from datetime import timedelta

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import users_collection
from models.user import UserModel
from routes.deps import create_access_token
from logging_config import setup_logging

setup_logging()

# One user per role so every workflow step can be exercised locally
DEV_USERS = [
    {"id": "dev_admin", "name": "Admin (Dev)", "email": "admin@example.com", "role": "ADMIN"},
    {"id": "dev_finance", "name": "Finance (Dev)", "email": "finance@example.com", "role": "FINANCE"},
    {"id": "dev_staff", "name": "Staff (Dev)", "email": "staff@example.com", "role": "STAFF",
     "bank_name": "Test Bank", "bank_account_no": "000123456789"},
]

async def seed_users():
    print("🌱 Seeding Dev Users...")

    count = 0
    for user_data in DEV_USERS:
        # Check if user already exists to avoid duplicates
        existing = await users_collection.find_one({"email": user_data["email"]})
        if not existing:
            new_user = UserModel(**user_data)
            await users_collection.insert_one(new_user.model_dump())
            print(f"✅ Added: {user_data['name']}")
            count += 1
        else:
            print(f"⚠️ Skipped (Exists): {user_data['name']}")

    print(f"\n🎉 Seeding Complete! Added {count} new users.\n")

    # Tokens normally come from the auth provider; these are for local API calls only
    for user_data in DEV_USERS:
        token = create_access_token({"sub": user_data["id"]}, expires_delta=timedelta(days=7))
        print(f"{user_data['role']}_TOKEN={token}")

if __name__ == "__main__":
    asyncio.run(seed_users())
