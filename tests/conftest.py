import pytest
from httpx import AsyncClient, ASGITransport
import os
from datetime import timedelta

# Set up test environment variables before anything else
os.environ["ENV"] = "testing"
os.environ["DB_NAME"] = "finance_hub_test"
os.environ["SECRET_KEY"] = "test_secret_key_12345"

from config import config
config.ENV = "testing"

from mongomock_motor import AsyncMongoMockClient

from main import app
from database import client, users_collection
from models.user import Actor
from routes.deps import (
    create_access_token,
    get_ledger,
    get_reimbursement_service,
    get_direct_expense_service,
    get_storage,
)
from services.storage import LocalBlobStorage


@pytest.fixture(scope="function", autouse=True)
def mock_db():
    """Every test gets a fresh in-memory database."""
    client.use(AsyncMongoMockClient())
    yield
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def async_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client


async def _insert_user(user_id: str, role: str, status: str = "active") -> dict:
    user_data = {
        "id": user_id,
        "email": f"{user_id}@example.com",
        "name": user_id.replace("_", " ").title(),
        "role": role,
        "status": status,
    }
    await users_collection.insert_one(dict(user_data))
    return user_data


def _headers_for(user: dict) -> dict:
    token = create_access_token(data={"sub": user["id"]}, expires_delta=timedelta(minutes=60))
    return {"Authorization": f"Bearer {token}"}


# ─── Users ───────────────────────────────────────────────────────────────────

@pytest.fixture(scope="function")
async def staff_user():
    return await _insert_user("staff_1", "STAFF")

@pytest.fixture(scope="function")
async def other_staff_user():
    return await _insert_user("staff_2", "STAFF")

@pytest.fixture(scope="function")
async def finance_user():
    return await _insert_user("finance_1", "FINANCE")

@pytest.fixture(scope="function")
async def other_finance_user():
    return await _insert_user("finance_2", "FINANCE")

@pytest.fixture(scope="function")
async def admin_user():
    return await _insert_user("admin_1", "ADMIN")

@pytest.fixture(scope="function")
async def inactive_user():
    return await _insert_user("former_staff", "STAFF", status="inactive")


@pytest.fixture(scope="function")
def staff_headers(staff_user):
    return _headers_for(staff_user)

@pytest.fixture(scope="function")
def other_staff_headers(other_staff_user):
    return _headers_for(other_staff_user)

@pytest.fixture(scope="function")
def finance_headers(finance_user):
    return _headers_for(finance_user)

@pytest.fixture(scope="function")
def other_finance_headers(other_finance_user):
    return _headers_for(other_finance_user)

@pytest.fixture(scope="function")
def admin_headers(admin_user):
    return _headers_for(admin_user)

@pytest.fixture(scope="function")
def inactive_headers(inactive_user):
    return _headers_for(inactive_user)


# ─── Actors (engine-level tests) ─────────────────────────────────────────────

@pytest.fixture
def staff():
    return Actor(id="staff_1", role="STAFF")

@pytest.fixture
def other_staff():
    return Actor(id="staff_2", role="STAFF")

@pytest.fixture
def finance():
    return Actor(id="finance_1", role="FINANCE")

@pytest.fixture
def other_finance():
    return Actor(id="finance_2", role="FINANCE")

@pytest.fixture
def admin():
    return Actor(id="admin_1", role="ADMIN")


# ─── Services ────────────────────────────────────────────────────────────────

@pytest.fixture
def ledger():
    return get_ledger()

@pytest.fixture
def reimbursement_service(ledger):
    return get_reimbursement_service(ledger)

@pytest.fixture
def direct_expense_service(ledger):
    return get_direct_expense_service(ledger)


@pytest.fixture
def storage(tmp_path):
    local = LocalBlobStorage(root=str(tmp_path / "uploads"), base_url="http://testserver")
    app.dependency_overrides[get_storage] = lambda: local
    return local
