from motor.motor_asyncio import AsyncIOMotorClient
from logging_config import get_logger
from config import config
import certifi

logger = get_logger("database")

uri = config.MONGO_URI
db_name = config.DB_NAME

if uri:
    logger.info(f"MongoDB connection string found: {uri[:20]}...")
else:
    logger.warning("MONGO_URI not found in configuration, falling back to localhost")

class DatabaseProxy:
    def __init__(self):
        self._client = None

    def initialize(self):
        if self._client is None:
            target = uri or "mongodb://localhost:27017/"
            if config.ENV == "production":
                self._client = AsyncIOMotorClient(target, tlsCAFile=certifi.where())
            else:
                self._client = AsyncIOMotorClient(target)
            logger.info(f"Database client initialized on DB: {db_name}")

    def use(self, motor_client):
        """Swap in an already-built client (tests pass an in-memory one)."""
        self._client = motor_client

    def __getattr__(self, name):
        self.initialize()
        return getattr(self._client, name)

    def __getitem__(self, name):
        self.initialize()
        return self._client[name]


client = DatabaseProxy()

class DBProxy:
    def get_collection(self, name):
        return client[db_name][name]

    def __getattr__(self, attr):
        return client[db_name][attr]

    def __getitem__(self, key):
        return client[db_name][key]

db = DBProxy()

class AsyncCollectionProxy:
    def __init__(self, name):
        self.name = name

    def _get_collection(self):
        # Resolved on every access so a swapped client is picked up
        return db.get_collection(self.name)

    def __getattr__(self, attr):
        return getattr(self._get_collection(), attr)

    def __getitem__(self, key):
        return self._get_collection()[key]

users_collection = AsyncCollectionProxy("users")

# Workflow Collections
reimbursements_collection = AsyncCollectionProxy("reimbursements")
direct_expenses_collection = AsyncCollectionProxy("direct_expenses")

# Ledger (realized expenses)
expenses_collection = AsyncCollectionProxy("expenses")
