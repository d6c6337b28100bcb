import os
from dotenv import load_dotenv

# Load .env file
load_dotenv()

class Config:
    # --- MongoDB Settings ---
    MONGO_URI = os.getenv("MONGO_URI")
    DB_NAME = os.getenv("DB_NAME", "finance_hub") # Defaults to finance_hub, can be overridden in .env

    # --- Environment ---
    ENV = os.getenv("ENV", "development") # "development", "testing" or "production"
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # --- Security Settings ---
    # Tokens are issued by the external auth provider; we only verify them.
    SECRET_KEY = os.getenv("SECRET_KEY")
    if ENV == "production" and not SECRET_KEY:
        raise ValueError("SECRET_KEY environment variable is mandatory in production!")
    elif not SECRET_KEY:
        SECRET_KEY = "dev_secret_key_change_in_prod"
    ALGORITHM = "HS256"

    # --- Uploads (local blob storage) ---
    UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(os.path.dirname(__file__), "uploads"))
    PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
    MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", 5))

    # --- Workflow Rules ---
    REJECTION_REASON_MIN_LENGTH = int(os.getenv("REJECTION_REASON_MIN_LENGTH", 10))
    # When true only the FINANCE user who reviewed a reimbursement may pay it
    REVIEWER_MUST_PAY = os.getenv("REVIEWER_MUST_PAY", "false").lower() == "true"
    MAX_PAGE_LIMIT = 100

config = Config()
