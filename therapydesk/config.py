import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./therapydesk.db")

# Cloudflare R2 Configuration (session materials)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "therapydesk-session-files")
# Optional explicit endpoint, otherwise derived from the account id
R2_ENDPOINT = os.getenv("R2_ENDPOINT")

# Legacy Appwrite storage - only read by the file migration scripts
APPWRITE_ENDPOINT = os.getenv("APPWRITE_ENDPOINT", "https://cloud.appwrite.io/v1")
APPWRITE_PROJECT_ID = os.getenv("APPWRITE_PROJECT_ID")
APPWRITE_API_KEY = os.getenv("APPWRITE_API_KEY")
APPWRITE_FILES_BUCKET_ID = os.getenv("APPWRITE_FILES_BUCKET_ID")

# Batch session creation throttling
# Fixed pause between sequential writes so the database is not flooded
SESSION_CREATE_DELAY_MS = int(os.getenv("SESSION_CREATE_DELAY_MS", "100"))
SESSION_CREATE_MAX_ATTEMPTS = int(os.getenv("SESSION_CREATE_MAX_ATTEMPTS", "3"))
SESSION_CREATE_BACKOFF_MS = int(os.getenv("SESSION_CREATE_BACKOFF_MS", "500"))

# Frontend origins allowed by CORS
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")
