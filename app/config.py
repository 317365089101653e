import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Defaults to a local SQLite file so the API can run without Postgres
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./fieldops.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Frontend base URL, used as the default CORS origin
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", f"{FRONTEND_URL},http://localhost:3000").split(",")
    if origin.strip()
]

# Header the dashboard sends to identify the provider whose calendar is open
PROVIDER_HEADER = os.getenv("PROVIDER_HEADER", "X-Provider-Id")
