import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parents[3]

# Shared admin secret. Left unset, every admin route answers 401.
ADMIN_KEY = os.getenv("ADMIN_KEY")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3847))

DATA_DIR = os.getenv("DATA_DIR", str(PROJECT_ROOT / "data"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

SERVICE_NAME = "crucible-api"
SERVICE_VERSION = "1.0.0"
