import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./linkos.db")

# Identity provider (Supabase-compatible auth endpoint)
AUTH_URL = os.getenv("AUTH_URL", "").rstrip("/")
AUTH_ANON_KEY = os.getenv("AUTH_ANON_KEY", "")
AUTH_TIMEOUT_SECONDS = float(os.getenv("AUTH_TIMEOUT_SECONDS", "10"))

# SMTP relay
# Generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
SMTP_ENCRYPTION_KEY = os.getenv("SMTP_ENCRYPTION_KEY")
SMTP_TIMEOUT_SECONDS = float(os.getenv("SMTP_TIMEOUT_SECONDS", "30"))

# Auth failures historically surface as 500; "true" maps them to 401/403
STRICT_AUTH_STATUS = os.getenv("STRICT_AUTH_STATUS", "false").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
