import os
import warnings
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./ukuqala.db")

# Doctor tokens
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    warnings.warn(
        "JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    JWT_SECRET = "dev_secret"  # noqa: S105 - Dev fallback only
JWT_EXPIRY = os.getenv("JWT_EXPIRY", "7d")

# Message encryption key, exactly 32 characters (AES-256)
ENCRYPTION_KEY = os.getenv("ENCRYPTION_KEY", "")

# Supabase (patient identity and profiles)
SUPABASE_URL = os.getenv("SUPABASE_URL", "").rstrip("/")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

# Agora video
AGORA_APP_ID = os.getenv("AGORA_APP_ID")
AGORA_APP_CERTIFICATE = os.getenv("AGORA_APP_CERTIFICATE")

# Mistral chat completions
MISTRAL_API_KEY = os.getenv("MISTRAL_API_KEY") or os.getenv("MISTRAL_API_KEY_2")
MISTRAL_MODEL = os.getenv("MISTRAL_MODEL", "mistral-medium-latest")
MISTRAL_API_URL = os.getenv("MISTRAL_API_URL", "https://api.mistral.ai/v1/chat/completions")

# HTTP surface
CORS_ORIGIN = os.getenv("CORS_ORIGIN", "*")
BASE_URL = os.getenv("BASE_URL", "http://localhost:8000").rstrip("/")
SWAGGER_USER = os.getenv("SWAGGER_USER")
SWAGGER_PASS = os.getenv("SWAGGER_PASS")

# Uploads: local directory served at /uploads unless R2 is configured
UPLOAD_DIR = os.getenv("UPLOAD_DIR", str(Path(__file__).resolve().parent.parent / "uploads"))

# Cloudflare R2 Configuration (optional)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "ukuqala")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL", "").rstrip("/")

# Rate limiting on sign-in endpoints
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
