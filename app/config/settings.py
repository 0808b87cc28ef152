import os
from dotenv import load_dotenv
from pathlib import Path

# Carrega o .env manualmente se estiver fora do Docker
if not os.getenv("RUNNING_IN_DOCKER"):
    dotenv_path = Path(__file__).resolve().parents[2] / ".env"
    load_dotenv(dotenv_path=dotenv_path)


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes")


# Banco de dados
# DATABASE_URL tem precedência; caso ausente, a URL é montada a partir de DB_CONFIG.
DATABASE_URL = os.getenv("DATABASE_URL")

DB_CONFIG = {
    'database': os.getenv('DB_NAME'),
    'user': os.getenv('DB_USER'),
    'password': os.getenv('DB_PASSWORD'),
    'host': os.getenv('DB_HOST'),
    'port': int(os.getenv('DB_PORT', 5432)),
}

# SSL do banco (opcional)
DB_SSL_MODE = os.getenv('DB_SSL_MODE')  # ex.: require, verify-ca, verify-full
DB_TIMEZONE = os.getenv("DB_TIMEZONE", "America/Sao_Paulo")

# JWT (tokens emitidos pelo provedor de autenticação externo)
SECRET_KEY = os.getenv("SECRET_KEY") or os.getenv("SUPABASE_JWT_SECRET")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE") or None

# CORS
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
CORS_ALLOW_ALL = _as_bool(os.getenv("CORS_ALLOW_ALL"), False)

# FastAPI / App
APP_URL = os.getenv("APP_URL", "http://localhost:8000").rstrip("/")
ENABLE_DOCS = _as_bool(os.getenv("ENABLE_DOCS"), True)
LOG_DIR = os.getenv("LOG_DIR", "app/logs")

# Evolution API (gateway WhatsApp)
EVOLUTION_API_BASE_URL = os.getenv("EVOLUTION_API_BASE_URL", "http://localhost:8080").rstrip("/")
EVOLUTION_API_KEY = os.getenv("EVOLUTION_API_KEY", "")
EVOLUTION_API_TIMEOUT_SECONDS = float(os.getenv("EVOLUTION_API_TIMEOUT_SECONDS", 30))
EVOLUTION_API_MAX_RETRIES = int(os.getenv("EVOLUTION_API_MAX_RETRIES", 3))
EVOLUTION_API_RETRY_BASE_SECONDS = float(os.getenv("EVOLUTION_API_RETRY_BASE_SECONDS", 1))

# Webhook
WEBHOOK_SECRET = os.getenv("WEBHOOK_SECRET") or None

# SMTP (convites)
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_FROM = os.getenv("SMTP_FROM", SMTP_USER or "no-reply@avaliatec.local")
SMTP_USE_TLS = _as_bool(os.getenv("SMTP_USE_TLS"), True)

# Caches e prazos
PERMISSIONS_CACHE_TTL_SECONDS = int(os.getenv("PERMISSIONS_CACHE_TTL_SECONDS", 300))
WEBHOOK_IDEMPOTENCY_TTL_SECONDS = int(os.getenv("WEBHOOK_IDEMPOTENCY_TTL_SECONDS", 300))
WEBHOOK_IDEMPOTENCY_MAX_ENTRIES = int(os.getenv("WEBHOOK_IDEMPOTENCY_MAX_ENTRIES", 1000))
SETTINGS_CACHE_TTL_SECONDS = int(os.getenv("SETTINGS_CACHE_TTL_SECONDS", 600))
INVITE_EXPIRY_DAYS = int(os.getenv("INVITE_EXPIRY_DAYS", 7))
