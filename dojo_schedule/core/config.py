import os

# PostgreSQL
POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
POSTGRES_DB = os.getenv("POSTGRES_DB", "dojo_schedule")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "db")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}",
)

# Environment
ENVIRONMENT = os.getenv("ENVIRONMENT", "production").lower()
DEBUG = ENVIRONMENT in ["development", "dev"]

# Database retry
DB_RETRY_ATTEMPTS = int(os.getenv("DB_RETRY_ATTEMPTS", "3"))
DB_RETRY_DELAY = float(os.getenv("DB_RETRY_DELAY", "1.0"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if not DEBUG else "DEBUG")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json" if not DEBUG else "text")

# Application
APP_NAME = os.getenv("APP_NAME", "Dojo Schedule API")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
    ).split(",")
    if origin.strip()
]

# Sessions
SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY")
SESSION_ALGORITHM = os.getenv("SESSION_ALGORITHM", "HS256")
SESSION_TTL_DAYS = int(os.getenv("SESSION_TTL_DAYS", "7"))

# Schedule queries
MAX_PERIOD_DAYS = int(os.getenv("MAX_PERIOD_DAYS", "62"))


def validate_config():
    """Validate settings at startup"""
    errors = []

    if not SESSION_SECRET_KEY:
        errors.append("SESSION_SECRET_KEY is required")

    if not POSTGRES_HOST:
        errors.append("POSTGRES_HOST is required")

    if DB_RETRY_ATTEMPTS < 1:
        errors.append("DB_RETRY_ATTEMPTS must be >= 1")

    if DB_RETRY_DELAY < 0:
        errors.append("DB_RETRY_DELAY must be >= 0")

    if SESSION_TTL_DAYS < 1:
        errors.append("SESSION_TTL_DAYS must be >= 1")

    if MAX_PERIOD_DAYS < 1:
        errors.append("MAX_PERIOD_DAYS must be >= 1")

    if errors:
        raise ValueError(f"Configuration errors: {'; '.join(errors)}")
