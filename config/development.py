import os

from config import split_emails

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "ea_market"),
}

# Shared secret the EA sends as x-api-key; empty disables the check
LICENSE_API_KEY = os.getenv("LICENSE_API_KEY", "")

# Shop owners whose brokers are offered to their referral tree
ROOT_ADMIN_EMAILS = split_emails(os.getenv("ROOT_ADMIN_EMAILS", "admin@example.com"))

SITE_URL = os.getenv("SITE_URL", "http://localhost:5000")

DEBUG = True

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_FILE = os.getenv("LOG_FILE") or None

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
