import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "healthcare_staffing"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))

# Replacement staff on an approved leave go through the same conflict check as a normal assignment.
VALIDATE_REPLACEMENTS = bool(int(os.getenv("VALIDATE_REPLACEMENTS", "1")))

# First admin account, created on startup when no admin exists yet.
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@hospital.local")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "Admin123")
