import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./platesync.db")

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
IS_PRODUCTION = ENVIRONMENT == "production"

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS = int(os.getenv("ACCESS_TOKEN_EXPIRE_HOURS", "24"))
GLOBAL_ADMIN_TOKEN_EXPIRE_HOURS = int(os.getenv("GLOBAL_ADMIN_TOKEN_EXPIRE_HOURS", "24"))

# Welcome / reset token lifetimes
WELCOME_TOKEN_EXPIRE_HOURS = 72
PASSWORD_RESET_EXPIRE_HOURS = 1
VERIFICATION_CODE_EXPIRE_MINUTES = 15
TRIAL_PERIOD_DAYS = 30

# Bootstrap global admin (created at startup when no global admin exists)
GLOBAL_ADMIN_EMAIL = os.getenv("GLOBAL_ADMIN_EMAIL")
GLOBAL_ADMIN_PASSWORD = os.getenv("GLOBAL_ADMIN_PASSWORD")

# Frontend base URL for links in emails and redirects
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Email Configuration - Resend is the primary provider, SMTP is used when SMTP_HOST is set
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "PlateSync <noreply@platesync.com>")
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

# Cloudflare R2 / S3 Configuration
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "platesync")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL")

# Stripe Configuration
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
STRIPE_MONTHLY_PRICE_ID = os.getenv("STRIPE_MONTHLY_PRICE_ID")
STRIPE_ANNUAL_PRICE_ID = os.getenv("STRIPE_ANNUAL_PRICE_ID")

# Planning Center OAuth Configuration
PLANNING_CENTER_CLIENT_ID = os.getenv("PLANNING_CENTER_CLIENT_ID")
PLANNING_CENTER_CLIENT_SECRET = os.getenv("PLANNING_CENTER_CLIENT_SECRET")
PLANNING_CENTER_REDIRECT_URI = os.getenv(
    "PLANNING_CENTER_REDIRECT_URI", f"{FRONTEND_URL}/planning-center-callback"
)

# OAuth token encryption key (generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())")
TOKEN_ENCRYPTION_KEY = os.getenv("TOKEN_ENCRYPTION_KEY")

# Rate limiting
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

# CORS
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", FRONTEND_URL).split(",")
    if origin.strip()
]

# Background jobs (arq). When disabled or Redis is unreachable, work runs inline.
BACKGROUND_JOBS_ENABLED = os.getenv("BACKGROUND_JOBS_ENABLED", "true").lower() == "true"
