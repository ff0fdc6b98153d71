import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./hire_me_for.db")
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")

SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", "24"))
OTP_TTL_MINUTES = int(os.getenv("OTP_TTL_MINUTES", "60"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

BULKSMS_API_URL = os.getenv("BULKSMS_API_URL", "https://api.bulksms.com/v1/messages")
BULKSMS_TOKEN_ID = os.getenv("BULKSMS_TOKEN_ID")
BULKSMS_TOKEN_SECRET = os.getenv("BULKSMS_TOKEN_SECRET")
BULKSMS_SENDER_ID = os.getenv("BULKSMS_SENDER_ID", "HireMeFor")
SMS_COUNTRY_CODE = os.getenv("SMS_COUNTRY_CODE", "27")

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
SEED_DEFAULTS = _flag("SEED_DEFAULTS", "true")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
