"""Configuration management for the content admin backend and editor."""

import os
from pathlib import Path

# Database path configuration
DB_PATH = os.getenv("DB_PATH", "./data/content.db")

DEBUG = os.getenv("DEBUG", "true").lower() == "true"

# Session auth for write routes (GET stays public for the website)
AUTH_ENABLED = os.getenv("AUTH_ENABLED", "true").lower() == "true"
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "token")
SESSION_MAX_AGE_SEC = int(os.getenv("SESSION_MAX_AGE_SEC", "86400"))
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

# File storage configuration
UPLOAD_PROVIDER = os.getenv("UPLOAD_PROVIDER", "ftp")  # ftp|local
FTP_HOST = os.getenv("FTP_HOST")
FTP_USER = os.getenv("FTP_USER")
FTP_PASS = os.getenv("FTP_PASS")
FTP_SECURE = os.getenv("FTP_SECURE", "false").lower() == "true"
FTP_DOMAIN = os.getenv("FTP_DOMAIN", "")
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./data/uploads")
LOCAL_UPLOAD_URL = os.getenv("LOCAL_UPLOAD_URL", "/uploads")

# Editor configuration
MESSAGE_TIMEOUT_SEC = float(os.getenv("MESSAGE_TIMEOUT_SEC", "3"))
EDITOR_API_URL = os.getenv("EDITOR_API_URL", "http://localhost:8000")

VERSION = "1.0.0"


def get_upload_provider():
    """Get configured upload provider implementation."""
    if UPLOAD_PROVIDER == "local":
        from .uploads import LocalUploadProvider
        return LocalUploadProvider(UPLOAD_DIR, LOCAL_UPLOAD_URL)

    from .uploads import FtpUploadProvider
    return FtpUploadProvider(
        host=FTP_HOST,
        user=FTP_USER,
        password=FTP_PASS,
        domain=FTP_DOMAIN,
        secure=FTP_SECURE
    )


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "true").lower() == "true"


def is_auth_enabled():
    """Check if write routes require a session."""
    return AUTH_ENABLED


def ensure_db_directory():
    """Ensure the database directory exists."""
    Path(DB_PATH).parent.mkdir(parents=True, exist_ok=True)


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if UPLOAD_PROVIDER not in ["ftp", "local"]:
        issues.append(f"Invalid UPLOAD_PROVIDER: {UPLOAD_PROVIDER}")

    if UPLOAD_PROVIDER == "ftp":
        for name, value in (("FTP_HOST", FTP_HOST), ("FTP_USER", FTP_USER), ("FTP_DOMAIN", FTP_DOMAIN)):
            if not value:
                issues.append(f"{name} must be set when UPLOAD_PROVIDER=ftp")

    if AUTH_ENABLED and (not ADMIN_EMAIL or not ADMIN_PASSWORD):
        issues.append("ADMIN_EMAIL and ADMIN_PASSWORD must be set when AUTH_ENABLED=true")

    if SESSION_MAX_AGE_SEC < 1:
        issues.append("SESSION_MAX_AGE_SEC must be >= 1")

    if MESSAGE_TIMEOUT_SEC <= 0:
        issues.append("MESSAGE_TIMEOUT_SEC must be > 0")

    return issues
