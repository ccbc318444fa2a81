"""
Configuration module for the Bike Registry recovery service.
Loads environment variables and provides centralized configuration.
"""

import os
from dotenv import load_dotenv
from pathlib import Path

# Load environment variables
load_dotenv()

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

class Settings:
    """Application settings loaded from environment variables."""

    # Surface exception details in 500 responses
    DEBUG: bool = os.getenv("DEBUG", "false").lower() in ("1", "true", "yes")

    # Database - Default to SQLite for easy local development
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'bike_registry.db'}"
    )

    # Upload Settings
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", str(BASE_DIR / "uploads"))
    ALERT_IMAGE_DIR: str = os.getenv("ALERT_IMAGE_DIR", str(Path(UPLOAD_DIR) / "alert_images"))
    MAX_FILE_SIZE: int = 20 * 1024 * 1024  # 20MB
    ALLOWED_IMAGE_EXTENSIONS: set = {".jpg", ".jpeg", ".png", ".webp"}

    # Alert image canvas (promoted theft alerts are square social posts)
    ALERT_IMAGE_SIZE: int = int(os.getenv("ALERT_IMAGE_SIZE", "1200"))
    ALERT_IMAGE_BANNER_HEIGHT: int = int(os.getenv("ALERT_IMAGE_BANNER_HEIGHT", "160"))
    ALERT_IMAGE_JPEG_QUALITY: int = int(os.getenv("ALERT_IMAGE_JPEG_QUALITY", "90"))

    # Email Alert Configuration (admin notifications over SMTP)
    EMAIL_ALERTS_ENABLED: bool = os.getenv("EMAIL_ALERTS_ENABLED", "false").lower() in ("1", "true", "yes")
    SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: str = os.getenv("SMTP_USER", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    SMTP_FROM_EMAIL: str = os.getenv("SMTP_FROM_EMAIL", "")  # Verified sender for Brevo
    ADMIN_EMAIL_RECIPIENTS: str = os.getenv("ADMIN_EMAIL_RECIPIENTS", "")  # Comma-separated

    # Brevo transactional templates (owner-facing notifications)
    BREVO_API_KEY: str = os.getenv("BREVO_API_KEY", "")
    DEFAULT_FROM_EMAIL: str = os.getenv("DEFAULT_FROM_EMAIL", "noreply@example.com")
    DEFAULT_FROM_NAME: str = os.getenv("DEFAULT_FROM_NAME", "Bike Registry")
    BREVO_PARKING_TEMPLATE_ID: int = int(os.getenv("BREVO_PARKING_TEMPLATE_ID", "1"))

    # Public site, used to build retrieval links in emails
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:8000")

settings = Settings()

# Create upload directories if they don't exist
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
os.makedirs(settings.ALERT_IMAGE_DIR, exist_ok=True)
