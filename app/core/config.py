"""Application configuration"""
import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    # Database Configuration
    DATABASE_USER = os.getenv("DATABASE_USER", "postgres")
    DATABASE_PASSWORD = os.getenv("DATABASE_PASSWORD", "123456")
    DATABASE_HOST = os.getenv("DATABASE_HOST", "localhost")
    DATABASE_PORT = os.getenv("DATABASE_PORT", "5432")
    DATABASE_NAME = os.getenv("DATABASE_NAME", "agrinvest")
    DATABASE_TIMEOUT_SECONDS = int(os.getenv("DATABASE_TIMEOUT_SECONDS", 10))

    @property
    def DATABASE_URL(self) -> str:
        """Full URL from the environment, or a PostgreSQL URL built from parts"""
        url = os.getenv("DATABASE_URL")
        if url:
            return url
        return f"postgresql://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"

    # Verification codes
    OTP_BACKEND = os.getenv("OTP_BACKEND", "memory").lower()  # "memory" or "database"
    OTP_EXPIRE_MINUTES = int(os.getenv("OTP_EXPIRE_MINUTES", 10))
    OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", 5))
    OTP_CODE_LENGTH = int(os.getenv("OTP_CODE_LENGTH", 6))
    OTP_SWEEP_ENABLED = os.getenv("OTP_SWEEP_ENABLED", "true").lower() == "true"
    OTP_SWEEP_INTERVAL_MINUTES = int(os.getenv("OTP_SWEEP_INTERVAL_MINUTES", 5))

    # Password hashing
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))
    PASSWORD_MIN_LENGTH = int(os.getenv("PASSWORD_MIN_LENGTH", 6))

    # Logging Configuration
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE", "app/logs/logs.txt")

    # SMTP / Email configuration
    SMTP_HOST = os.getenv("SMTP_HOST", "smtp.hostinger.com")
    SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
    SMTP_USER = os.getenv("SMTP_USER", "")
    SMTP_PASS = os.getenv("SMTP_PASS", "")
    SMTP_TIMEOUT_SECONDS = int(os.getenv("SMTP_TIMEOUT_SECONDS", 15))
    EMAIL_FROM = os.getenv("EMAIL_FROM", "noreply@agrinvest.club")
    EMAIL_OUTBOX_DIR = os.getenv("EMAIL_OUTBOX_DIR", "emails")

    # Development/Production Settings
    ENVIRONMENT = os.getenv("ENVIRONMENT", "production")

    # Project Metadata
    PROJECT_NAME = "AGRINVEST Verification API"
    PROJECT_VERSION = "1.0.0"
    API_V1_STR = "/api/v1"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
