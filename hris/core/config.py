import os
import logging
from pydantic import BaseModel, Field
from typing import List
from dotenv import load_dotenv

load_dotenv()


class Config(BaseModel):
    app_name: str = "Plugo HRIS"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./hris.db")

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24  # 24 hours

    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS: comma-separated origins, defaults to the SPA dev/preview servers
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:5173,http://localhost:4173,http://localhost:5174,"
                "http://127.0.0.1:5173,http://127.0.0.1:4173",
            ).split(",")
            if o.strip()
        ]
    )

    # Rate limiting
    rate_limit_enabled: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    login_rate_limit: str = os.getenv("LOGIN_RATE_LIMIT", "10/minute")

    # Fernet key used for grab codes at rest
    encryption_key: str = os.getenv("ENCRYPTION_KEY", "dev-only-imqhdVYjad8U5efgOBJV3S3BPDmgAc4VPTWcfpMvO10=")

    @property
    def fernet_key(self) -> str:
        return self.encryption_key.replace("dev-only-", "", 1)


settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment == "production":
    _critical_missing = []
    if "dev-only" in settings.secret_key or "change-it" in settings.secret_key:
        _critical_missing.append("SECRET_KEY")
    if "dev-only" in settings.encryption_key:
        _critical_missing.append("ENCRYPTION_KEY")
    if _critical_missing:
        raise RuntimeError(
            f"FATAL: The following secrets must be set in production: "
            f"{', '.join(_critical_missing)}. Set them as environment variables."
        )
else:
    if "dev-only" in settings.secret_key:
        _logger.warning("⚠ Using insecure default SECRET_KEY, only acceptable outside production.")
