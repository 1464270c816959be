from pydantic_settings import BaseSettings
from typing import Optional, List


def _parse_allowed_origins(v: str) -> List[str]:
    """Parse comma-separated origins string; strip whitespace; keep non-empty."""
    if not v or not v.strip():
        return []
    return [o.strip() for o in v.split(",") if o.strip()]


_DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:3001",
]


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "postgresql://postgres:postgres@db:5432/kanda"
    AUTO_CREATE_TABLES: bool = False

    # CORS: comma-separated extra origins for production (e.g. https://kandamarkets.com)
    ALLOWED_ORIGINS_EXTRA: str = ""

    def get_allowed_origins(self) -> List[str]:
        """Return CORS allowed origins: default localhost + ALLOWED_ORIGINS_EXTRA."""
        return _DEFAULT_CORS_ORIGINS + _parse_allowed_origins(self.ALLOWED_ORIGINS_EXTRA)

    # Auth
    SECRET_KEY: str = "supersecret_jwt_key_change_in_production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Rate limits (requests per window, per client IP)
    LOGIN_RATE_LIMIT: int = 10
    LEAD_SUBMIT_RATE_LIMIT: int = 5
    RATE_LIMIT_WINDOW_SECONDS: int = 300

    # Geolocation enrichment
    GEOLOCATION_ENABLED: bool = True
    GEOLOCATION_PROVIDER: str = "ipapi"  # "ipapi" (ipapi.co) or "ip-api" (ip-api.com)
    GEOLOCATION_TIMEOUT_SECONDS: float = 3.0
    GEOLOCATION_USER_AGENT: str = "Kanda Markets Analytics"

    # Site hostname, used to classify internal referrers
    SITE_HOSTNAME: Optional[str] = None

    # Admin seed
    SUDO_ADMIN_EMAIL: str = "admin@kanda.local"
    SUDO_ADMIN_PASSWORD: str = "changeme"

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        # Environment variables win over the .env file


settings = Settings()
