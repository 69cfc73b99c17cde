"""
Centralized application configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""

    # API Settings
    API_TITLE: str = "LUXE Storefront API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Storefront and back-office API for LUXE FASHION"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = ""
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    MEDIA_BUCKET: str = "media"

    # Auth
    AUTH_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_DAYS: int = 7

    # Email (Resend)
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "LUXE FASHION <noreply@luxefashion.com>"

    # Store
    STORE_NAME: str = "LUXE FASHION"
    CLIENT_URL: str = "http://localhost:3000"
    ORDER_NUMBER_PREFIX: str = "LF"
    DEFAULT_COUNTRY: str = "United States"

    # Rate limits (requests per minute)
    RATE_LIMIT_UNAUTHENTICATED: int = 100
    RATE_LIMIT_AUTHENTICATED: int = 1000
    RATE_LIMIT_FORMS: int = 20

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:3000,https://luxefashion.com" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000,http://localhost:5173"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return [self.CLIENT_URL]

        # Try JSON parse first (for array format)
        import json
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
