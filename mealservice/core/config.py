"""
Core configuration for the meal service API
"""
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # API Configuration
    SECRET_KEY: str = "your-secret-key-here"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./mealservice.db"  # SQLite for development

    # CORS Configuration
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:5173",  # Vite dev server
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]

    # Payment Configuration
    STRIPE_PUBLIC_KEY: str = ""
    STRIPE_SECRET_KEY: str = ""
    PAYMENT_CURRENCY: str = "bdt"
    CLIENT_URL: str = "http://localhost:5173"

    # Ordering rules
    DELIVERY_FEE: int = 30
    LUNCH_HOUR: int = 13
    DINNER_HOUR: int = 20
    ADMIN_LIST_LIMIT: int = 50

    # Logging
    LOG_LEVEL: str = "INFO"

# Global settings instance
settings = Settings()
