from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict


# Load .env early for local development
load_dotenv()


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./accessmap.db")

    # Security
    app_secret_key: str = os.getenv("APP_SECRET_KEY", "dev-secret-change-me")
    access_token_exp_minutes: int = int(os.getenv("ACCESS_TOKEN_EXP_MINUTES", str(60 * 24)))

    # Google Places
    google_maps_api_key: str = os.getenv("GOOGLE_MAPS_API_KEY", "")
    google_places_url: str = os.getenv("GOOGLE_PLACES_URL", "https://maps.googleapis.com/maps/api/place")
    places_search_radius_meters: int = int(os.getenv("PLACES_SEARCH_RADIUS_METERS", "5000"))
    places_photo_max_width: int = int(os.getenv("PLACES_PHOTO_MAX_WIDTH", "400"))
    places_timeout_seconds: float = float(os.getenv("PLACES_TIMEOUT_SECONDS", "20"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_dir: str = os.getenv("LOG_DIR", "./logs")


settings = Settings()
