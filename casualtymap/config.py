"""
Casualty map configuration
"""
from functools import lru_cache
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Access gate
    app_password: str

    # Supabase storage
    supabase_url: str
    supabase_anon_key: str
    supabase_bucket_name: str = "casualties-data"
    supabase_file_path: str = "merged.csv"

    # Logging
    log_level: str = "info"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "info") -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger().setLevel(numeric)
