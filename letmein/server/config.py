# Sync server settings
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "letmein sync server"
    # the sync route is not authenticated; accounts are keyed by name + verify code
    API_STR: str = "/api/v1noauth"

    # local SQLite by default, any SQLAlchemy URL works
    DATABASE_URL: str = "sqlite:///./letmein_sync.db"
    DATABASE_ECHO: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings():
    return Settings()


settings = get_settings()
