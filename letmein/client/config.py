# letmein/client/config.py
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SERVER = "https://letmein-app.appspot.com"


class ClientSettings(BaseSettings):
    # whole client state lives in this one JSON document
    document_path: Path = Path.home() / ".letmeinrc"

    server_url: str = DEFAULT_SERVER
    # seconds, for the sync POST
    timeout: float = 15.0

    # LETMEIN_MASTER, used instead of prompting when set
    master: Optional[SecretStr] = None

    model_config = SettingsConfigDict(env_prefix="LETMEIN_", extra="ignore")


@lru_cache
def get_settings() -> ClientSettings:
    return ClientSettings()
