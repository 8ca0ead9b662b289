from __future__ import annotations

from functools import cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ARTIFACTS_DIR = PROJECT_ROOT / "artifacts"
EFFECTS_CACHE_DB = ARTIFACTS_DIR / "effects_cache.db"

DEFAULT_SUI_RPC_URL = "https://fullnode.devnet.sui.io:443"


class AppSettings(BaseSettings):
    sui_rpc_url: str = DEFAULT_SUI_RPC_URL
    sui_rpc_timeout: float = 10.0
    effects_cache_enabled: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@cache
def config() -> AppSettings:
    return AppSettings()
