# g2history/config.py
"""Application settings read from the environment."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_DATABASE_URL = "file:data/g2history.db"
DEFAULT_RANKING_URL = "https://lolpros.gg/team/g2-esports"
DEFAULT_MATCHES_URL = "https://liquipedia.net/leagueoflegends/G2_Esports"


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(value: Optional[str], default: int) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Expected an integer setting, got {value!r}")


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    database_auth_token: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 3000
    api_key: Optional[str] = None
    ranking_cache_ttl: int = 900
    scraper_timeout_ms: int = 30000
    scraper_headless: bool = True
    ranking_url: str = DEFAULT_RANKING_URL
    matches_url: str = DEFAULT_MATCHES_URL
    log_level: str = "INFO"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[Path] = None,
    ) -> "Settings":
        """
        Build settings from environment variables.

        A `.env` file at the project root (or `dotenv_path`) is loaded first
        without overriding variables that are already set. Passing `environ`
        skips the `.env` lookup entirely.
        """
        if environ is None:
            load_dotenv(dotenv_path=dotenv_path or PROJECT_ROOT / ".env")
            environ = os.environ

        return cls(
            database_url=(
                environ.get("DATABASE_URL")
                or environ.get("TURSO_URL")
                or DEFAULT_DATABASE_URL
            ),
            database_auth_token=(
                environ.get("DATABASE_AUTH_TOKEN") or environ.get("TURSO_AUTH") or None
            ),
            host=environ.get("HOST") or "0.0.0.0",
            port=_env_int(environ.get("PORT"), 3000),
            api_key=environ.get("API_KEY") or None,
            ranking_cache_ttl=_env_int(environ.get("RANKING_CACHE_TTL"), 900),
            scraper_timeout_ms=_env_int(environ.get("SCRAPER_TIMEOUT_MS"), 30000),
            scraper_headless=_env_bool(environ.get("SCRAPER_HEADLESS"), True),
            ranking_url=environ.get("RANKING_URL") or DEFAULT_RANKING_URL,
            matches_url=environ.get("MATCHES_URL") or DEFAULT_MATCHES_URL,
            log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
        )
