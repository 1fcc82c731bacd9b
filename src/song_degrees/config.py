from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

STRATEGIES = ("optimal", "similarity", "random")


def load_local_env_file(env_path: str = ".env") -> None:
    """Load key=value pairs from a local .env file into process env.

    Existing environment variables are preserved and not overwritten.
    """

    path = Path(env_path)
    if not path.exists():
        return

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")

        if key and key not in os.environ:
            os.environ[key] = value


def env_int(name: str, fallback: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return fallback
    try:
        return int(raw)
    except ValueError:
        return fallback


def env_float(name: str, fallback: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return fallback
    try:
        return float(raw)
    except ValueError:
        return fallback


@dataclass(frozen=True, slots=True)
class Settings:
    lastfm_api_key: str | None = None
    lastfm_timeout: float = 10.0
    lastfm_max_retries: int = 3
    similar_artist_limit: int = 50
    playlist_strategy: str = "optimal"
    port: int = 8000

    @classmethod
    def from_env(cls) -> Settings:
        strategy = (os.getenv("PLAYLIST_STRATEGY") or "optimal").strip().lower()
        if strategy not in STRATEGIES:
            strategy = "optimal"
        return cls(
            lastfm_api_key=os.getenv("LASTFM_API_KEY") or None,
            lastfm_timeout=env_float("LASTFM_TIMEOUT", 10.0),
            lastfm_max_retries=max(1, env_int("LASTFM_MAX_RETRIES", 3)),
            similar_artist_limit=max(1, env_int("SIMILAR_ARTIST_LIMIT", 50)),
            playlist_strategy=strategy,
            port=env_int("PORT", 8000),
        )
