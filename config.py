"""
Runtime configuration for the temporal graph engine and its API server.

Values come from environment variables, optionally loaded from a `.env`
file next to this module.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv(Path(__file__).resolve().parent / ".env", override=False)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


class Settings(BaseModel):
    # Graph loaded at startup (text format); None starts with an empty graph
    graph_file: Optional[str] = None
    interval_edges: bool = False

    # Query result cache
    cache_size: int = Field(default=256, ge=0)
    cache_ttl_seconds: float = Field(default=300, gt=0)

    # Thread fan-out for centrality; None or 1 runs inline
    centrality_workers: Optional[int] = Field(default=None, ge=1)

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # API server
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            graph_file=os.getenv("TGRAPH_GRAPH_FILE") or None,
            interval_edges=_env_bool("TGRAPH_INTERVAL_EDGES", False),
            cache_size=_env_int("TGRAPH_CACHE_SIZE", 256),
            cache_ttl_seconds=float(os.getenv("TGRAPH_CACHE_TTL", "300")),
            centrality_workers=_env_int("TGRAPH_CENTRALITY_WORKERS", None),
            log_level=os.getenv("TGRAPH_LOG_LEVEL", "INFO"),
            log_json=_env_bool("TGRAPH_LOG_JSON", False),
            api_host=os.getenv("TGRAPH_API_HOST", "127.0.0.1"),
            api_port=_env_int("TGRAPH_API_PORT", 8000),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


__all__ = ["Settings", "get_settings"]
