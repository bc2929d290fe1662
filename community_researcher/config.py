"""
Runtime configuration.

Values come from the process environment, optionally seeded from a `.env`
file at the project root (existing variables always win).
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

PROJECT_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_PROVIDER_PRIORITY = ["openai", "groq"]
DEFAULT_FETCH_TIMEOUT = 10
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def load_dotenv(env_path: Optional[Path] = None) -> None:
    """Load KEY=VALUE lines from a .env file without overriding the environment."""
    env_path = env_path or PROJECT_ROOT / ".env"
    if not env_path.exists():
        return
    for line in env_path.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            key, _, value = line.partition("=")
            os.environ.setdefault(key.strip(), value.strip())


def _split_list(raw: Optional[str], default: List[str]) -> List[str]:
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class AppConfig:
    """Settings shared by the web app, the CLI and the clients they build."""
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    groq_api_key: Optional[str] = None
    groq_model: str = "llama-3.3-70b-versatile"
    search_api_key: Optional[str] = None
    search_engine_id: Optional[str] = None
    provider_priority: List[str] = field(default_factory=lambda: list(DEFAULT_PROVIDER_PRIORITY))
    fetch_timeout: int = DEFAULT_FETCH_TIMEOUT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppConfig":
        load_dotenv()
        return cls(
            openai_api_key=os.environ.get("OPENAI_API_KEY"),
            openai_model=os.environ.get("OPENAI_MODEL", "gpt-4o"),
            groq_api_key=os.environ.get("GROQ_API_KEY"),
            groq_model=os.environ.get("GROQ_MODEL", "llama-3.3-70b-versatile"),
            search_api_key=os.environ.get("SEARCH_API_KEY"),
            search_engine_id=os.environ.get("SEARCH_ENGINE_ID"),
            provider_priority=_split_list(
                os.environ.get("LLM_PROVIDER_PRIORITY"), DEFAULT_PROVIDER_PRIORITY
            ),
            fetch_timeout=int(os.environ.get("FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT)),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def search_configured(self) -> bool:
        return bool(self.search_api_key and self.search_engine_id)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the web app or CLI."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
