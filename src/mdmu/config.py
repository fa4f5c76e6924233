"""Runtime configuration.

Values are loaded in priority order:
  1. Shell environment variables (highest priority)
  2. .env file in the current directory
  3. ~/.mdmu/.env (persistent defaults)

Keys:
    MDMU_STORE_DIR  ->  directory holding comment records (default: <tmp>/mdmu)
    MDMU_WIDTH      ->  terminal width assumed when it cannot be detected (default: 80)
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".mdmu"
PERSISTENT_ENV = CONFIG_DIR / ".env"

DEFAULT_STORE_DIR = Path(tempfile.gettempdir()) / "mdmu"
DEFAULT_WIDTH = 80


@dataclass(frozen=True)
class Settings:
    store_dir: Path = DEFAULT_STORE_DIR
    width: int = DEFAULT_WIDTH


def load_env() -> None:
    """Load .env files without overriding variables already set."""
    load_dotenv(find_dotenv(usecwd=True))
    if PERSISTENT_ENV.exists():
        load_dotenv(PERSISTENT_ENV)


def load_settings(store_dir: str | Path | None = None) -> Settings:
    """Build ``Settings`` from the environment; ``store_dir`` overrides it."""
    load_env()

    if store_dir is None:
        store_dir = os.environ.get("MDMU_STORE_DIR") or DEFAULT_STORE_DIR

    width = DEFAULT_WIDTH
    raw_width = os.environ.get("MDMU_WIDTH")
    if raw_width:
        try:
            width = int(raw_width)
        except ValueError:
            logger.warning("Ignoring non-numeric MDMU_WIDTH=%r", raw_width)

    return Settings(store_dir=Path(store_dir).expanduser(), width=width)
