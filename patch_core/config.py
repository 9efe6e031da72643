"""
Settings discovery for patch-core.

Values come from environment variables, after loading a .env file from
the current directory if one exists:

    PATCH_CORE_MANIFEST         Manifest path (default: patches.yaml)
    PATCH_CORE_INITIAL_VERSION  Starting version override (default: manifest value)
    PATCH_CORE_LOG_LEVEL        Logging level name (default: INFO)
    PATCH_CORE_LOG_DIR          Directory for JSON run logs (default: disabled)

Usage:
    from patch_core.config import Settings

    settings = Settings.discover()
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os

DEFAULT_MANIFEST = "patches.yaml"


def _int_env(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class Settings:
    """Runtime settings for the CLI and run logging."""

    manifest: Path
    initial_version: Optional[int] = None
    log_level: str = "INFO"
    log_dir: Optional[Path] = None

    @classmethod
    def discover(cls, load_env: bool = True) -> "Settings":
        """
        Build settings from the environment.

        Args:
            load_env: Load ./.env first (python-dotenv); existing variables win
        """
        if load_env:
            from dotenv import load_dotenv
            load_dotenv(Path.cwd() / ".env")

        if os.environ.get("PATCH_CORE_MANIFEST"):
            manifest = Path(os.environ["PATCH_CORE_MANIFEST"])
        else:
            manifest = Path.cwd() / DEFAULT_MANIFEST

        log_dir = os.environ.get("PATCH_CORE_LOG_DIR")

        return cls(
            manifest=manifest,
            initial_version=_int_env("PATCH_CORE_INITIAL_VERSION"),
            log_level=os.environ.get("PATCH_CORE_LOG_LEVEL", "INFO").upper(),
            log_dir=Path(log_dir) if log_dir else None,
        )
