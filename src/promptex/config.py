"""Configuration loading from environment variables and promptex.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_DATA_DIR = Path.home() / ".promptex"
_CONFIG_FILENAME = "promptex.toml"


@dataclass
class PromptExConfig:
    """Top-level PromptEx configuration."""

    data_dir: Path = _DEFAULT_DATA_DIR
    resources_dir: Path = field(default_factory=lambda: Path.cwd() / "resources")
    log_level: str = "INFO"

    @property
    def documents_dir(self) -> Path:
        return self.data_dir / "prompts"

    @property
    def index_path(self) -> Path:
        return self.data_dir / "metadata.json"


def load_config(config_path: Path | None = None) -> PromptExConfig:
    """Load configuration from environment variables and optional promptex.toml.

    Priority: environment variables > promptex.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.promptex/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, _DEFAULT_DATA_DIR / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    storage_data = file_data.get("storage", {})

    data_dir = os.getenv("PROMPTEX_DATA_DIR", storage_data.get("data_dir"))
    resources_dir = os.getenv("PROMPTEX_RESOURCES_DIR", storage_data.get("resources_dir"))

    return PromptExConfig(
        data_dir=Path(data_dir).expanduser() if data_dir else _DEFAULT_DATA_DIR,
        resources_dir=(
            Path(resources_dir).expanduser() if resources_dir else Path.cwd() / "resources"
        ),
        log_level=os.getenv("PROMPTEX_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
