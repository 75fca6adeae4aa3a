"""
Pipeline settings loaded from config/settings.yaml.
"""

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_SETTINGS_PATH = Path("config/settings.yaml")
DEFAULT_PROMPT_PATH = Path("config/prompt.md")


@dataclass(frozen=True)
class Settings:
    extraction_model: str = "gemini-flash-latest"
    temperature: float = 0.1
    max_retries: int = 3
    backoff_base_seconds: float = 2.0
    batch_size: int = 10
    unit_delay_seconds: float = 2.0
    header_token: str = "study id"


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """
    Load settings from a YAML file, falling back to defaults.

    Args:
        config_path: YAML file with a top-level ``settings`` mapping.
            A missing file means "use defaults".

    Returns:
        Settings instance
    """
    settings = Settings()
    path = config_path or DEFAULT_SETTINGS_PATH
    if not path.exists():
        return settings

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    block = raw.get("settings", {}) if isinstance(raw, dict) else None
    if not isinstance(block, dict):
        raise ValueError(f"'settings' in {path} must be a mapping")

    known = {f.name for f in fields(Settings)}
    overrides = {}
    for key, value in block.items():
        if key not in known:
            continue
        default = getattr(settings, key)
        # Coerce to the default's type so "2" in YAML still works
        overrides[key] = type(default)(value)

    return replace(settings, **overrides)


def load_instruction(prompt_path: Optional[Path] = None) -> str:
    """Read the system instruction (prompt with table template) from disk."""
    path = prompt_path or DEFAULT_PROMPT_PATH
    with open(path, encoding="utf-8") as f:
        return f.read()
