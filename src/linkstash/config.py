"""
Configuration management for linkstash.

Uses XDG base directories:
- Config: ~/.config/linkstash/config.toml
- Data: ~/linkstash/ (the database lives here)
"""

from pathlib import Path
from typing import Any
import copy
import logging
import os

# XDG defaults
DEFAULT_CONFIG_HOME = Path.home() / ".config"
DEFAULT_DATA_HOME = Path.home() / "linkstash"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_config_dir() -> Path:
    """Get the config directory (XDG_CONFIG_HOME/linkstash)."""
    base = Path(os.environ.get("XDG_CONFIG_HOME", DEFAULT_CONFIG_HOME))
    return base / "linkstash"


def get_stash_home() -> Path:
    """Get the data directory (~/linkstash or LINKSTASH_HOME)."""
    if env_home := os.environ.get("LINKSTASH_HOME"):
        return Path(env_home)
    return DEFAULT_DATA_HOME


def get_config_path() -> Path:
    """Get the path to config.toml."""
    return get_config_dir() / "config.toml"


def get_db_path() -> Path:
    """Get the path to linkstash.db."""
    return get_stash_home() / "linkstash.db"


def get_default_config() -> dict[str, Any]:
    """Return default configuration."""
    return {
        "linkstash": {
            "home": str(get_stash_home()),
        },
        "extractor": {
            "base_url": "https://r.jina.ai",
            "timeout": 30.0,
        },
        "llm": {
            "base_url": "https://api.groq.com/openai/v1",  # any OpenAI-compatible endpoint
            "model": "llama-3.3-70b-versatile",
            "temperature": 0.3,
            "max_tokens": 600,
            "timeout": 30.0,
        },
        "classifier": {
            "max_content_chars": 3500,
            "fallback_category": "Uncategorized",
        },
        "logging": {
            "level": "WARNING",
        },
    }


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config() -> dict[str, Any]:
    """
    Load configuration from config.toml.

    Values from the file are layered over the defaults, so a config file
    only needs the keys it changes. Returns the defaults if no file exists.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return get_default_config()

    # Lazy import tomli only when needed
    import tomli

    with open(config_path, "rb") as f:
        return _merge(get_default_config(), tomli.load(f))


def get_llm_api_key(config: dict[str, Any]) -> str | None:
    """API key for the classification service, from config or environment."""
    return (
        config.get("llm", {}).get("api_key")
        or os.environ.get("LINKSTASH_LLM_API_KEY")
        or os.environ.get("GROQ_API_KEY")
    )


def get_extractor_api_key(config: dict[str, Any]) -> str | None:
    """Optional bearer token for the extraction service."""
    return config.get("extractor", {}).get("api_key") or os.environ.get("JINA_API_KEY")


def setup_logging(config: dict[str, Any] | None = None) -> None:
    """Configure root logging once for an entry point."""
    config = config or {}
    level_name = (
        os.environ.get("LINKSTASH_LOG_LEVEL")
        or config.get("logging", {}).get("level")
        or "WARNING"
    )
    level = getattr(logging, str(level_name).upper(), logging.WARNING)
    logging.basicConfig(format=LOG_FORMAT, level=level)
