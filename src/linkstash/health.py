"""
Health check module for linkstash.

Reports system status across all components.
"""

from typing import Any

from linkstash.config import (
    get_config_path,
    get_db_path,
    get_default_config,
    get_extractor_api_key,
    get_llm_api_key,
    load_config,
)


def check_config() -> tuple[str, str]:
    """Check whether a config file is present."""
    config_path = get_config_path()
    if not config_path.exists():
        return "-", "Defaults (no config.toml)"
    try:
        load_config()
        return "✓", f"OK ({config_path})"
    except Exception as e:
        return "✗", f"Error: {e}"


def check_database() -> tuple[str, str]:
    """Check database status."""
    db_path = get_db_path()
    if not db_path.exists():
        return "!", "Not created yet"

    try:
        from linkstash.db import Database
        db = Database(db_path)
        stats = db.get_stats()
        return "✓", f"OK ({stats['total_notes']} notes)"
    except Exception as e:
        return "✗", f"Error: {e}"


def check_taxonomy() -> tuple[str, str]:
    """Check the category/tag tables hold no names without notes."""
    db_path = get_db_path()
    if not db_path.exists():
        return "-", "N/A"

    try:
        from linkstash.db import Database
        db = Database(db_path)
        rows = db.taxonomy_rows()
        used_categories = set(db.existing_categories())
        used_tags = set(db.existing_tags())
        stale = [n for n in rows["categories"] if n not in used_categories]
        stale += [n for n in rows["tags"] if n not in used_tags]
        if stale:
            return "!", f"{len(stale)} orphaned names"
        return "✓", "OK"
    except Exception as e:
        return "✗", f"Error: {e}"


def check_classifier(config: dict[str, Any]) -> tuple[str, str]:
    """Check classifier (API) status."""
    llm_config = config.get("llm", {})
    if not get_llm_api_key(config):
        return "!", "No API key (fallback classification)"
    return "✓", f"OK ({llm_config.get('model')})"


def check_extractor(config: dict[str, Any]) -> tuple[str, str]:
    """Check extraction service settings."""
    base_url = config.get("extractor", {}).get("base_url")
    if get_extractor_api_key(config):
        return "✓", f"OK ({base_url}, authenticated)"
    return "✓", f"OK ({base_url}, anonymous)"


def run_health_check() -> dict[str, tuple[str, str]]:
    """Run all health checks."""
    try:
        config = load_config()
    except Exception:
        # Reported by check_config
        config = get_default_config()
    return {
        "Config": check_config(),
        "Database": check_database(),
        "Categories/Tags": check_taxonomy(),
        "Classifier": check_classifier(config),
        "Extractor": check_extractor(config),
    }


def format_health_report(checks: dict[str, tuple[str, str]]) -> str:
    """Format health check results."""
    lines = ["linkstash health check", "-" * 40]

    for name, (status, message) in checks.items():
        lines.append(f"{status} {name}: {message}")

    return "\n".join(lines)
