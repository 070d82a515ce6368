import copy
import os
from typing import Any

import yaml
from rich.console import Console

console = Console()

DEFAULT_CONFIG: dict[str, Any] = {
    "llm": {
        "provider": "openai",
        "model": "gpt-3.5-turbo",
        "structure_model": "gpt-4",
        "timeout": 20.0,
        "temperature": {
            "structure": 0.1,
            "summary": 0.3,
            "tags": 0.2,
            "quick": 0.1,
        },
    },
    "quota": {"daily_limit": 100},
    "database": {"path": "policies.db"},
}


def load_config(config_path: str = "config.yaml") -> dict[str, Any]:
    """
    From config.yaml, layered over DEFAULT_CONFIG section by section.

    Args:
        config_path: Path to config file (default: config.yaml)

    Returns:
        Configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    try:
        with open(config_path, "r") as f:
            loaded = yaml.safe_load(f) or {}
    except FileNotFoundError:
        console.print(f"[red]Warning: {config_path} not found. Using default config.[/red]")
        return config

    for section, values in loaded.items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section].update(values)
        else:
            config[section] = values
    return config


def get_api_keys() -> dict[str, str]:
    return {
        "openai": os.getenv("OPENAI_API_KEY", ""),
    }
