"""
Configuration loading for spanheat.

Handles loading configuration from ~/.spanheat/config.json with sensible defaults.
"""

import json
from pathlib import Path
from typing import Dict, Any, Optional
import copy

# Default configuration
DEFAULT_CONFIG: Dict[str, Any] = {
    # Per-user spans endpoint; {user_id} is URL-quoted before substitution
    "upstream_url": "https://hackatime.hackclub.com/api/v1/users/{user_id}/heartbeats/spans",
    "upstream_timeout_seconds": 10,

    "host": "0.0.0.0",
    "port": 8282,
    "log_level": "info",

    # Prometheus exposition on its own port; METRICS=1|true also enables it
    "metrics_enabled": False,
    "metrics_port": 9292,

    # Rendered documents are keyed by the full parameter set, spans by user id
    "cache": {
        "response_ttl_seconds": 60 * 15,
        "response_max_entries": 200,
        "request_ttl_seconds": 60 * 15,
        "request_max_entries": 25,
    },

    # Query parameter defaults
    "render_defaults": {
        "timezone": "Europe/London",
        "cell_size": 10,
        "padding": 3,
        "rounding": 20,
        "theme": "dark",
        "ranges": "70,30,10",
    },
}


def get_config_path() -> Path:
    """Get path to config file."""
    return Path.home() / ".spanheat" / "config.json"


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from file, merging with defaults.

    Returns a complete configuration with all default values filled in.
    User config overrides defaults where specified.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path is None:
        config_path = get_config_path()

    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                user_config = json.load(f)

            # Shallow merge sections
            for key in ['cache', 'render_defaults']:
                if key in user_config and isinstance(user_config[key], dict):
                    config[key].update(user_config[key])

            # Direct override for simple values
            for key in ['upstream_url', 'upstream_timeout_seconds', 'host', 'port', 'log_level',
                        'metrics_enabled', 'metrics_port']:
                if key in user_config:
                    config[key] = user_config[key]

        except json.JSONDecodeError as e:
            print(f"Warning: Could not parse config file: {e}")
        except Exception as e:
            print(f"Warning: Error loading config: {e}")

    return config


def save_config(config: Dict[str, Any], config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""
    if config_path is None:
        config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def cache_control_header(config: Dict[str, Any]) -> str:
    """Cache-Control value for rendered documents, tied to the response cache TTL."""
    ttl = int(config["cache"]["response_ttl_seconds"])
    return f"public, max-age={ttl}"
