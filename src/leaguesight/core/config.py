"""
Configuration Management for LeagueSight

Provides configuration loading from multiple sources:
- Default values
- Configuration files (YAML, TOML, JSON)
- Environment variables

Configuration precedence (highest to lowest):
1. Environment variables (FACEIT_API_KEY, LEAGUESIGHT_*)
2. Configuration file
3. Default values
"""

import json
import logging
import logging.handlers
import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Dataclasses
# ============================================================================


@dataclass
class FaceitConfig:
    """Upstream API access."""

    api_key: str | None = None
    base_url: str = "https://open.faceit.com/data/v4"
    game: str = "cs2"
    request_delay_ms: int = 500
    max_retries: int = 3
    # Multiple of request_delay_ms slept after a 429
    rate_limit_multiplier: int = 15
    timeout_seconds: float = 10.0


@dataclass
class LeagueConfig:
    """Championship aggregation."""

    competition_id: str = "c1fcd6a9-34ef-4e18-8e92-b57af0667a40"
    page_size: int = 100
    max_matches: int = 500
    batch_size: int = 10
    teams_file: str = "uniliga_teams.json"


@dataclass
class CacheConfig:
    """Cache-aside store."""

    # "file" or "memory"
    backend: str = "file"
    directory: str | None = None

    namespace: str = "uniliga_stats"
    # Bump to orphan every cached league aggregate at once
    version: int = 9
    ttl_seconds: int = 4 * 60 * 60

    player_namespace: str = "player_stats"
    player_version: int = 7
    player_ttl_seconds: int = 7 * 24 * 60 * 60


@dataclass
class PlayerUpdateConfig:
    """Periodic per-player form update."""

    players_file: str = "players.json"
    history_limit: int = 20
    form_window: int = 10
    batch_size: int = 5
    request_delay_ms: int = 600


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None
    file_max_bytes: int = 10 * 1024 * 1024  # 10MB
    file_backup_count: int = 5


@dataclass
class LeagueSightConfig:
    """Main configuration container."""

    faceit: FaceitConfig = field(default_factory=FaceitConfig)
    league: LeagueConfig = field(default_factory=LeagueConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    players: PlayerUpdateConfig = field(default_factory=PlayerUpdateConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Version of the config format
    config_version: str = "1.0"


_SECTIONS = ("faceit", "league", "cache", "players", "logging")


# ============================================================================
# Configuration Loading
# ============================================================================


def get_default_config_paths() -> list[Path]:
    """Get the default paths to search for configuration files."""
    home = Path.home()
    xdg_config = os.environ.get("XDG_CONFIG_HOME", str(home / ".config"))
    return [
        Path.cwd() / "leaguesight.yaml",
        Path.cwd() / "leaguesight.toml",
        Path.cwd() / "leaguesight.json",
        Path(xdg_config) / "leaguesight" / "config.yaml",
        home / ".leaguesight.yaml",
    ]


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a file, detecting format from extension."""
    if not path.exists():
        return {}

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        with open(path) as f:
            return yaml.safe_load(f) or {}
    elif suffix == ".toml":
        with open(path, "rb") as f:
            return tomllib.load(f)
    elif suffix == ".json":
        with open(path) as f:
            return json.load(f)
    else:
        logger.warning(f"Unknown config file format: {suffix}")
        return {}


def _convert_env_value(value: str) -> Any:
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.isdigit():
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}

    env_mappings = {
        "FACEIT_API_KEY": ("faceit", "api_key"),
        "LEAGUESIGHT_API_DELAY_MS": ("faceit", "request_delay_ms"),
        "LEAGUESIGHT_MAX_RETRIES": ("faceit", "max_retries"),
        "LEAGUESIGHT_COMPETITION_ID": ("league", "competition_id"),
        "LEAGUESIGHT_MAX_MATCHES": ("league", "max_matches"),
        "LEAGUESIGHT_BATCH_SIZE": ("league", "batch_size"),
        "LEAGUESIGHT_TEAMS_FILE": ("league", "teams_file"),
        "LEAGUESIGHT_CACHE_BACKEND": ("cache", "backend"),
        "LEAGUESIGHT_CACHE_DIR": ("cache", "directory"),
        "LEAGUESIGHT_CACHE_VERSION": ("cache", "version"),
        "LEAGUESIGHT_CACHE_TTL": ("cache", "ttl_seconds"),
        "LEAGUESIGHT_PLAYERS_FILE": ("players", "players_file"),
        "LEAGUESIGHT_LOG_LEVEL": ("logging", "level"),
        "LEAGUESIGHT_LOG_FILE": ("logging", "file"),
    }

    # String-typed settings that must not be coerced to numbers
    raw_keys = {"api_key", "competition_id", "teams_file", "directory", "players_file", "file"}

    for env_var, (section, key) in env_mappings.items():
        value = os.environ.get(env_var)
        if value is None or value == "":
            continue
        config.setdefault(section, {})
        config[section][key] = value if key in raw_keys else _convert_env_value(value)

    return config


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two configuration dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def dict_to_config(data: dict[str, Any]) -> LeagueSightConfig:
    """Convert a dictionary to LeagueSightConfig. Unknown keys are ignored."""
    config = LeagueSightConfig()

    for section_name in _SECTIONS:
        section = getattr(config, section_name)
        for key, value in (data.get(section_name) or {}).items():
            if hasattr(section, key):
                setattr(section, key, value)
            else:
                logger.warning(f"Ignoring unknown config key: {section_name}.{key}")

    return config


def load_config(config_file: Path | None = None, include_env: bool = True) -> LeagueSightConfig:
    """
    Load configuration from all sources.

    Args:
        config_file: Explicit path to a config file (optional)
        include_env: Whether to include environment variables

    Returns:
        Merged LeagueSightConfig
    """
    config_data: dict[str, Any] = {}

    if config_file:
        config_data = load_config_file(config_file)
        logger.info(f"Loaded config from: {config_file}")
    else:
        for path in get_default_config_paths():
            if path.exists():
                config_data = load_config_file(path)
                logger.info(f"Loaded config from: {path}")
                break

    if include_env:
        config_data = merge_configs(config_data, load_env_config())

    return dict_to_config(config_data)


def setup_logging(config: LoggingConfig) -> None:
    """Apply logging settings to the root logger."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.file:
        handlers.append(
            logging.handlers.RotatingFileHandler(
                config.file,
                maxBytes=config.file_max_bytes,
                backupCount=config.file_backup_count,
            )
        )
    logging.basicConfig(
        level=getattr(logging, config.level.upper(), logging.INFO),
        format=config.format,
        handlers=handlers,
        force=True,
    )


# ============================================================================
# Configuration Saving
# ============================================================================


def config_to_dict(config: LeagueSightConfig, include_secrets: bool = False) -> dict[str, Any]:
    """Convert LeagueSightConfig to a dictionary."""
    data = asdict(config)
    if not include_secrets:
        data["faceit"]["api_key"] = None
    return data


def save_config(config: LeagueSightConfig, path: Path) -> None:
    """
    Save configuration to a file. The API key is never written.

    Args:
        config: Configuration to save
        path: Path to save to (.yaml/.yml or .json)
    """
    data = config_to_dict(config)
    suffix = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        with open(path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    elif suffix == ".json":
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
    else:
        raise ValueError(f"Unsupported config format for saving: {suffix}")

    logger.info(f"Saved config to: {path}")


# ============================================================================
# Global Configuration
# ============================================================================

_global_config: LeagueSightConfig | None = None


def get_config() -> LeagueSightConfig:
    """Get the global configuration, loading it if necessary."""
    global _global_config

    if _global_config is None:
        _global_config = load_config()

    return _global_config


def set_config(config: LeagueSightConfig) -> None:
    """Set the global configuration."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset the global configuration to defaults."""
    global _global_config
    _global_config = None


# ============================================================================
# Configuration Templates
# ============================================================================

DEFAULT_CONFIG_YAML = """# LeagueSight Configuration
# The FACEIT API key is read from the FACEIT_API_KEY environment variable.

faceit:
  game: cs2
  request_delay_ms: 500
  max_retries: 3

league:
  competition_id: c1fcd6a9-34ef-4e18-8e92-b57af0667a40
  max_matches: 500
  batch_size: 10
  teams_file: uniliga_teams.json

cache:
  backend: file      # file or memory
  # directory: /path/to/cache
  namespace: uniliga_stats
  version: 9
  ttl_seconds: 14400

players:
  players_file: players.json
  history_limit: 20
  form_window: 10

logging:
  level: INFO
  # file: /path/to/leaguesight.log
"""


def generate_default_config(path: Path) -> None:
    """Generate a default configuration file."""
    if path.suffix.lower() in (".yaml", ".yml"):
        path.write_text(DEFAULT_CONFIG_YAML)
    else:
        save_config(LeagueSightConfig(), path)

    logger.info(f"Generated default config at: {path}")
