"""Configuration management."""

import os
from pathlib import Path
from typing import Any

import msgspec
import yaml

BACKENDS = ("whoosh", "memory", "elasticsearch")


class SearchSettings(msgspec.Struct, kw_only=True):
    """Settings for the search pipeline and its backend."""

    backend: str = "whoosh"
    index_dir: str | None = None
    elasticsearch_url: str = "http://localhost:9200"
    index_name: str = "books"
    default_field: str = "content"

    # Hits requested per round
    full_round_limit: int = 1000
    fallback_round_limit: int = 30

    # Fallback rounds run when the full-set round scores fewer books
    min_hits: int = 30
    score_cap: int = 30
    page_size: int = 10

    max_workers: int = 4
    timeout: float | None = 30.0
    connect_retries: int = 10
    connect_interval: float = 3.0

    def __post_init__(self):
        if self.backend not in BACKENDS:
            raise ValueError(
                f"Unknown backend {self.backend!r}, expected one of {BACKENDS}"
            )
        for name in ("full_round_limit", "fallback_round_limit", "page_size"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1")
        if self.score_cap < 1 or self.max_workers < 1:
            raise ValueError("score_cap and max_workers must be at least 1")

    @property
    def index_path(self) -> Path:
        """Get the Whoosh index directory."""
        if self.index_dir:
            return Path(self.index_dir).expanduser()
        xdg_data_home = Path(
            os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share")
        )
        return xdg_data_home / "booksearch" / "index"

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "SearchSettings":
        """Validate a configuration mapping.

        Raises:
            ValueError: If a value has the wrong type or is out of range
        """
        try:
            return msgspec.convert(config, cls, strict=False)
        except msgspec.ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}") from e


class Config:
    """Configuration file loading."""

    @staticmethod
    def from_file(path: Path) -> dict[str, Any]:
        """Load configuration from a YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}") from e
        except OSError as e:
            raise ValueError(f"Error reading config file: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return data

    @staticmethod
    def get_config_paths() -> list[Path]:
        """Get the default configuration file paths to check."""
        paths = []

        # User config
        xdg_config_home = Path(
            os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
        )
        paths.append(xdg_config_home / "booksearch" / "config.yaml")

        # Project config
        paths.append(Path(".booksearch.yaml"))
        paths.append(Path("booksearch.yaml"))

        return paths

    @staticmethod
    def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
        """Merge multiple configuration dictionaries."""
        result: dict[str, Any] = {}
        for config in configs:
            result = _deep_merge(result, config)
        return result


def get_env_overrides() -> dict[str, Any]:
    """Collect settings given through environment variables."""
    env_overrides: dict[str, Any] = {}
    if backend := os.environ.get("BOOKSEARCH_BACKEND"):
        env_overrides["backend"] = backend
    if index_dir := os.environ.get("BOOKSEARCH_INDEX_DIR"):
        env_overrides["index_dir"] = index_dir
    if url := os.environ.get("BOOKSEARCH_ELASTICSEARCH_URL"):
        env_overrides["elasticsearch_url"] = url
    if timeout := os.environ.get("BOOKSEARCH_TIMEOUT"):
        env_overrides["timeout"] = timeout
    return env_overrides


def load_config(
    config_file: Path | None = None, overrides: dict[str, Any] | None = None
) -> SearchSettings:
    """Load settings from files, environment variables, and overrides.

    Later sources win: default paths in order, then the environment, then
    ``config_file``, then ``overrides``.
    """
    config: dict[str, Any] = {}

    for path in Config.get_config_paths():
        if path.exists():
            config = Config.merge_configs(config, Config.from_file(path))

    config = Config.merge_configs(config, get_env_overrides())

    if config_file is not None:
        config = Config.merge_configs(config, Config.from_file(config_file))

    if overrides:
        config = Config.merge_configs(config, overrides)

    return SearchSettings.from_dict(config)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
