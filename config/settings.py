"""
Configuration management for docquery.

Provides dataclasses for configuration and utilities
for loading settings from YAML files.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import yaml

from docquery.core.context import CancellationToken
from docquery.query.executor import QueryExecutor
from docquery.query.planner import DEFAULT_REVISION_FIELD, PlannerConfig
from docquery.storage.memory import MemoryStoreConfig
from docquery.storage.stream import StreamConfig
from docquery.utils.logging import resolve_level, setup_logger


@dataclass
class PlannerSettings:
    """Query planner configuration."""
    revision_field: str = DEFAULT_REVISION_FIELD
    include_revision_field: bool = True


@dataclass
class StoreSettings:
    """In-memory key/attribute store configuration."""
    page_size: int = 100


@dataclass
class StreamSettings:
    """Streaming backend configuration."""
    batch_size: int = 50
    key_field: str = "name"


@dataclass
class Settings:
    """
    Main settings container for docquery.

    Attributes:
        planner: Query planner settings
        store: In-memory store settings
        stream: Streaming backend settings
        query_timeout_seconds: Default query deadline (None = no deadline)
        log_level: Logging level
    """
    planner: PlannerSettings = field(default_factory=PlannerSettings)
    store: StoreSettings = field(default_factory=StoreSettings)
    stream: StreamSettings = field(default_factory=StreamSettings)

    query_timeout_seconds: Optional[float] = None
    log_level: str = "INFO"

    def __post_init__(self):
        resolve_level(self.log_level)

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Create Settings from dictionary."""
        data = dict(data)
        planner_data = data.pop("planner", None) or {}
        store_data = data.pop("store", None) or {}
        stream_data = data.pop("stream", None) or {}

        return cls(
            planner=PlannerSettings(**planner_data),
            store=StoreSettings(**store_data),
            stream=StreamSettings(**stream_data),
            **data
        )

    def to_dict(self) -> dict:
        """Convert Settings to dictionary."""
        from dataclasses import asdict
        return asdict(self)

    def planner_config(self, single_inequality_field: bool = False) -> PlannerConfig:
        return PlannerConfig(
            revision_field=self.planner.revision_field,
            include_revision_field=self.planner.include_revision_field,
            single_inequality_field=single_inequality_field,
        )

    def memory_store_config(self) -> MemoryStoreConfig:
        return MemoryStoreConfig(page_size=self.store.page_size)

    def stream_config(self) -> StreamConfig:
        return StreamConfig(
            batch_size=self.stream.batch_size,
            key_field=self.stream.key_field,
            include_revision_field=self.planner.include_revision_field,
        )

    def cancellation_token(self) -> CancellationToken:
        """A fresh token carrying the configured query deadline."""
        return CancellationToken(timeout_seconds=self.query_timeout_seconds)

    def query_executor(self, store) -> QueryExecutor:
        """An executor for a store, with the configured query deadline."""
        return QueryExecutor(store, timeout_seconds=self.query_timeout_seconds)

    def configure_logging(self, **kwargs) -> logging.Logger:
        """
        Set up the docquery logger at the configured level.

        Keyword arguments are passed to ``setup_logger``.
        """
        return setup_logger(level=self.log_level, **kwargs)


def get_default_config_path() -> Path:
    """Get path to default configuration file."""
    # Environment variable wins
    env_config = os.environ.get("DOCQUERY_CONFIG")
    if env_config:
        return Path(env_config)

    # Check for config in current directory
    local_config = Path("./config/default_config.yaml")
    if local_config.exists():
        return local_config

    return Path(__file__).parent / "default_config.yaml"


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default.

    Returns:
        Settings object with loaded configuration

    Example:
        >>> settings = load_config()
        >>> settings = load_config("./my_config.yaml")
    """
    if config_path is None:
        path = get_default_config_path()
    else:
        path = Path(config_path)

    if not path.exists():
        # Return default settings if no config file
        return Settings()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        return Settings()

    return Settings.from_dict(data)
