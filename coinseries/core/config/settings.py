"""Configuration management for coinseries."""

import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

DEFAULT_HOME = Path.home() / ".coinseries"


@dataclass
class ArchiveConfig:
    """Bundled historical archive."""

    path: str | None = "data/btcusd_1-min_data.csv"
    url: str | None = None
    timezone: str | None = None


@dataclass
class StoreConfig:
    """Local record store."""

    backend: str = "duckdb"
    path: str = str(DEFAULT_HOME / "btc_price_db.duckdb")
    threads: int = 1


@dataclass
class ApiConfig:
    """Remote price API."""

    base_url: str = "https://api.coingecko.com/api/v3"
    coin_id: str = "bitcoin"
    vs_currency: str = "usd"
    timeout: float = 30.0
    max_retries: int = 2
    backoff_factor: float = 0.5
    user_agent: str = "coinseries/0.1.0"


@dataclass
class LoggingConfig:
    """Logging."""

    level: str = "INFO"
    file: str | None = None
    serialize: bool = True


@dataclass
class CoinSeriesConfig:
    """Main coinseries configuration."""

    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "CoinSeriesConfig":
        """Build a configuration from a nested dictionary."""
        return cls(
            archive=ArchiveConfig(**config_dict.get("archive", {})),
            store=StoreConfig(**config_dict.get("store", {})),
            api=ApiConfig(**config_dict.get("api", {})),
            logging=LoggingConfig(**config_dict.get("logging", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "archive": asdict(self.archive),
            "store": asdict(self.store),
            "api": asdict(self.api),
            "logging": asdict(self.logging),
        }


class ConfigManager:
    """Loads configuration from a TOML file, then applies environment overrides."""

    def __init__(self, config_path: Path | None = None, *, use_env: bool = True):
        """Initialise the manager.

        Args:
            config_path: TOML file to read, defaults to ``~/.coinseries/config.toml``
            use_env: apply ``COINSERIES_*`` overrides on top of the file
        """
        self.config_path = config_path or DEFAULT_HOME / "config.toml"
        self.use_env = use_env
        self.config = self._load_config()

    def _load_config(self) -> CoinSeriesConfig:
        config_dict: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "rb") as f:
                    config_dict = tomllib.load(f)
                CoinSeriesConfig.from_dict(config_dict)
            except (OSError, tomllib.TOMLDecodeError, TypeError) as e:
                logger.warning("Failed to load config from {}: {}", self.config_path, e)
                config_dict = {}

        if self.use_env:
            _deep_update(config_dict, load_config_from_env())
        return CoinSeriesConfig.from_dict(config_dict)

    def get_config(self) -> CoinSeriesConfig:
        return self.config

    def update_config(self, **updates: Any) -> None:
        """Apply nested updates such as ``api={"timeout": 5}``."""
        config_dict = self.config.to_dict()
        _deep_update(config_dict, updates)
        self.config = CoinSeriesConfig.from_dict(config_dict)


def _deep_update(d: dict[str, Any], u: dict[str, Any]) -> dict[str, Any]:
    for k, v in u.items():
        if isinstance(v, dict):
            d[k] = _deep_update(d.get(k, {}), v)
        else:
            d[k] = v
    return d


def get_default_config() -> CoinSeriesConfig:
    return CoinSeriesConfig()


# (environment variable, section, key, converter)
_ENV_OVERRIDES: tuple[tuple[str, str, str, Any], ...] = (
    ("COINSERIES_ARCHIVE_PATH", "archive", "path", str),
    ("COINSERIES_ARCHIVE_URL", "archive", "url", str),
    ("COINSERIES_TIMEZONE", "archive", "timezone", str),
    ("COINSERIES_STORE_BACKEND", "store", "backend", str),
    ("COINSERIES_STORE_PATH", "store", "path", str),
    ("COINSERIES_API_BASE_URL", "api", "base_url", str),
    ("COINSERIES_API_TIMEOUT", "api", "timeout", float),
    ("COINSERIES_API_MAX_RETRIES", "api", "max_retries", int),
    ("COINSERIES_LOGGING_LEVEL", "logging", "level", str),
    ("COINSERIES_LOGGING_FILE", "logging", "file", str),
)


def load_config_from_env() -> dict[str, Any]:
    """Collect overrides from ``COINSERIES_*`` environment variables."""
    config: dict[str, Any] = {}
    for variable, section, key, convert in _ENV_OVERRIDES:
        raw = os.getenv(variable)
        if raw is None or raw == "":
            continue
        try:
            value = convert(raw)
        except ValueError:
            logger.warning("Ignoring invalid value for {}: {!r}", variable, raw)
            continue
        config.setdefault(section, {})[key] = value
    return config
