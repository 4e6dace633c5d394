"""Configuration file management for CLI."""

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

import yaml

from src.client import DEFAULT_DOMAIN, DEFAULT_SCHEME, LONG_POLL_TIMEOUT_MS
from src.state import DEFAULT_NAMESPACE

_SCHEMES = ("https", "http")


@dataclass(frozen=True)
class ClientConfig:
    """Client configuration loaded from config file."""

    db_path: Path
    namespace: str = DEFAULT_NAMESPACE
    default_domain: str = DEFAULT_DOMAIN
    scheme: str = DEFAULT_SCHEME
    sync_timeout_ms: int = LONG_POLL_TIMEOUT_MS
    http_timeout: float = 30.0
    max_retries: int = 3


class ConfigError(Exception):
    """Configuration file error."""

    pass


class ConfigManager:
    """Manages client configuration in ~/.mtxchat/config.yaml."""

    DEFAULT_DIR = Path.home() / ".mtxchat"
    CONFIG_FILE = "config.yaml"
    DB_FILE = "mtxchat.db"

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        self._config_dir = config_dir or self.DEFAULT_DIR
        self._config_path = self._config_dir / self.CONFIG_FILE
        self._db_path = self._config_dir / self.DB_FILE

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def db_path(self) -> Path:
        return self._db_path

    def exists(self) -> bool:
        """Check if configuration exists."""
        return self._config_path.exists()

    def load(self) -> ClientConfig:
        """Load configuration from file. Raises ConfigError if not found or invalid."""
        if not self._config_path.exists():
            raise ConfigError(
                f"Config not found at {self._config_path}. Run 'mtxchat init' first."
            )

        try:
            with open(self._config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid config: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError("Invalid config: expected a mapping")
        try:
            config = ClientConfig(
                db_path=Path(data["db_path"]).expanduser() if data.get("db_path") else self._db_path,
                namespace=str(data.get("namespace", DEFAULT_NAMESPACE)),
                default_domain=str(data.get("default_domain", DEFAULT_DOMAIN)),
                scheme=str(data.get("scheme", DEFAULT_SCHEME)),
                sync_timeout_ms=int(data.get("sync_timeout_ms", LONG_POLL_TIMEOUT_MS)),
                http_timeout=float(data.get("http_timeout", 30.0)),
                max_retries=int(data.get("max_retries", 3)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid config: {e}") from e

        _validate(config)
        return config

    def save(self, config: Optional[ClientConfig] = None) -> ClientConfig:
        """Save configuration to file, defaults when ``config`` is None."""
        config = config or ClientConfig(db_path=self._db_path)
        _validate(config)
        self._config_dir.mkdir(parents=True, exist_ok=True)

        data = asdict(config)
        data["db_path"] = str(config.db_path)

        with open(self._config_path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False)

        return config


def _validate(config: ClientConfig) -> None:
    if not config.namespace:
        raise ConfigError("Invalid config: namespace cannot be empty")
    if not config.default_domain:
        raise ConfigError("Invalid config: default_domain cannot be empty")
    if config.scheme not in _SCHEMES:
        raise ConfigError(f"Invalid config: scheme must be one of {', '.join(_SCHEMES)}")
    if config.sync_timeout_ms <= 0:
        raise ConfigError("Invalid config: sync_timeout_ms must be positive")
    if config.http_timeout <= 0:
        raise ConfigError("Invalid config: http_timeout must be positive")
    if config.max_retries < 1:
        raise ConfigError("Invalid config: max_retries must be at least 1")
