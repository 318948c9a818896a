"""
Configuration management for OFeed Connector.
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import yaml

from ofeed_connector.http.client import basic_authorization

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/etc/ofeed-connector/config.yaml"
USER_CONFIG_PATH = Path.home() / ".config" / "ofeed-connector" / "config.yaml"

MIN_SOURCE_PORT = 1025
MAX_SOURCE_PORT = 65535


@dataclass(frozen=True)
class RelayConfig:
    """
    Immutable settings for one relay session.

    Timeouts are in milliseconds; a negative value means transport default.
    """
    source_url: str
    sink_url: str
    event_id: str
    authorization: str
    user_agent: str
    poll_interval_ms: int
    connect_timeout_ms: int = -1
    read_timeout_ms: int = -1
    write_timeout_ms: int = -1
    call_timeout_ms: int = -1

    def __post_init__(self):
        if self.poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be > 0")


@dataclass
class SourceConfig:
    """SI-Droid Event results service."""
    host: str = "localhost"
    port: int = 8080
    results_path: str = "/reports/ResultsIof30Xml"

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}{self.results_path}"

    @property
    def ping_url(self) -> str:
        return f"http://{self.host}:{self.port}"


@dataclass
class SinkConfig:
    """OFeed upload endpoint and event credentials."""
    url: str = "https://api.orienteerfeed.com/rest/v1/upload/iof"
    event_id: str = ""
    event_password: str = ""


@dataclass
class RelaySettings:
    """Relay timing."""
    upload_interval_sec: int = 30


@dataclass
class HttpConfig:
    """
    HTTP timeouts in seconds.

    -1 means transport default (10 s for connect/read/write, unbounded
    for call). 0 means no timeout.
    """
    connect_timeout_sec: int = 10
    read_timeout_sec: int = 10
    write_timeout_sec: int = 10
    call_timeout_sec: int = 0


@dataclass
class ApiConfig:
    """Local REST API exposing relay status and logs."""
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8090


def _to_ms(seconds: int) -> int:
    return seconds * 1000 if seconds >= 0 else -1


_TRUE_WORDS = ("true", "yes", "on", "1")
_FALSE_WORDS = ("false", "no", "off", "0")


def _coerce(cls, name: str, value: Any) -> Any:
    """
    Convert a raw YAML/JSON value to the declared type of a settings field.

    Raises:
        ValueError: If the value cannot be read as that type
    """
    field_type = {f.name: f.type for f in fields(cls)}[name]

    if field_type is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _TRUE_WORDS + _FALSE_WORDS:
            return value.strip().lower() in _TRUE_WORDS
    elif field_type is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                pass
    elif field_type is str:
        if value is None:
            return ""
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            return str(value)
    else:
        return value

    raise ValueError(f"{name} must be {field_type.__name__}, got {value!r}")


@dataclass
class Config:
    """Main configuration class."""
    source: SourceConfig = field(default_factory=SourceConfig)
    sink: SinkConfig = field(default_factory=SinkConfig)
    relay: RelaySettings = field(default_factory=RelaySettings)
    http: HttpConfig = field(default_factory=HttpConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    production_mode: bool = True

    _SECTIONS = ("source", "sink", "relay", "http", "api")

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """Load configuration from file."""
        paths_to_try = []

        if config_path:
            paths_to_try.append(Path(config_path))

        paths_to_try.extend([
            Path(DEFAULT_CONFIG_PATH),
            USER_CONFIG_PATH,
            Path("config/config.yaml"),
        ])

        for path in paths_to_try:
            if path.exists():
                logger.info(f"Loading config from {path}")
                return cls._load_from_file(path)

        logger.warning("No config file found, using defaults")
        return cls()

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        config = cls()

        if "source" in data:
            config.source = cls._load_dataclass(SourceConfig, data["source"])
        if "sink" in data:
            config.sink = cls._load_dataclass(SinkConfig, data["sink"])
        if "relay" in data:
            config.relay = cls._load_dataclass(RelaySettings, data["relay"])
        if "http" in data:
            config.http = cls._load_dataclass(HttpConfig, data["http"])
        if "api" in data:
            config.api = cls._load_dataclass(ApiConfig, data["api"])
        if "production_mode" in data:
            try:
                config.production_mode = _coerce(cls, "production_mode", data["production_mode"])
            except ValueError as e:
                logger.warning(f"Ignoring setting: {e}")

        return config

    @staticmethod
    def _load_dataclass(cls, data: Dict[str, Any]):
        """Load a dataclass from a dictionary; mistyped values keep their default."""
        valid_fields = {f.name for f in fields(cls)}
        filtered_data = {}
        for k, v in (data or {}).items():
            if k not in valid_fields:
                continue
            try:
                filtered_data[k] = _coerce(cls, k, v)
            except ValueError as e:
                logger.warning(f"Ignoring setting: {e}")
        return cls(**filtered_data)

    def save(self, path: Optional[str] = None) -> None:
        """Save configuration to file."""
        save_path = Path(path) if path else USER_CONFIG_PATH
        save_path.parent.mkdir(parents=True, exist_ok=True)

        with open(save_path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False)

        logger.info(f"Configuration saved to {save_path}")

    @staticmethod
    def _dataclass_to_dict(obj) -> Dict[str, Any]:
        """Convert a dataclass to a dictionary."""
        return {f.name: getattr(obj, f.name) for f in fields(obj)}

    def to_dict(self, mask_secrets: bool = False) -> Dict[str, Any]:
        """Convert entire config to dictionary."""
        data = {name: self._dataclass_to_dict(getattr(self, name)) for name in self._SECTIONS}
        data["production_mode"] = self.production_mode

        if mask_secrets and data["sink"]["event_password"]:
            data["sink"]["event_password"] = "********"

        return data

    def update_from_dict(self, data: Dict[str, Any]) -> None:
        """
        Update configuration from a dictionary.

        All values are converted before any is applied, so a rejected
        update leaves the configuration unchanged.

        Raises:
            ValueError: If a value has the wrong type
        """
        updates = []
        for name in self._SECTIONS:
            if name not in data:
                continue
            if not isinstance(data[name], dict):
                raise ValueError(f"{name} must be a mapping")
            section = getattr(self, name)
            valid_fields = {f.name for f in fields(section)}
            for k, v in data[name].items():
                if k in valid_fields:
                    updates.append((section, k, _coerce(type(section), k, v)))

        production_mode = self.production_mode
        if "production_mode" in data:
            production_mode = _coerce(Config, "production_mode", data["production_mode"])

        for section, k, v in updates:
            setattr(section, k, v)
        self.production_mode = production_mode

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self) -> List[str]:
        """
        Check that all settings required for relaying are valid.

        Returns:
            List of error messages, empty if valid
        """
        errors = []

        port = self.source.port
        if not isinstance(port, int) or not MIN_SOURCE_PORT <= port <= MAX_SOURCE_PORT:
            errors.append(
                f"SI-Droid port must be between {MIN_SOURCE_PORT} and {MAX_SOURCE_PORT}."
            )

        parsed = urlparse(self.sink.url or "")
        if not parsed.netloc:
            errors.append("OFeed server not specified.")
        elif parsed.scheme != "https":
            errors.append("OFeed server must use HTTPS.")

        if not str(self.sink.event_id or "").strip():
            errors.append("Event id is missing.")
        if not str(self.sink.event_password or "").strip():
            errors.append("Event password is missing.")

        interval = self.relay.upload_interval_sec
        if not isinstance(interval, int) or isinstance(interval, bool) or interval <= 0:
            errors.append("Upload interval must be greater than zero.")

        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validate()

    def to_relay_config(self, user_agent: str) -> RelayConfig:
        """
        Build the immutable relay settings.

        Raises:
            ValueError: If the upload interval is not positive
        """
        return RelayConfig(
            source_url=self.source.url,
            sink_url=self.sink.url,
            event_id=self.sink.event_id,
            authorization=basic_authorization(self.sink.event_id, self.sink.event_password),
            user_agent=user_agent,
            poll_interval_ms=self.relay.upload_interval_sec * 1000,
            connect_timeout_ms=_to_ms(self.http.connect_timeout_sec),
            read_timeout_ms=_to_ms(self.http.read_timeout_sec),
            write_timeout_ms=_to_ms(self.http.write_timeout_sec),
            call_timeout_ms=_to_ms(self.http.call_timeout_sec),
        )
