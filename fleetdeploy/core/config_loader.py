"""Configuration loading for FleetDeploy installs"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Optional

import yaml

from fleetdeploy.constants import (
    DEFAULT_SSH_PORT,
    SSH_CONNECTION_TIMEOUT,
    SSH_CONNECT_ATTEMPTS,
    SSH_RETRY_DELAY,
    SSH_COMMAND_TIMEOUT,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_SERVICE_NAME,
    DEFAULT_LOG_DIR,
    DEFAULT_CONFIG_FILES,
    ELEVATION_STDIN,
    ELEVATION_MODES,
    LEGACY_DEVICE_CLASSES,
)
from fleetdeploy.exceptions import ConfigurationError
from fleetdeploy.models.inventory import Credential, DeviceClass


@dataclass
class InstallerConfig:
    """Represents a loaded and validated installer configuration"""

    device_classes: Dict[str, DeviceClass] = field(default_factory=dict)
    port: int = DEFAULT_SSH_PORT
    connect_timeout: float = SSH_CONNECTION_TIMEOUT
    connect_attempts: int = SSH_CONNECT_ATTEMPTS
    retry_delay: float = SSH_RETRY_DELAY
    command_timeout: float = SSH_COMMAND_TIMEOUT
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    service_name: str = DEFAULT_SERVICE_NAME
    log_dir: str = DEFAULT_LOG_DIR
    elevation: str = ELEVATION_STDIN
    config_path: Optional[Path] = None

    @property
    def device_class_names(self) -> List[str]:
        return list(self.device_classes)

    def get_device_class(self, name: str) -> DeviceClass:
        """
        Look up a device class by name.

        Raises:
            ConfigurationError: If the class is not configured
        """
        if name not in self.device_classes:
            raise ConfigurationError(
                f"Device class '{name}' not found",
                context=f"Available device classes: {', '.join(self.device_classes)}",
            )
        return self.device_classes[name]

    @classmethod
    def load(cls, path: Path) -> "InstallerConfig":
        """Load configuration from a YAML (or JSON) file."""
        return ConfigLoader().load(path)


class ConfigLoader:
    """Loads installer configuration from config.yml / config.json"""

    def find_config(self, directory: Path) -> Path:
        """
        Find the first default config file in a directory.

        Raises:
            ConfigurationError: If none of the default files exist
        """
        for name in DEFAULT_CONFIG_FILES:
            candidate = Path(directory) / name
            if candidate.exists():
                return candidate

        raise ConfigurationError(
            "No configuration file found",
            context=f"Looked for: {', '.join(DEFAULT_CONFIG_FILES)} in {directory}",
        )

    def load(self, path: Path) -> InstallerConfig:
        """
        Load and validate configuration

        Args:
            path: Path to config.yml (JSON content is accepted too)

        Returns:
            InstallerConfig

        Raises:
            ConfigurationError: If the file is missing or invalid
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(
                f"Config file not found: {path}",
                context="Create config.yml with device_classes and credentials",
            )

        try:
            with open(path, "r") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid config file: {path}", context=str(e))

        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"Invalid config file: {path}",
                context="Top level must be a mapping",
            )

        config = self.from_dict(raw)
        config.config_path = path
        return config

    def from_dict(self, raw: Dict[str, Any]) -> InstallerConfig:
        """Build configuration from an already parsed mapping."""
        if "device_classes" in raw:
            device_classes = self._parse_device_classes(raw["device_classes"])
        else:
            device_classes = self._parse_legacy_credentials(raw)

        if not device_classes:
            raise ConfigurationError(
                "No device classes configured",
                context="Add a device_classes section with credentials",
            )

        config = InstallerConfig(
            device_classes=device_classes,
            port=self._int(raw, "port", DEFAULT_SSH_PORT),
            connect_timeout=self._number(raw, "connect_timeout", SSH_CONNECTION_TIMEOUT),
            connect_attempts=self._int(raw, "connect_attempts", SSH_CONNECT_ATTEMPTS),
            retry_delay=self._number(raw, "retry_delay", SSH_RETRY_DELAY),
            command_timeout=self._number(raw, "command_timeout", SSH_COMMAND_TIMEOUT),
            max_concurrency=self._int(raw, "max_concurrency", DEFAULT_MAX_CONCURRENCY),
            service_name=str(raw.get("service_name", DEFAULT_SERVICE_NAME)),
            log_dir=str(raw.get("log_dir", DEFAULT_LOG_DIR)),
            elevation=str(raw.get("elevation", ELEVATION_STDIN)),
        )
        self._validate(config)
        return config

    def _parse_device_classes(self, section: Any) -> Dict[str, DeviceClass]:
        if not isinstance(section, dict):
            raise ConfigurationError(
                "device_classes must be a mapping",
                context="device_classes: {name: {label, credentials: [...]}}",
            )

        device_classes = {}
        for name, entry in section.items():
            entry = {} if entry is None else entry
            if not isinstance(entry, dict):
                raise ConfigurationError(
                    f"Device class '{name}' must be a mapping",
                    context=f"{name}: {{label, credentials: [{{username, password}}]}}",
                )
            items = entry.get("credentials") or []
            if not isinstance(items, list):
                raise ConfigurationError(
                    f"Credentials of device class '{name}' must be a list",
                    context="credentials: [{username, password}, ...]",
                )
            credentials = tuple(self._parse_credential(name, item) for item in items)
            if not credentials:
                raise ConfigurationError(
                    f"Device class '{name}' has no credentials",
                    context="Add at least one {username, password} entry",
                )
            device_classes[str(name)] = DeviceClass(
                name=str(name),
                label=str(entry.get("label", name)),
                credentials=credentials,
            )
        return device_classes

    def _parse_credential(self, class_name: str, item: Any) -> Credential:
        if not isinstance(item, dict) or "username" not in item:
            raise ConfigurationError(
                f"Invalid credential in device class '{class_name}'",
                context="Each credential needs username and password",
            )
        return Credential(
            username=str(item["username"]),
            secret=str(item.get("password", "")),
        )

    def _parse_legacy_credentials(self, raw: Dict[str, Any]) -> Dict[str, DeviceClass]:
        """Map username1/password1, username2/password2 onto device classes."""
        device_classes = {}
        for index, (name, label) in LEGACY_DEVICE_CLASSES.items():
            username = raw.get(f"username{index}")
            if not username:
                continue
            credential = Credential(
                username=str(username),
                secret=str(raw.get(f"password{index}", "")),
            )
            device_classes[name] = DeviceClass(
                name=name, label=label, credentials=(credential,)
            )
        return device_classes

    def _validate(self, config: InstallerConfig) -> None:
        errors = []
        if not 0 < config.port < 65536:
            errors.append(f"port must be between 1 and 65535, got {config.port}")
        if config.max_concurrency < 1:
            errors.append("max_concurrency must be at least 1")
        if config.connect_attempts < 1:
            errors.append("connect_attempts must be at least 1")
        if config.connect_timeout <= 0:
            errors.append("connect_timeout must be positive")
        if config.retry_delay < 0:
            errors.append("retry_delay must not be negative")
        if config.elevation not in ELEVATION_MODES:
            errors.append(
                f"elevation must be one of {', '.join(ELEVATION_MODES)}, got '{config.elevation}'"
            )

        if errors:
            raise ConfigurationError(
                "Invalid installer configuration", context="; ".join(errors)
            )

    @staticmethod
    def _int(raw: Dict[str, Any], key: str, default: int) -> int:
        try:
            return int(raw.get(key, default))
        except (TypeError, ValueError):
            raise ConfigurationError(f"'{key}' must be an integer, got {raw.get(key)!r}")

    @staticmethod
    def _number(raw: Dict[str, Any], key: str, default: float) -> float:
        try:
            return float(raw.get(key, default))
        except (TypeError, ValueError):
            raise ConfigurationError(f"'{key}' must be a number, got {raw.get(key)!r}")
