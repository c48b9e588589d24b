"""
LazyMint Configuration System

Unified configuration management with YAML files, environment variables,
validation, and runtime updates.

Configuration Sources (in order of precedence):
    1. Environment variables (LAZYMINT_*)
    2. Runtime overrides
    3. User config file (~/.lazymint/config.yaml)
    4. Project config file (./lazymint.yaml)
    5. Default values

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

import yaml

T = TypeVar("T")


class ConfigError(Exception):
    """Configuration error."""
    pass


class ValidationError(ConfigError):
    """Configuration validation error."""
    pass


@dataclass
class ConfigValue(Generic[T]):
    """
    A single configuration value with metadata.

    Supports default values, environment variable binding,
    validation, and change callbacks.
    """
    default: T
    env_var: Optional[str] = None
    description: str = ""
    validator: Optional[Callable[[T], bool]] = None
    secret: bool = False  # Never exported or logged in clear
    _value: Optional[T] = field(default=None, repr=False)
    _callbacks: List[Callable[[T, T], None]] = field(default_factory=list, repr=False)

    def get(self) -> T:
        """Get the current value."""
        if self.env_var and self.env_var in os.environ:
            env_value = os.environ[self.env_var]
            return self._coerce(env_value)

        return self._value if self._value is not None else self.default

    def set(self, value: T) -> None:
        """Set the value with validation."""
        if self.validator and not self.validator(value):
            raise ValidationError(f"Invalid value for config: {value}")

        old_value = self._value
        self._value = value

        for callback in self._callbacks:
            callback(old_value, value)

    def reset(self) -> None:
        """Drop any runtime override and fall back to the default."""
        self._value = None

    def _coerce(self, value: str) -> T:
        """Coerce string value to target type."""
        target_type = type(self.default)

        if target_type == bool:
            return value.lower() in ("true", "1", "yes", "on")  # type: ignore
        elif target_type == int:
            try:
                return int(value, 0)  # type: ignore
            except ValueError as e:
                raise ConfigError(f"{self.env_var}: expected integer, got {value!r}") from e
        else:
            return value  # type: ignore

    def on_change(self, callback: Callable[[T, T], None]) -> None:
        """Register a change callback."""
        self._callbacks.append(callback)


@dataclass
class RuntimeConfig:
    """Configuration for the execution runtime."""
    chain_id: ConfigValue[int] = field(default_factory=lambda: ConfigValue(
        default=1337,
        env_var="LAZYMINT_CHAIN_ID",
        description="Network identifier bound into every voucher signature",
        validator=lambda x: isinstance(x, int) and x > 0,
    ))


@dataclass
class LedgerConfig:
    """Configuration for the issuance ledger's signing domain."""
    name: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="LazyMint1155",
        env_var="LAZYMINT_LEDGER_NAME",
        description="Signing domain name of the issuance ledger",
        validator=lambda x: isinstance(x, str) and len(x) > 0,
    ))
    version: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="1",
        env_var="LAZYMINT_LEDGER_VERSION",
        description="Signing domain version of the issuance ledger",
        validator=lambda x: isinstance(x, str) and len(x) > 0,
    ))


@dataclass
class SignerConfig:
    """Configuration for the off-system voucher signer."""
    private_key: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="",
        env_var="LAZYMINT_SIGNER_KEY",
        description="Hex private key of the authorized voucher signer",
        secret=True,
    ))


@dataclass
class ObservabilityConfig:
    """Configuration for Observability."""
    log_level: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="info",
        env_var="LAZYMINT_LOG_LEVEL",
        description="Log level (debug, info, warning, error)",
        validator=lambda x: x in ("debug", "info", "warning", "error", "critical"),
    ))
    log_format: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="json",
        env_var="LAZYMINT_LOG_FORMAT",
        description="Log format (json, text)",
        validator=lambda x: x in ("json", "text"),
    ))
    audit_enabled: ConfigValue[bool] = field(default_factory=lambda: ConfigValue(
        default=True,
        env_var="LAZYMINT_AUDIT_ENABLED",
        description="Record administrative and issuance outcomes in the audit trail",
    ))


@dataclass
class LazyMintConfig:
    """
    Root configuration for LazyMint.

    Aggregates all component configurations and provides
    loading/saving functionality.
    """
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    signer: SignerConfig = field(default_factory=SignerConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    def to_dict(self, include_secrets: bool = False) -> Dict[str, Any]:
        """Convert to dictionary. Secret values are masked unless requested."""
        def extract_values(obj: Any) -> Any:
            if isinstance(obj, ConfigValue):
                value = obj.get()
                if obj.secret and not include_secrets:
                    return "***" if value else ""
                return value
            elif hasattr(obj, "__dataclass_fields__"):
                return {k: extract_values(getattr(obj, k)) for k in obj.__dataclass_fields__}
            return obj

        return extract_values(self)

    def to_yaml(self) -> str:
        """Convert to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False)


class ConfigManager:
    """
    Configuration manager with file loading and environment binding.

    Thread-safe singleton that manages configuration lifecycle.
    """

    _instance: Optional["ConfigManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "ConfigManager":
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._initialized = False
            return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._config = LazyMintConfig()
        self._config_paths: List[Path] = []
        self._watchers: List[Callable[[LazyMintConfig], None]] = []
        self._initialized = True

    @property
    def config(self) -> LazyMintConfig:
        """Get the current configuration."""
        return self._config

    def load_from_file(self, path: Union[str, Path]) -> None:
        """Load configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Malformed configuration file {path}: {e}") from e

        if data is None:
            return
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {path} must contain a mapping")

        self._apply_dict(data)
        if path not in self._config_paths:
            self._config_paths.append(path)

    def load_defaults(self) -> List[Path]:
        """Load default configuration files if they exist. Returns the files loaded."""
        default_paths = [
            Path.home() / ".lazymint" / "config.yaml",
            Path("lazymint.yaml"),
        ]

        loaded = []
        for path in default_paths:
            if path.exists():
                self.load_from_file(path)
                loaded.append(path)
        return loaded

    def _apply_dict(self, data: Dict[str, Any]) -> None:
        """Apply dictionary values to configuration."""
        def apply_to_config(config_obj: Any, values: Dict[str, Any], prefix: str) -> None:
            for key, value in values.items():
                path = f"{prefix}{key}"
                if not hasattr(config_obj, key):
                    raise ConfigError(f"Unknown configuration key: {path}")
                attr = getattr(config_obj, key)
                if isinstance(attr, ConfigValue):
                    attr.set(value)
                elif hasattr(attr, "__dataclass_fields__") and isinstance(value, dict):
                    apply_to_config(attr, value, f"{path}.")
                else:
                    raise ConfigError(f"Invalid configuration section: {path}")

        apply_to_config(self._config, data, "")

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value by path.

        Example: config.set("runtime.chain_id", 97)
        """
        attr = self._resolve(path)
        if not isinstance(attr, ConfigValue):
            raise ConfigError(f"Invalid config path: {path}")
        attr.set(value)

    def get(self, path: str) -> Any:
        """
        Get a configuration value by path.

        Example: config.get("ledger.name")
        """
        obj = self._resolve(path)
        if isinstance(obj, ConfigValue):
            return obj.get()
        return obj

    def _resolve(self, path: str) -> Any:
        obj: Any = self._config
        for part in path.split("."):
            if not hasattr(obj, part):
                raise ConfigError(f"Invalid config path: {path}")
            obj = getattr(obj, part)
        return obj

    def watch(self, callback: Callable[[LazyMintConfig], None]) -> None:
        """Register a callback for configuration changes."""
        self._watchers.append(callback)

    def reload(self) -> None:
        """Reload configuration from all loaded files."""
        for path in self._config_paths:
            if path.exists():
                self.load_from_file(path)

        for watcher in self._watchers:
            watcher(self._config)

    def reset(self) -> None:
        """Discard all overrides, loaded files and watchers."""
        self._config = LazyMintConfig()
        self._config_paths = []
        self._watchers = []

    def validate(self) -> List[str]:
        """
        Validate all configuration values.

        Returns list of validation errors.
        """
        errors: List[str] = []

        def validate_config(obj: Any, path: str = "") -> None:
            if isinstance(obj, ConfigValue):
                try:
                    value = obj.get()
                    if obj.validator and not obj.validator(value):
                        errors.append(f"{path}: validation failed for value {value}")
                except ConfigError as e:
                    errors.append(f"{path}: {e}")
            elif hasattr(obj, "__dataclass_fields__"):
                for field_name in obj.__dataclass_fields__:
                    field_path = f"{path}.{field_name}" if path else field_name
                    validate_config(getattr(obj, field_name), field_path)

        validate_config(self._config)
        return errors


def get_config() -> LazyMintConfig:
    """Get the current LazyMint configuration."""
    return ConfigManager().config


def get_config_manager() -> ConfigManager:
    """Get the configuration manager instance."""
    return ConfigManager()
