#!/usr/bin/env python3

import os
import yaml
from enum import Enum
from typing import Dict, List, Any, Optional, Tuple
from dataclasses import dataclass, fields

from ..errors import ConfigError

ARCHLINUX_MIRRORLIST_URL = "https://www.archlinux.org/mirrorlist/"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

class Protocol(Enum):
    HTTP = "http"
    HTTPS = "https"

    @classmethod
    def parse(cls, value: Any) -> "Protocol":
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower()
        for member in cls:
            if member.value == name:
                return member
        raise ConfigError(f"Unknown protocol: {value!r} (expected http or https)")

    def to_parameter(self) -> str:
        return f"protocol={self.value}"

class IPVersion(Enum):
    IPV4 = "4"
    IPV6 = "6"

    @classmethod
    def parse(cls, value: Any) -> "IPVersion":
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower()
        if name.startswith("ipv"):
            name = name[3:]
        for member in cls:
            if member.value == name:
                return member
        raise ConfigError(f"Unknown IP version: {value!r} (expected 4 or 6)")

    def to_parameter(self) -> str:
        return f"ip_version={self.value}"

@dataclass(frozen=True)
class FetchConfig:
    protocols: Tuple[Protocol, ...]
    ip_versions: Tuple[IPVersion, ...]
    country: str

    def __post_init__(self):
        # Accept any iterable but store tuples so the config stays immutable
        object.__setattr__(self, "protocols", tuple(self.protocols))
        object.__setattr__(self, "ip_versions", tuple(self.ip_versions))

    def validate(self) -> None:
        """Refuse to go any further when a required selection is missing"""
        if not self.protocols:
            raise ConfigError("No protocol(s) specified!")
        if not self.ip_versions:
            raise ConfigError("No IP version(s) specified!")
        if not self.country:
            raise ConfigError("No country specified!")

@dataclass
class ToolConfig:
    base_url: str = ARCHLINUX_MIRRORLIST_URL
    protocols: List[Protocol] = None
    ip_versions: List[IPVersion] = None
    country: str = ""
    output: str = "mirrorlist"
    timeout: Optional[float] = None  # None waits forever
    log_level: str = "INFO"
    allow_partial: bool = False

    def __post_init__(self):
        if self.protocols is None:
            self.protocols = [Protocol.HTTPS]
        if self.ip_versions is None:
            self.ip_versions = [IPVersion.IPV4]

        self.protocols = [Protocol.parse(p) for p in self.protocols]
        self.ip_versions = [IPVersion.parse(v) for v in self.ip_versions]

        # YAML reads bare NO as False
        if self.country is None:
            self.country = ""
        if not isinstance(self.country, str):
            raise ConfigError(
                f"Country must be a string, got {self.country!r} (quote it, e.g. country: \"NO\")"
            )

        if self.timeout is not None and (
                isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float))):
            raise ConfigError(f"Timeout must be a number of seconds, got {self.timeout!r}")

        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {self.log_level}")

    def to_fetch_config(self) -> FetchConfig:
        return FetchConfig(
            protocols=tuple(self.protocols),
            ip_versions=tuple(self.ip_versions),
            country=self.country or "",
        )

class ConfigManager:
    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or self._get_default_config_path()
        self._config: Optional[ToolConfig] = None

    def _get_default_config_path(self) -> str:
        xdg_config = os.environ.get('XDG_CONFIG_HOME', '~/.config')
        return os.path.expanduser(f"{xdg_config}/arch-mirrorlist/config.yaml")

    def load_config(self) -> ToolConfig:
        if self._config is not None:
            return self._config

        if not os.path.exists(self.config_path):
            self._config = ToolConfig()
            return self._config

        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config from {self.config_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Error loading config from {self.config_path}: expected a mapping")

        known = {f.name for f in fields(ToolConfig)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(
                f"Error loading config from {self.config_path}: unknown keys {', '.join(unknown)}"
            )

        # A single value is as good as a one-element list
        for key in ('protocols', 'ip_versions'):
            if key in data and not isinstance(data[key], list):
                data[key] = [data[key]]

        try:
            self._config = ToolConfig(**data)
        except ConfigError as e:
            raise ConfigError(f"Error loading config from {self.config_path}: {e}") from e
        return self._config

    def get_config(self) -> ToolConfig:
        if self._config is None:
            return self.load_config()
        return self._config

    def describe(self) -> Dict[str, Any]:
        """Plain view of the effective settings, used for debug logging"""
        config = self.get_config()
        return {
            'config_path': self.config_path,
            'base_url': config.base_url,
            'protocols': [p.value for p in config.protocols],
            'ip_versions': [v.value for v in config.ip_versions],
            'country': config.country,
            'output': config.output,
            'timeout': config.timeout,
        }
