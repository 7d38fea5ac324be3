"""Connection and console settings."""

from dataclasses import dataclass, field, fields
from typing import Optional

from pyscp.catalog import ALIAS_COUNT
from pyscp.families import DEFAULT_MODEL, FAMILIES

SCP_PORT = 49280
DEFAULT_HOST = "192.168.0.128"
MAX_CHANNEL = 72


class ConfigError(ValueError):
    pass


def _default_channel_names():
    return [f"My Channel {i}" for i in range(1, ALIAS_COUNT + 1)]


def _default_channels():
    return [1] * ALIAS_COUNT


@dataclass
class ConsoleConfig:
    host: str = DEFAULT_HOST
    port: int = SCP_PORT
    model: str = DEFAULT_MODEL
    # "My Channel" aliases: display names and the channel each one points at
    channel_names: list[str] = field(default_factory=_default_channel_names)
    channels: list[int] = field(default_factory=_default_channels)
    enable_heartbeat: bool = False
    heartbeat_time: float = 10
    reconnect_time: float = 10

    @classmethod
    def from_dict(cls, values: dict) -> "ConsoleConfig":
        """Build a config from dataclass field names or the flat myChName1/myCh1 keys."""
        known = {f.name for f in fields(cls)}
        config = cls(**{key: value for key, value in values.items() if key in known})
        config.channel_names = list(config.channel_names)
        config.channels = list(config.channels)
        for i in range(1, ALIAS_COUNT + 1):
            if f"myChName{i}" in values:
                config.channel_names[i - 1] = str(values[f"myChName{i}"])
            if f"myCh{i}" in values:
                config.channels[i - 1] = int(values[f"myCh{i}"])
        return config

    def validate(self) -> "ConsoleConfig":
        if not self.host:
            raise ConfigError("Console host is required")
        if not (0 < int(self.port) < 65536):
            raise ConfigError(f"Invalid port {self.port}")
        if self.model not in FAMILIES:
            raise ConfigError(f"Unknown console model {self.model}, must be one of {list(FAMILIES)}")
        if len(self.channel_names) != ALIAS_COUNT or len(self.channels) != ALIAS_COUNT:
            raise ConfigError(f"Exactly {ALIAS_COUNT} channel aliases are required")
        for channel in self.channels:
            if not (1 <= int(channel) <= MAX_CHANNEL):
                raise ConfigError(f"Invalid channel {channel}, must be 1-{MAX_CHANNEL}")
        return self

    def channel_for_alias(self, alias: int) -> Optional[int]:
        """Channel number configured for alias 1-4, or None."""
        if 1 <= alias <= len(self.channels):
            return int(self.channels[alias - 1])
        return None
