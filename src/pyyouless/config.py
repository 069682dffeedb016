"""Connection configuration for a Youless device.

Example:
    config = YoulessConfig(host="192.168.1.50", password="secret")
    config.validate()

    # Serialize to dict for storage
    data = config.to_dict()

    # Restore from dict
    restored = YoulessConfig.from_dict(data)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .constants import DEFAULT_PORT, DEFAULT_TIMEOUT


@dataclass
class YoulessConfig:
    """Parameters needed to talk to one device.

    Attributes:
        host: IP address or hostname of the device
        port: HTTP port (default 80)
        password: Optional password; without one the client never authenticates
        timeout: Connect and request timeout in seconds
    """

    host: str
    port: int = DEFAULT_PORT
    password: str | None = None
    timeout: float = DEFAULT_TIMEOUT

    @property
    def requires_authentication(self) -> bool:
        """Whether requests must carry a session cookie."""
        return bool(self.password)

    @property
    def base_url(self) -> str:
        """Base URL of the device's HTTP interface."""
        return f"http://{self.host}:{self.port}"

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.host or not self.host.strip():
            raise ValueError("host is required")
        if not 1 <= self.port <= 65535:
            raise ValueError(f"port {self.port} is out of range (1-65535)")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return {
            "host": self.host,
            "port": self.port,
            "password": self.password,
            "timeout": self.timeout,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> YoulessConfig:
        """Create configuration from dictionary.

        Args:
            data: Dictionary with configuration values

        Returns:
            YoulessConfig instance

        Raises:
            ValueError: If a required field is missing
        """
        if "host" not in data:
            raise ValueError("Missing required field: host")

        return cls(
            host=data["host"],
            port=int(data.get("port", DEFAULT_PORT)),
            password=data.get("password"),
            timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
        )
