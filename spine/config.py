"""
Client configuration for Spine.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ClientConfig:
    """Configuration for a Spine client."""

    endpoint: str = ""

    timeout: float = 30.0

    headers: dict[str, str] = field(default_factory=dict)

    log_level: str = "warning"

    def __post_init__(self):
        self.endpoint = self.endpoint.rstrip("/")

    @classmethod
    def from_env(cls, endpoint: Optional[str] = None) -> "ClientConfig":
        """Create configuration from environment variables."""
        headers = {}
        token = os.environ.get("SPINE_AUTH_TOKEN")
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return cls(
            endpoint=endpoint or os.environ.get("SPINE_ENDPOINT", ""),
            timeout=float(os.environ.get("SPINE_TIMEOUT", "30")),
            headers=headers,
            log_level=os.environ.get("SPINE_LOG_LEVEL", "warning"),
        )


def configure_logging(level: str) -> None:
    """Set the level of the ``spine`` logger hierarchy."""
    logging.getLogger("spine").setLevel(level.upper())
