"""Metadata service settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``WALLET_METADATA_``)
2. YAML config file (``config_path`` / ``WALLET_METADATA_CONFIG_PATH``)
3. Defaults defined here
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    return data if isinstance(data, dict) else {}


class MetadataConfig(BaseSettings):
    """Settings for the metadata store client and save/load orchestrator."""

    model_config = SettingsConfigDict(
        env_prefix="WALLET_METADATA_",
        case_sensitive=False,
    )

    config_path: str = ""

    api_url: str = Field(
        default="https://api.blockchain.info",
        description="Base URL of the metadata store; entries live under /metadata/{address}",
    )
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    retry_delay: float = Field(
        default=1.0,
        ge=0,
        description="Fixed delay before the single conflict retry on write",
    )
    max_retries: int = Field(default=1, description="Conflict retries on write (0 or 1)")
    version: int = Field(default=1, description="Entry version written to the store")
    verify_signatures: bool = Field(
        default=True,
        description="Verify entry signatures against the node address on load",
    )

    @field_validator("max_retries")
    @classmethod
    def _bounded_retries(cls, value: int) -> int:
        if value not in (0, 1):
            msg = "max_retries must be 0 or 1"
            raise ValueError(msg)
        return value

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the explicit values."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        for key, val in _load_yaml(config_path).items():
            if values.get(key) is None:
                values[key] = val
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``MetadataConfig`` loading defaults from a YAML file."""
        return cls(config_path=str(path))
