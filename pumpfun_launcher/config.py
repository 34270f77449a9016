"""
Configuration management for the Pump.fun launcher

Settings are resolved in three layers: environment variables (including a
``.env`` file) override the JSON config file, which overrides the defaults
of ``LauncherSettings``. Every value read from or written to the file goes
through the pydantic model, so a bad ``timeout`` or an unknown ``format`` is
rejected when it is set instead of surfacing mid-launch.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigurationError
from .metadata import DEFAULT_IPFS_URL
from .transaction import DEFAULT_TRADE_URL

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"

# Environment variables take precedence over the config file
ENV_OVERRIDES = {
    "rpc_url": "SOLANA_RPC_URL",
    "ipfs_url": "PUMPFUN_IPFS_URL",
    "trade_url": "PUMPPORTAL_TRADE_URL",
}


class LauncherSettings(BaseModel):
    """Values persisted in the launcher's config file"""
    model_config = ConfigDict(extra="ignore")

    rpc_url: str = Field(DEFAULT_RPC_URL, min_length=1, description="Solana JSON-RPC endpoint")
    ipfs_url: str = Field(DEFAULT_IPFS_URL, min_length=1, description="Metadata upload endpoint")
    trade_url: str = Field(DEFAULT_TRADE_URL, min_length=1, description="Transaction builder endpoint")
    timeout: float = Field(30, gt=0, description="HTTP and RPC timeout in seconds")
    format: Literal["table", "json", "csv"] = "table"


DEFAULT_CONFIG: Dict[str, Any] = LauncherSettings().model_dump()


class Config:
    """
    Configuration manager backed by a JSON file

    A missing file is created with the defaults. An unreadable or invalid
    file is logged and replaced in memory by the defaults, leaving the file
    untouched until the next ``set`` or ``reset``.
    """

    def __init__(self, config_path: Optional[str] = None):
        if config_path:
            self.config_path = Path(config_path)
        else:
            self.config_path = Path.home() / ".pumpfun_launcher" / "config.json"

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        self.settings = self._load_settings()
        logger.debug(f"Loaded configuration from {self.config_path}")

    def _load_settings(self) -> LauncherSettings:
        if not self.config_path.exists():
            settings = LauncherSettings()
            self._save(settings)
            return settings

        try:
            return LauncherSettings.model_validate(json.loads(self.config_path.read_text()))
        except (OSError, ValueError) as e:
            # pydantic's ValidationError is a ValueError
            logger.warning(f"Ignoring invalid config file {self.config_path}: {e}")
            return LauncherSettings()

    def _save(self, settings: LauncherSettings) -> None:
        try:
            self.config_path.write_text(json.dumps(settings.model_dump(), indent=2))
        except OSError as e:
            logger.error(f"Error saving config file: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value, honouring environment overrides"""
        env_var = ENV_OVERRIDES.get(key)
        if env_var and os.getenv(env_var):
            return os.getenv(env_var)
        if key in LauncherSettings.model_fields:
            return getattr(self.settings, key)
        return default

    def set(self, key: str, value: Any) -> Any:
        """
        Validate and persist one setting

        Returns:
            The stored value, coerced to the setting's type

        Raises:
            ConfigurationError: If the key is unknown or the value is invalid
        """
        if key not in LauncherSettings.model_fields:
            raise ConfigurationError(
                f"Unknown configuration key '{key}' (expected one of: {', '.join(LauncherSettings.model_fields)})"
            )
        try:
            settings = LauncherSettings.model_validate({**self.settings.model_dump(), key: value})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid value for {key}: {e.errors()[0]['msg']}") from e

        self.settings = settings
        self._save(settings)
        return getattr(settings, key)

    def get_all(self) -> Dict[str, Any]:
        return {key: self.get(key) for key in LauncherSettings.model_fields}

    def reset(self) -> None:
        """Reset configuration to defaults"""
        self.settings = LauncherSettings()
        self._save(self.settings)

    @property
    def rpc_url(self) -> str:
        return self.get("rpc_url")

    @property
    def ipfs_url(self) -> str:
        return self.get("ipfs_url")

    @property
    def trade_url(self) -> str:
        return self.get("trade_url")

    @property
    def timeout(self) -> float:
        return self.settings.timeout

    def validate(self, wallet_address: Optional[str] = None) -> Dict[str, Any]:
        """
        Summarise the launch configuration

        Returns:
            Dict: Configuration validation results
        """
        return {
            "rpc_url": self.rpc_url,
            "ipfs_url": self.ipfs_url,
            "trade_url": self.trade_url,
            "timeout": self.timeout,
            "wallet_configured": wallet_address is not None,
            "wallet_address": wallet_address,
        }
