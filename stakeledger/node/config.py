"""
Stake Ledger Node Configuration
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import List, Optional

from stakeledger.constants import (
    ADDRESS_SIZE,
    DEFAULT_API_PORT,
    DEFAULT_DB_NAME,
    DEVNET_SYSTEM_ADDRESS,
)
from stakeledger.core.state import LedgerConfig
from stakeledger.core.types import Address

logger = logging.getLogger(__name__)


@dataclass
class StorageConfig:
    """Storage configuration."""
    enabled: bool = True
    data_dir: str = "./data"
    db_name: str = DEFAULT_DB_NAME
    autosave: bool = True


@dataclass
class APIConfig:
    """API server configuration."""
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = DEFAULT_API_PORT
    max_batch_size: int = 100


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_size_mb: int = 100
    backup_count: int = 5


@dataclass
class NodeConfig:
    """
    Complete node configuration.

    All settings for running a stake ledger node.
    """
    name: str = "stake-ledger-node"

    # Identity of the privileged system caller (hex)
    system_address: str = DEVNET_SYSTEM_ADDRESS

    # Sub-configurations
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def system(self) -> Address:
        """System caller as Address."""
        return Address.from_hex(self.system_address)

    @property
    def data_path(self) -> Path:
        """Get data directory path."""
        return Path(self.storage.data_dir)

    @property
    def db_path(self) -> Path:
        """Get database file path."""
        return self.data_path / self.storage.db_name

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = list(self.ledger.validate())

        try:
            self.system
        except ValueError:
            errors.append(
                f"system_address must be {ADDRESS_SIZE} bytes of hex: {self.system_address}"
            )

        if self.storage.enabled and not self.storage.data_dir:
            errors.append("data_dir cannot be empty")

        if self.api.enabled:
            if self.api.port < 1 or self.api.port > 65535:
                errors.append(f"Invalid API port: {self.api.port}")
            if self.api.max_batch_size < 1:
                errors.append("max_batch_size must be at least 1")

        return errors

    def save(self, path: str) -> None:
        """Save configuration to file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def load(cls, path: str) -> "NodeConfig":
        """Load configuration from file."""
        with open(path, 'r') as f:
            data = json.load(f)

        config = cls(
            name=data.get("name", "stake-ledger-node"),
            system_address=data.get("system_address", DEVNET_SYSTEM_ADDRESS),
        )

        if "ledger" in data:
            config.ledger = LedgerConfig.from_dict(data["ledger"])

        if "storage" in data:
            config.storage = StorageConfig(**data["storage"])

        if "api" in data:
            config.api = APIConfig(**data["api"])

        if "log" in data:
            config.log = LogConfig(**data["log"])

        logger.info(f"Configuration loaded from {path}")
        return config

    @classmethod
    def default_devnet(cls) -> "NodeConfig":
        """Create default development configuration (in-memory, short delays)."""
        config = cls(name="stake-ledger-devnet")
        config.ledger = LedgerConfig(deposit_delay=2, withdraw_delay=2)
        config.storage.enabled = False
        config.log.level = "DEBUG"
        return config

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        return {
            "name": self.name,
            "system_address": self.system_address,
            "ledger": self.ledger.to_dict(),
            "storage": asdict(self.storage),
            "api": asdict(self.api),
            "log": asdict(self.log),
        }


def setup_logging(config: LogConfig) -> None:
    """Configure logging based on config."""
    level = getattr(logging, config.level.upper(), logging.INFO)

    handlers = [logging.StreamHandler()]

    if config.file:
        from logging.handlers import RotatingFileHandler
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=config.format,
        handlers=handlers,
    )
