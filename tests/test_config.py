"""
Stake Ledger Node Configuration Tests
"""

import logging

from stakeledger.constants import DEFAULT_API_PORT, DEVNET_SYSTEM_ADDRESS
from stakeledger.core.state import LedgerConfig
from stakeledger.node.config import LogConfig, NodeConfig, setup_logging


class TestNodeConfig:
    """Tests for node configuration."""

    def test_defaults_valid(self):
        config = NodeConfig()

        assert config.validate() == []
        assert config.api.port == DEFAULT_API_PORT
        assert config.system.hex() == DEVNET_SYSTEM_ADDRESS

    def test_devnet(self):
        config = NodeConfig.default_devnet()

        assert config.ledger == LedgerConfig(deposit_delay=2, withdraw_delay=2)
        assert not config.storage.enabled
        assert config.validate() == []

    def test_invalid_values(self):
        config = NodeConfig(system_address="abcd")
        config.ledger = LedgerConfig(deposit_delay=-1)
        config.api.port = 0
        config.api.max_batch_size = 0

        errors = config.validate()

        assert len(errors) == 4

    def test_disabled_api_not_validated(self):
        config = NodeConfig()
        config.api.enabled = False
        config.api.port = 0

        assert config.validate() == []

    def test_db_path(self):
        config = NodeConfig()
        config.storage.data_dir = "/var/lib/ledger"

        assert str(config.db_path) == "/var/lib/ledger/stake_ledger.db"

    def test_save_load(self, tmp_path):
        path = str(tmp_path / "node.json")
        config = NodeConfig(name="test-node")
        config.ledger = LedgerConfig(deposit_delay=4, withdraw_delay=6)
        config.api.port = 9999
        config.storage.autosave = False
        config.save(path)

        loaded = NodeConfig.load(path)

        assert loaded.to_dict() == config.to_dict()


class TestSetupLogging:
    """Tests for logging setup."""

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "node.log"
        root = logging.getLogger()
        saved = root.handlers[:]
        saved_level = root.level
        root.handlers = []
        try:
            setup_logging(LogConfig(level="debug", file=str(log_file)))
            logging.getLogger("stakeledger.test").debug("hello")

            for handler in root.handlers:
                handler.flush()
            assert "hello" in log_file.read_text()
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = saved
            root.setLevel(saved_level)
