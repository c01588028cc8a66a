"""
Tests for structured logging and configuration
"""

import io
import json
import logging

from bank_ledger.config import LedgerConfig
from bank_ledger.logging_config import (
    JSONFormatter, TextFormatter, log_action, setup_logging
)


class TestStructuredLogging:
    """Test log_action output through both formatters"""

    def setup_method(self):
        self.stream = io.StringIO()
        self.logger = logging.getLogger("bank_ledger.tests.logging")
        self.logger.handlers = []
        self.logger.propagate = False
        self.logger.setLevel(logging.DEBUG)
        self.handler = logging.StreamHandler(self.stream)
        self.logger.addHandler(self.handler)

    def teardown_method(self):
        self.logger.removeHandler(self.handler)

    def test_json_output(self):
        self.handler.setFormatter(JSONFormatter())

        log_action(
            self.logger, "info", "Account created",
            user_id="usr-1", action="create_account", resource="account:01000001",
            extra={"currency": "GBP"}
        )

        entry = json.loads(self.stream.getvalue())
        assert entry["level"] == "INFO"
        assert entry["message"] == "Account created"
        assert entry["user_id"] == "usr-1"
        assert entry["action"] == "create_account"
        assert entry["resource"] == "account:01000001"
        assert entry["extra"] == {"currency": "GBP"}
        assert "timestamp" in entry

    def test_json_omits_missing_fields(self):
        self.handler.setFormatter(JSONFormatter())
        log_action(self.logger, "warning", "Authentication failed")

        entry = json.loads(self.stream.getvalue())
        assert "user_id" not in entry
        assert "resource" not in entry

    def test_text_output(self):
        self.handler.setFormatter(TextFormatter())
        log_action(self.logger, "info", "User deleted", user_id="usr-2", action="delete_user")

        line = self.stream.getvalue()
        assert "User deleted" in line
        assert "[user_id=usr-2 action=delete_user]" in line

    def test_level_filtering(self):
        self.handler.setFormatter(JSONFormatter())
        self.logger.setLevel(logging.WARNING)

        log_action(self.logger, "info", "ignored")
        assert self.stream.getvalue() == ""

    def test_setup_logging(self):
        logger = setup_logging("DEBUG", "text", logger_name="bank_ledger.tests.setup")

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, TextFormatter)
        assert not logger.propagate

        # Reconfiguring does not stack handlers
        setup_logging("INFO", "json", logger_name="bank_ledger.tests.setup")
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)


class TestConfig:
    """Test environment-driven configuration"""

    def test_defaults(self, monkeypatch):
        for name in ("LEDGER_JWT_SECRET", "LEDGER_JWT_EXPIRY_SECONDS", "LEDGER_JWT_ISSUER", "LEDGER_SORT_CODE"):
            monkeypatch.delenv(name, raising=False)
        config = LedgerConfig(_env_file=None)

        assert config.jwt_secret == ""
        assert config.jwt_expiry_seconds == 600
        assert config.jwt_algorithm == "HS256"
        assert config.jwt_issuer == "self"
        assert config.sort_code == "10-10-10"
        assert config.default_currency == "GBP"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LEDGER_DATABASE_URL", "memory://")
        monkeypatch.setenv("LEDGER_JWT_SECRET", "from-env")
        monkeypatch.setenv("LEDGER_BCRYPT_ROUNDS", "4")

        config = LedgerConfig(_env_file=None)

        assert config.database_url == "memory://"
        assert config.jwt_secret == "from-env"
        assert config.bcrypt_rounds == 4
