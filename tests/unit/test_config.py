"""
Unit tests for server configuration.
"""

import pytest

from oneshot.config import ServerConfig, DEFAULT_REPLY
from oneshot.errors import FatalSystemCallFailure, Phase


class TestServerConfig:
    """Tests for ServerConfig defaults and validation."""

    def test_defaults(self):
        """Test the fixed tunables."""
        config = ServerConfig(port=5000)

        assert config.host == "0.0.0.0"
        assert config.backlog == 5
        assert config.max_message_size == 255
        assert config.reply == b"I got your message"
        assert len(config.reply) == 18

    def test_endpoint(self):
        config = ServerConfig(port=5000)
        assert config.endpoint == ("0.0.0.0", 5000)

    def test_validate_accepts_defaults(self):
        ServerConfig(port=5000).validate()

    def test_validate_leaves_port_alone(self):
        """Bad ports are rejected by bind(), not by validation."""
        ServerConfig(port=70000).validate()
        ServerConfig(port=-1).validate()

    @pytest.mark.parametrize("overrides", [
        {"backlog": 0},
        {"max_message_size": 0},
        {"reply": b""},
    ])
    def test_validate_rejects_bad_tunables(self, overrides):
        with pytest.raises(ValueError):
            ServerConfig(port=5000, **overrides).validate()


class TestFromArgument:
    """Tests for building config from the CLI port argument."""

    def test_numeric_port(self):
        config = ServerConfig.from_argument("8080")
        assert config.port == 8080
        assert config.reply == DEFAULT_REPLY

    def test_overrides(self):
        config = ServerConfig.from_argument("0", host="127.0.0.1", log_level="DEBUG")
        assert config.endpoint == ("127.0.0.1", 0)
        assert config.log_level == "DEBUG"

    def test_out_of_range_port_is_passed_through(self):
        assert ServerConfig.from_argument("99999").port == 99999

    def test_non_numeric_port_is_a_binding_failure(self):
        with pytest.raises(FatalSystemCallFailure) as exc_info:
            ServerConfig.from_argument("http")

        assert exc_info.value.phase == Phase.BIND
        assert str(exc_info.value).startswith("ERROR on binding: ")
        assert isinstance(exc_info.value.cause, ValueError)
