"""
Unit tests for gateway configuration.
"""

import pytest

from shared.config import GatewayConfig, get_config


class TestGatewayConfig:
    """Test cases for GatewayConfig."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("MUSIC_PARSER_KEY", "GATEWAY_MUSIC_PARSER_KEY", "RATE_LIMIT_MAX_PER_MIN",
                     "GATEWAY_RATE_LIMIT_MAX_PER_MIN"):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self):
        config = GatewayConfig(_env_file=None)

        assert config.music_parser_key is None
        assert config.rate_limit_max_per_min == 30
        assert config.tunehub_base_url == "https://tunehub.sayqz.com/api"
        assert config.trusted_proxy_header == "CF-Connecting-IP"

    def test_reads_unprefixed_env_names(self, monkeypatch):
        monkeypatch.setenv("MUSIC_PARSER_KEY", "from-env")
        monkeypatch.setenv("RATE_LIMIT_MAX_PER_MIN", "120")

        config = GatewayConfig(_env_file=None)

        assert config.music_parser_key == "from-env"
        assert config.rate_limit_max_per_min == 120

    @pytest.mark.parametrize(
        "raw,expected",
        [("0", 1), ("-5", 1), ("5000", 1000), ("abc", 30), ("", 30), (" 45 ", 45)],
    )
    def test_rate_limit_is_clamped(self, raw, expected):
        assert get_config(rate_limit_max_per_min=raw).rate_limit_max_per_min == expected

    def test_blank_key_counts_as_missing(self):
        assert get_config(music_parser_key="   ").music_parser_key is None
