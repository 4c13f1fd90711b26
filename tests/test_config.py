"""Tests for network presets, environment overrides and .env loading."""

import os

import pytest

from superfarm.config import (
    NETWORKS,
    SIMULATION_CUSTODY,
    TOKEN_NAME,
    TOKEN_SYMBOL,
    check_chain_id,
    load_config,
    load_env_file,
)
from superfarm.errors import ConfigError


class TestLoadConfig:

    def test_kovan_preset(self):
        config = load_config("kovan", env={})
        assert config.chain_id == 42
        assert config.asset == NETWORKS["kovan"]["asset"]
        assert config.oracle == "0x9326BFA02ADD2366b30bacB125260Af641031331"
        assert config.name == TOKEN_NAME
        assert config.symbol == TOKEN_SYMBOL
        assert config.yield_percent == 10
        assert config.custody == SIMULATION_CUSTODY

    def test_network_from_env(self):
        config = load_config(env={"SUPERFARM_NETWORK": "local"})
        assert config.chain_id == 1337

    def test_overrides(self):
        config = load_config("local", env={
            "SUPERFARM_RPC_URL": "http://node:8545",
            "SUPERFARM_CUSTODY": "0x1234",
            "SUPERFARM_YIELD": "12",
        })
        assert config.rpc_url == "http://node:8545"
        assert config.custody == "0x1234"
        assert config.yield_percent == 12
        assert config.to_dict()["network"] == "local"

    def test_unknown_network(self):
        with pytest.raises(ConfigError):
            load_config("mainnet", env={})

    @pytest.mark.parametrize("value", ["ten", "-1"])
    def test_bad_yield(self, value):
        with pytest.raises(ConfigError):
            load_config("local", env={"SUPERFARM_YIELD": value})


class TestChainId:

    @pytest.mark.parametrize("chain_id", [42, 1337])
    def test_supported(self, chain_id):
        check_chain_id(chain_id)

    def test_unsupported(self):
        with pytest.raises(ConfigError, match="Unsupported chain id 1"):
            check_chain_id(1)


class TestEnvFile:

    def test_missing_file(self, tmp_path):
        assert load_env_file(str(tmp_path / "nope.env")) == 0

    def test_does_not_override_existing(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# comment\n"
            "SUPERFARM_TEST_A='from-file'\n"
            "SUPERFARM_TEST_B=\"kept\"\n"
            "garbage line\n"
        )
        monkeypatch.setenv("SUPERFARM_TEST_A", "from-env")
        # Registered with monkeypatch so the value loaded from the file is undone
        monkeypatch.setenv("SUPERFARM_TEST_B", "placeholder")
        monkeypatch.delenv("SUPERFARM_TEST_B")

        assert load_env_file(str(env_file)) == 2
        assert os.environ["SUPERFARM_TEST_A"] == "from-env"
        assert os.environ["SUPERFARM_TEST_B"] == "kept"
