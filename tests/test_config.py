"""Tests for configuration — defaults, environment overrides and validation."""

import logging
import os

import pytest

from halving.config import HalvingConfig, setup_logging


class TestDefaults:
    def test_compiled_in_defaults(self) -> None:
        config = HalvingConfig()
        assert config.epochs_per_halving == 8760
        assert config.hours_per_epoch == 4
        assert config.fast_tick_ms == 500
        assert config.partial_refresh_ms == 11_000
        assert config.full_refresh_ms == 300_000
        assert config.rpc_url == "https://mainnet.ckb.dev/rpc"
        assert config.rpc_method == "get_tip_header"

    def test_to_dict_round_trip(self) -> None:
        config = HalvingConfig(fast_tick_ms=250)
        assert HalvingConfig(**config.to_dict()) == config


class TestFromEnv:
    def test_empty_environment_gives_defaults(self) -> None:
        assert HalvingConfig.from_env(environ={}) == HalvingConfig()

    def test_overrides_are_coerced(self) -> None:
        config = HalvingConfig.from_env(environ={
            "HALVING_RPC_URL": "http://localhost:8114",
            "HALVING_RPC_METHOD": "get_blockchain_info",
            "HALVING_HOURS_PER_EPOCH": "4.1",
            "HALVING_FULL_REFRESH_MS": "60000",
            "HALVING_REQUEST_TIMEOUT_S": "2.5",
        })
        assert config.rpc_url == "http://localhost:8114"
        assert config.rpc_method == "get_blockchain_info"
        assert config.hours_per_epoch == 4.1
        assert config.full_refresh_ms == 60_000
        assert config.request_timeout_s == 2.5

    def test_blank_values_ignored(self) -> None:
        config = HalvingConfig.from_env(environ={"HALVING_FAST_TICK_MS": "  "})
        assert config.fast_tick_ms == 500

    def test_bad_integer_rejected(self) -> None:
        with pytest.raises(ValueError, match="HALVING_FAST_TICK_MS"):
            HalvingConfig.from_env(environ={"HALVING_FAST_TICK_MS": "fast"})

    def test_env_file_loaded(self, tmp_path, monkeypatch) -> None:
        monkeypatch.delenv("HALVING_PARTIAL_REFRESH_MS", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("HALVING_PARTIAL_REFRESH_MS=7000\n", encoding="utf-8")
        try:
            config = HalvingConfig.from_env(env_file=env_file)
            assert config.partial_refresh_ms == 7000
        finally:
            os.environ.pop("HALVING_PARTIAL_REFRESH_MS", None)

    def test_process_environment_wins_over_env_file(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("HALVING_FAST_TICK_MS", "900")
        env_file = tmp_path / ".env"
        env_file.write_text("HALVING_FAST_TICK_MS=100\n", encoding="utf-8")
        assert HalvingConfig.from_env(env_file=env_file).fast_tick_ms == 900


class TestValidation:
    @pytest.mark.parametrize("field", [
        "epochs_per_halving", "hours_per_epoch", "fast_tick_ms",
        "partial_refresh_ms", "full_refresh_ms", "request_timeout_s",
    ])
    def test_non_positive_rejected(self, field: str) -> None:
        with pytest.raises(ValueError, match=field):
            HalvingConfig(**{field: 0})

    def test_unknown_method_rejected(self) -> None:
        with pytest.raises(ValueError, match="rpc_method"):
            HalvingConfig(rpc_method="get_peers")

    def test_unknown_log_level_rejected(self) -> None:
        with pytest.raises(ValueError, match="log_level"):
            HalvingConfig(log_level="chatty")


class TestLogging:
    def test_setup_logging_sets_level(self, monkeypatch) -> None:
        root = logging.getLogger()
        monkeypatch.setattr(root, "handlers", [])
        monkeypatch.setattr(root, "level", logging.WARNING)
        setup_logging("debug")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
