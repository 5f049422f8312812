"""Countdown configuration.

Defaults are compiled in. Any of them can be overridden through
HALVING_* environment variables, optionally loaded from a .env file:

    HALVING_RPC_URL=https://mainnet.ckb.dev/rpc
    HALVING_RPC_METHOD=get_tip_header
    HALVING_REQUEST_TIMEOUT_S=10
    HALVING_EPOCHS_PER_HALVING=8760
    HALVING_HOURS_PER_EPOCH=4
    HALVING_FAST_TICK_MS=500
    HALVING_PARTIAL_REFRESH_MS=11000
    HALVING_FULL_REFRESH_MS=300000
    HALVING_LOG_LEVEL=INFO
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from halving.chain.rpc_client import DEFAULT_RPC_URL, METHOD_TIP_HEADER, SUPPORTED_METHODS
from halving.countdown.projector import EPOCHS_PER_HALVING, HOURS_PER_EPOCH

ENV_PREFIX = "HALVING_"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class HalvingConfig:
    """Runtime settings for the countdown."""

    rpc_url: str = DEFAULT_RPC_URL
    rpc_method: str = METHOD_TIP_HEADER
    request_timeout_s: float = 10.0
    epochs_per_halving: int = EPOCHS_PER_HALVING
    hours_per_epoch: float = HOURS_PER_EPOCH
    fast_tick_ms: int = 500  # countdown redraw
    partial_refresh_ms: int = 11 * 1000  # block and epoch only
    full_refresh_ms: int = 5 * 60 * 1000  # retarget
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.rpc_method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported rpc_method {self.rpc_method!r}")
        for name in (
            "request_timeout_s",
            "epochs_per_halving",
            "hours_per_epoch",
            "fast_tick_ms",
            "partial_refresh_ms",
            "full_refresh_ms",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log_level {self.log_level!r}")

    @classmethod
    def from_env(
        cls,
        env_file: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "HalvingConfig":
        """Build a config from HALVING_* variables.

        ``env_file`` is loaded first (without overriding variables that
        are already set). ``environ`` defaults to ``os.environ``.
        """
        if env_file is not None:
            load_dotenv(env_file)
        env = os.environ if environ is None else environ

        overrides: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw.strip() == "":
                continue
            overrides[f.name] = _coerce(f.name, f.type, raw.strip())
        return cls(**overrides)

    def to_dict(self) -> dict:
        return asdict(self)


def _coerce(name: str, type_name: Any, raw: str) -> Any:
    # Annotations are strings under postponed evaluation.
    kind = type_name if isinstance(type_name, str) else type_name.__name__
    try:
        if kind == "int":
            return int(raw)
        if kind == "float":
            return float(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name.upper()}: expected {kind}, got {raw!r}") from None
    return raw


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the command-line entry points."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )
