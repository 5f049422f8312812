"""Halving countdown CLI.

Usage:
    python -m halving.cli status
    python -m halving.cli watch
    python -m halving.cli watch --duration 60
    python -m halving.cli decode-epoch 0x70803b9000045
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from halving.chain.epoch_codec import (
    EpochIntegrityError,
    decode_epoch,
    encode_epoch,
    parse_packed,
)
from halving.chain.rpc_client import ChainDataClient
from halving.config import HalvingConfig, setup_logging
from halving.engine.scheduler import RefreshScheduler
from halving.engine.state import RefreshMode
from halving.service import CountdownService


DEFAULT_ENV_FILE = Path.cwd() / ".env"


def _load_config(args: argparse.Namespace) -> HalvingConfig:
    config = HalvingConfig.from_env(env_file=args.env_file)
    overrides = {}
    if args.rpc_url:
        overrides["rpc_url"] = args.rpc_url
    if args.method:
        overrides["rpc_method"] = args.method
    if overrides:
        config = HalvingConfig(**{**config.to_dict(), **overrides})
    return config


def _fmt(value: Any) -> str:
    return "-" if value is None else f"{value:,}"


def format_status_line(view: dict[str, Any]) -> str:
    """One-line terminal rendering of the presentation fields."""
    epoch = _fmt(view["current_epoch"])
    if view["epoch_length"] is not None:
        epoch += f" ({view['epoch_index']:,}/{view['epoch_length']:,})"
    return (
        f"{view['countdown']} | block {_fmt(view['current_block'])}"
        f" | epoch {epoch} | target epoch {_fmt(view['target_epoch'])}"
    )


async def _status(config: HalvingConfig) -> tuple[int, dict[str, Any]]:
    async with ChainDataClient(
        config.rpc_url, config.rpc_method, config.request_timeout_s,
    ) as client:
        service = CountdownService(config, client)
        result = await service.refresh(RefreshMode.FULL)
        if not result.success:
            return 1, {"errors": result.errors}
        service.tick()
        return 0, service.render()


async def _watch(config: HalvingConfig, duration: float | None) -> None:
    def redraw(view: dict[str, Any]) -> None:
        sys.stdout.write("\r\x1b[2K" + format_status_line(view))
        sys.stdout.flush()

    async with ChainDataClient(
        config.rpc_url, config.rpc_method, config.request_timeout_s,
    ) as client:
        service = CountdownService(config, client)
        scheduler = RefreshScheduler(service, on_render=redraw)
        await scheduler.run(duration=duration)
    sys.stdout.write("\n")


def cmd_status(args: argparse.Namespace) -> int:
    config = _load_config(args)
    setup_logging(config.log_level)
    code, payload = asyncio.run(_status(config))
    if code == 0:
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(f"Failed: {'; '.join(payload['errors'])}", file=sys.stderr)
    return code


def cmd_watch(args: argparse.Namespace) -> int:
    config = _load_config(args)
    setup_logging(config.log_level)
    try:
        asyncio.run(_watch(config, args.duration))
    except KeyboardInterrupt:
        print()
    return 0


def cmd_decode_epoch(args: argparse.Namespace) -> int:
    try:
        packed = parse_packed(args.value)
    except EpochIntegrityError as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    epoch = decode_epoch(packed)
    print(json.dumps({
        "packed": hex(packed),
        "number": epoch.number,
        "index": epoch.index,
        "length": epoch.length,
        "consistent": epoch.is_consistent,
        "reencoded": hex(encode_epoch(epoch.number, epoch.index, epoch.length)),
    }, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="halving",
        description="Nervos CKB halving countdown",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=DEFAULT_ENV_FILE,
        help="Path to a .env file with HALVING_* settings (default: ./.env)",
    )
    parser.add_argument("--rpc-url", help="CKB node JSON-RPC URL")
    parser.add_argument(
        "--method",
        choices=["get_tip_header", "get_blockchain_info"],
        help="RPC method used to read the chain tip",
    )
    sub = parser.add_subparsers(dest="command")

    # status
    sub.add_parser("status", help="Poll once and print the countdown fields")

    # watch
    p_watch = sub.add_parser("watch", help="Run the live countdown")
    p_watch.add_argument(
        "--duration", type=float, default=None,
        help="Stop after this many seconds (default: run until interrupted)",
    )

    # decode-epoch
    p_dec = sub.add_parser("decode-epoch", help="Decode a packed epoch value")
    p_dec.add_argument("value", help="Packed epoch (0x-hex or decimal)")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "status": cmd_status,
        "watch": cmd_watch,
        "decode-epoch": cmd_decode_epoch,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        return handler(args)
    except ValueError as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
