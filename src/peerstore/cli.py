"""CLI entry point for inspecting and editing a node's peers file.

Usage:
    peerstore list
    peerstore --file data/peers.json check
    peerstore --config node_config.json add 192.168.1.10 2001:db8::1
    peerstore remove 192.168.1.10
    peerstore compact

Environment variables:
    PEERSTORE_FILE: Peers file path (overridden by --file)
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from peerstore.errors import IpAddressFormatError, PeerStoreError
from peerstore.network.peerbook import PeerBook
from peerstore.storage.peerfile import PeersFileController

logger = logging.getLogger(__name__)

DEFAULT_PEERS_FILE = "./peer-data/peers.json"
ENV_PEERS_FILE = "PEERSTORE_FILE"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@dataclass
class StoreConfig:
    """Resolved CLI configuration."""

    peers_file: str = DEFAULT_PEERS_FILE
    log_level: str = "WARNING"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="peerstore",
        description="Inspect and edit a node's known-peers file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--file", "-f",
        help=f"Path to the peers JSON file (default: {DEFAULT_PEERS_FILE})",
    )
    parser.add_argument(
        "--config", "-c",
        help="Path to JSON config file (keys: peers_file, log_level)",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        help="Log level (default: WARNING)",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="Print known peer addresses")
    sub.add_parser("check", help="Validate the file and report dropped entries")
    add = sub.add_parser("add", help="Add peer addresses")
    add.add_argument("addresses", nargs="+", metavar="ADDRESS")
    remove = sub.add_parser("remove", help="Remove peer addresses")
    remove.add_argument("addresses", nargs="+", metavar="ADDRESS")
    sub.add_parser("compact", help="Rewrite the file in canonical form")

    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> StoreConfig:
    """Resolve configuration: flags, then environment, then config file."""
    raw: dict[str, Any] = {}
    if args.config:
        path = Path(args.config).resolve()
        if not path.exists():
            raise PeerStoreError(f"config file not found: {path}")
        try:
            with open(path) as f:
                raw = json.load(f)
        except OSError as e:
            raise PeerStoreError(f"cannot read config file {path}: {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise PeerStoreError(f"config file {path} is not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise PeerStoreError(f"config file {path} must contain a JSON object")
        if not isinstance(raw.get("peers_file", DEFAULT_PEERS_FILE), str):
            raise PeerStoreError("peers_file must be a string")

    config = StoreConfig(
        peers_file=raw.get("peers_file", DEFAULT_PEERS_FILE),
        log_level=raw.get("log_level", "WARNING"),
    )
    if os.environ.get(ENV_PEERS_FILE):
        config.peers_file = os.environ[ENV_PEERS_FILE]
    if args.file:
        config.peers_file = args.file
    if args.log_level:
        config.log_level = args.log_level
    if config.log_level not in LOG_LEVELS:
        raise PeerStoreError(f"invalid log_level: {config.log_level!r}")
    return config


def _open_book(controller: PeersFileController, missing_ok: bool = False) -> PeerBook:
    if missing_ok and not controller.path.exists():
        logger.info("Peers file %s does not exist, starting empty", controller.path)
        return PeerBook(on_change=controller.mark_dirty)
    return PeerBook(controller.load(), on_change=controller.mark_dirty)


def cmd_list(controller: PeersFileController) -> int:
    for ip in controller.load():
        print(ip)
    return 0


def cmd_check(controller: PeersFileController) -> int:
    result = controller.read()
    print(f"  File:       {controller.path}")
    print(f"  Valid:      {len(result.peers)}")
    print(f"  Rejected:   {len(result.rejected)}")
    print(f"  Duplicates: {len(result.duplicates)}")
    for entry in result.rejected:
        print(f"    invalid: {entry!r}")
    return 1 if result.rejected else 0


def cmd_add(controller: PeersFileController, addresses: list[str]) -> int:
    book = _open_book(controller, missing_ok=True)
    failed = 0
    for address in addresses:
        try:
            book.add_address(address)
        except IpAddressFormatError as e:
            print(f"  Skipping: {e}", file=sys.stderr)
            failed += 1
    if not controller.path.exists():
        # A new file is written even when every address was rejected.
        controller.mark_dirty()
    controller.save(book.as_dict())
    return 1 if failed else 0


def cmd_remove(controller: PeersFileController, addresses: list[str]) -> int:
    book = _open_book(controller)
    failed = 0
    for address in addresses:
        try:
            if book.remove(address) is None:
                print(f"  Not found: {address}", file=sys.stderr)
        except IpAddressFormatError as e:
            print(f"  Skipping: {e}", file=sys.stderr)
            failed += 1
    controller.save(book.as_dict())
    return 1 if failed else 0


def cmd_compact(controller: PeersFileController) -> int:
    book = _open_book(controller)
    controller.mark_dirty()
    controller.save(book.as_dict())
    print(f"  Rewrote {controller.path} with {len(book)} peers")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        config = load_config(args)
    except PeerStoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    controller = PeersFileController(config.peers_file)
    try:
        if args.command == "list":
            return cmd_list(controller)
        if args.command == "check":
            return cmd_check(controller)
        if args.command == "add":
            return cmd_add(controller, args.addresses)
        if args.command == "remove":
            return cmd_remove(controller, args.addresses)
        return cmd_compact(controller)
    except PeerStoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
