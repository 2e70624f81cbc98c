from __future__ import annotations

import argparse
import logging

from .amount import format_ton
from .config import Settings
from .disburse import DisbursementLoop
from .gateway import GatewayClient
from .project_constants import DEFAULT_RECEIVERS_FILE, MIN_BALANCE_NANO, POLL_INTERVAL_S
from .wallet_ops import activate_wallet, create_wallet, send_file, show_balance


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s: %(message)s")
    # One line per gateway request is too much for an unattended loop
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _client(args: argparse.Namespace, settings: Settings) -> GatewayClient:
    return GatewayClient(settings.gateway_url, api_key=settings.api_key, timeout_s=args.timeout)


def _settings(args: argparse.Namespace) -> Settings:
    return Settings.from_env(
        gateway_url_override=args.gateway_url,
        config_path_override=args.config,
    )


def cmd_run(args: argparse.Namespace) -> int:
    settings = _settings(args)
    log = logging.getLogger("disburse")

    loop = DisbursementLoop(
        _client(args, settings),
        settings.config_path,
        interval_s=POLL_INTERVAL_S,
        min_balance=MIN_BALANCE_NANO,
        journal=not args.no_journal,
    )
    log.info("Gateway       : %s", settings.gateway_url)
    log.info("Config file   : %s", settings.config_path)
    log.info("Poll interval : %ss", POLL_INTERVAL_S)

    if args.once:
        report = loop.run_cycle()
        log.info("Cycle report  : %s", report)
        return 0

    try:
        loop.run_forever()
    except KeyboardInterrupt:
        log.info("Stopped.")
    return 0


def cmd_create_wallet(args: argparse.Namespace) -> int:
    settings = _settings(args)
    wallet = create_wallet(_client(args, settings), settings.config_path)

    print("New wallet created!")
    print(f"Seed          : {wallet['seed']}")
    print(f"Wallet Address: {wallet['address']}")
    print(f"Saved to      : {settings.config_path}")
    return 0


def cmd_balance(args: argparse.Namespace) -> int:
    settings = _settings(args)
    result = show_balance(_client(args, settings), settings.config_path)

    print(f"Balance       : {format_ton(result['balance'])} TON")
    print(f"Wallet address: {result['address']}")
    return 0


def cmd_activate(args: argparse.Namespace) -> int:
    settings = _settings(args)
    result = activate_wallet(_client(args, settings), settings.config_path)

    print(f"Transaction sent, hash: {result['hash']}")
    print(f"Balance left  : {format_ton(result['balance'])} TON")
    return 0


def cmd_send(args: argparse.Namespace) -> int:
    settings = _settings(args)
    result = send_file(_client(args, settings), settings.config_path, args.receivers)

    if not result["sent"]:
        print(f"Not enough balance: {format_ton(result['balance'])} TON ({result['balance']} nano)")
        return 1

    print(f"Transaction sent, hash: {result['hash']}")
    print(f"Transfers     : {result['count']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ton-disburser",
        description="Unattended TON batch payouts from receiver files.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--gateway-url", default=None, help="Override wallet gateway URL (else use env).")
    p.add_argument("--config", default=None, help="Override config file path (else use env).")
    p.add_argument("--timeout", type=float, default=120.0, help="Gateway timeout seconds.")

    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("run", help="Poll the receiver folder and pay out files forever.")
    r.add_argument("--once", action="store_true", help="Run a single cycle and exit.")
    r.add_argument(
        "--no-journal",
        action="store_true",
        help="Do not keep .sent markers (a failed rename means the batch is sent again).",
    )
    r.set_defaults(func=cmd_run)

    c = sub.add_parser("create-wallet", help="Create a wallet and save its seed to the config.")
    c.set_defaults(func=cmd_create_wallet)

    b = sub.add_parser("balance", help="Show wallet balance and address.")
    b.set_defaults(func=cmd_balance)

    a = sub.add_parser("activate", help="Deploy the wallet by sending 0 TON to itself.")
    a.set_defaults(func=cmd_activate)

    s = sub.add_parser("send", help="Pay out one receiver file once (file is not renamed).")
    s.add_argument("--receivers", default=DEFAULT_RECEIVERS_FILE, help="Receiver file path.")
    s.set_defaults(func=cmd_send)

    return p


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)
    try:
        raise SystemExit(args.func(args))
    except (OSError, RuntimeError) as e:
        if args.cmd == "run":
            raise
        raise SystemExit(f"Error: {e}")
