from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from .address import parse_address
from .amount import format_ton
from .batch import TransferInstruction, batch_total, build_batch
from .config import ConfigStore, WalletConfig
from .gateway import GatewayClient
from .project_constants import MIN_BALANCE_NANO, SEND_MODE_PAY_FEES_SEPARATELY
from .receivers import parse_receivers

log = logging.getLogger("wallet")


def _load_wallet(store: ConfigStore, config_path: str | Path) -> WalletConfig:
    return WalletConfig.from_mapping(store.load(config_path), require_folder=False)


def create_wallet(client: GatewayClient, config_path: str | Path, store: ConfigStore | None = None) -> Dict[str, str]:
    """Creates a new wallet and stores its seed and address in the config file."""
    store = store or ConfigStore()
    session = client.connect()
    try:
        wallet = session.create_wallet()
    finally:
        session.close()

    store.update(config_path, seed=wallet["seed"], wallet_address=wallet["address"])
    return wallet


def show_balance(client: GatewayClient, config_path: str | Path, store: ConfigStore | None = None) -> Dict[str, Any]:
    cfg = _load_wallet(store or ConfigStore(), config_path)
    session = client.connect()
    try:
        account = session.account(cfg.seed_words)
        balance = session.balance(account)
    finally:
        session.close()
    return {"address": account.address, "balance": balance}


def activate_wallet(client: GatewayClient, config_path: str | Path, store: ConfigStore | None = None) -> Dict[str, Any]:
    """
    Deploys the wallet contract by sending 0 TON to itself.

    Fees are paid from the balance (mode 1), so the wallet needs some funds.
    """
    cfg = _load_wallet(store or ConfigStore(), config_path)
    session = client.connect()
    try:
        account = session.account(cfg.seed_words)
        session.balance(account)

        self_addr = parse_address(account.address)
        log.info("sending transaction and waiting for confirmation...")
        tx = session.send_and_wait(
            account,
            TransferInstruction(
                destination=self_addr,
                amount=0,
                bounce=True,
                mode=SEND_MODE_PAY_FEES_SEPARATELY,
                comment="",
            ),
        )
        balance_left = session.balance(account)
    finally:
        session.close()

    return {"address": account.address, "hash": tx.hash_b64, "balance": balance_left}


def send_file(
    client: GatewayClient,
    config_path: str | Path,
    receivers_path: str | Path,
    min_balance: int = MIN_BALANCE_NANO,
    store: ConfigStore | None = None,
) -> Dict[str, Any]:
    """
    One-shot payout of a single receiver file. The file is left in place.

    Returns {"sent": False, "balance": ...} when the balance is below
    `min_balance`; submission errors propagate.
    """
    cfg = _load_wallet(store or ConfigStore(), config_path)
    session = client.connect()
    try:
        account = session.account(cfg.seed_words)
        balance = session.balance(account)
        receivers = parse_receivers(receivers_path)

        if balance < min_balance:
            return {"sent": False, "balance": balance}

        instructions = build_batch(receivers, cfg.comment)
        if not instructions:
            raise SystemExit(f"No valid transfers in {receivers_path}.")

        log.info(
            "Sending %d transfers (%s TON) and waiting for confirmation...",
            len(instructions),
            format_ton(batch_total(instructions)),
        )
        tx = session.submit_batch(account, instructions)
    finally:
        session.close()

    return {"sent": True, "balance": balance, "hash": tx.hash_b64, "count": len(instructions)}
