from __future__ import annotations

import base64
import binascii
import itertools
import logging
from typing import Any, Dict, List, Optional, Sequence, Type

import httpx

from .batch import TransferInstruction
from .ledger import (
    Account,
    LedgerConnectionError,
    LedgerError,
    QueryError,
    SubmitError,
    TxResult,
)

log = logging.getLogger("gateway")


class GatewayClient:
    """
    JSON-RPC client for a local TON wallet gateway.

    The gateway owns key derivation, message serialization, signing and
    waiting for confirmation; this side only describes what to send.
    """

    def __init__(
        self,
        gateway_url: str,
        api_key: str | None = None,
        timeout_s: float = 120.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.gateway_url = gateway_url
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.transport = transport

    def connect(self) -> "GatewaySession":
        headers = {"X-API-Key": self.api_key} if self.api_key else {}
        client = httpx.Client(timeout=self.timeout_s, headers=headers, transport=self.transport)
        session = GatewaySession(self.gateway_url, client)
        try:
            info = session.masterchain_info()
        except LedgerError as e:
            session.close()
            raise LedgerConnectionError(f"Gateway not ready: {e}") from e
        log.debug("Connected to %s, masterchain seqno %s", self.gateway_url, info.get("seqno"))
        return session


class GatewaySession:
    def __init__(self, gateway_url: str, client: httpx.Client) -> None:
        self.gateway_url = gateway_url
        self.client = client
        self._ids = itertools.count(1)

    def close(self) -> None:
        self.client.close()

    def masterchain_info(self) -> Dict[str, Any]:
        """Returns the last masterchain block the gateway has seen."""
        return self._call("getMasterchainInfo", {}, LedgerConnectionError)

    def create_wallet(self) -> Dict[str, str]:
        """Asks the gateway for a fresh seed. Returns {"seed": ..., "address": ...}."""
        result = self._call("createWallet", {}, LedgerConnectionError)
        if not isinstance(result.get("seed"), str) or not isinstance(result.get("address"), str):
            raise LedgerConnectionError("createWallet returned no seed/address.")
        return {"seed": result["seed"], "address": result["address"]}

    def account(self, seed_words: Sequence[str]) -> Account:
        result = self._call("getWalletAddress", {"seed": list(seed_words)}, LedgerConnectionError)
        address = result.get("address")
        if not isinstance(address, str) or not address:
            raise LedgerConnectionError("getWalletAddress returned no address.")
        return Account(seed_words=tuple(seed_words), address=address)

    def balance(self, account: Account) -> int:
        result = self._call("getBalance", {"address": account.address}, QueryError)
        try:
            return int(result["balance"])
        except (KeyError, TypeError, ValueError):
            raise QueryError(f"getBalance returned no usable balance: {result!r}")

    def submit_batch(self, account: Account, instructions: List[TransferInstruction]) -> TxResult:
        """Sends one multi-destination transfer and blocks until it is confirmed."""
        params = {
            "seed": list(account.seed_words),
            "messages": [_message(i) for i in instructions],
        }
        return _tx_result(self._call("sendBatch", params, SubmitError))

    def send_and_wait(self, account: Account, instruction: TransferInstruction) -> TxResult:
        params = {"seed": list(account.seed_words), "message": _message(instruction)}
        return _tx_result(self._call("sendAndWait", params, SubmitError))

    def _call(
        self,
        method: str,
        params: Dict[str, Any],
        error_cls: Type[LedgerError],
    ) -> Dict[str, Any]:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            resp = self.client.post(self.gateway_url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise error_cls(f"{method}: {e}") from e
        except ValueError as e:
            raise error_cls(f"{method}: response is not JSON: {e}") from e

        if not isinstance(data, dict):
            raise error_cls(f"{method}: gateway reply is not a JSON object.")

        if "error" in data:
            err = data["error"]
            if not isinstance(err, dict):
                err = {"message": err}
            message = f"{method}: gateway error {err.get('code')}: {err.get('message')}"
            data_field = err.get("data")
            if not isinstance(data_field, dict):
                data_field = {}
            if error_cls is SubmitError:
                raise SubmitError(message, permanent=bool(data_field.get("permanent")))
            raise error_cls(message)

        result = data.get("result")
        if not isinstance(result, dict):
            raise error_cls(f"{method}: gateway returned no result object.")
        return result


def _message(i: TransferInstruction) -> Dict[str, Any]:
    return {
        "destination": i.destination.to_friendly(),
        "amount": str(i.amount),
        "bounce": i.bounce,
        "mode": i.mode,
        "comment": i.comment,
    }


def _tx_result(result: Dict[str, Any]) -> TxResult:
    raw_hash = result.get("hash")
    if not isinstance(raw_hash, str):
        raise SubmitError("Gateway confirmed transaction without hash.")
    try:
        tx_hash = base64.b64decode(raw_hash, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SubmitError(f"Transaction hash is not base64: {e}")

    seqno: Optional[int] = None
    block = result.get("block")
    if isinstance(block, dict) and block.get("seqno") is not None:
        # the hash is what matters once the gateway confirmed the send
        try:
            seqno = int(block["seqno"])
        except (TypeError, ValueError):
            log.warning("Ignoring unusable block seqno %r", block["seqno"])
    return TxResult(hash=tx_hash, block_seqno=seqno)
