import base64
import json

import httpx
import pytest

from ton_disburser.address import Address
from ton_disburser.config import ConfigStore
from ton_disburser.gateway import GatewayClient
from ton_disburser.project_constants import MIN_BALANCE_NANO
from ton_disburser.wallet_ops import activate_wallet, create_wallet, send_file, show_balance

WALLET = Address(0, b"\x07" * 32).to_friendly()
RECEIVER = Address(0, b"\x01" * 32).to_friendly()
TX_HASH_B64 = base64.b64encode(bytes(range(32))).decode()


class FakeGateway:
    def __init__(self, balance=5 * 10**9):
        self.balance = balance
        self.calls = []

    def handler(self, request):
        body = json.loads(request.content)
        method, params = body["method"], body["params"]
        self.calls.append((method, params))
        result = {
            "getMasterchainInfo": {"seqno": 1},
            "createWallet": {"seed": "alpha beta gamma", "address": WALLET},
            "getWalletAddress": {"address": WALLET},
            "getBalance": {"balance": str(self.balance)},
            "sendBatch": {"hash": TX_HASH_B64, "block": {"seqno": 9}},
            "sendAndWait": {"hash": TX_HASH_B64, "block": {"seqno": 9}},
        }[method]
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    def client(self):
        return GatewayClient("http://gw/rpc", transport=httpx.MockTransport(self.handler))

    def methods(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def gateway():
    return FakeGateway()


def test_create_wallet_merges_into_config(tmp_path, gateway):
    config = tmp_path / "config.txt"
    config.write_text("comment=hello\nfolder_path=/out\n", encoding="utf-8")

    wallet = create_wallet(gateway.client(), config)

    assert wallet["address"] == WALLET
    assert ConfigStore().load(config) == {
        "comment": "hello",
        "folder_path": "/out",
        "seed": "alpha beta gamma",
        "wallet_address": WALLET,
    }


def test_create_wallet_without_existing_config(tmp_path, gateway):
    config = tmp_path / "config.txt"
    create_wallet(gateway.client(), config)
    assert ConfigStore().load(config)["seed"] == "alpha beta gamma"


def test_show_balance(tmp_path, gateway):
    config = tmp_path / "config.txt"
    config.write_text("seed=a b\n", encoding="utf-8")

    assert show_balance(gateway.client(), config) == {"address": WALLET, "balance": 5 * 10**9}


def test_activate_sends_zero_to_self(tmp_path, gateway):
    config = tmp_path / "config.txt"
    config.write_text("seed=a b\n", encoding="utf-8")

    result = activate_wallet(gateway.client(), config)

    assert result["hash"] == TX_HASH_B64
    sent = dict(gateway.calls)["sendAndWait"]["message"]
    assert sent == {"destination": WALLET, "amount": "0", "bounce": True, "mode": 1, "comment": ""}


def test_send_file_does_not_rename(tmp_path, gateway):
    config = tmp_path / "config.txt"
    config.write_text("seed=a b\ncomment=c\n", encoding="utf-8")
    receivers = tmp_path / "receivers.txt"
    receivers.write_text(f"{RECEIVER} 1\n", encoding="utf-8")

    result = send_file(gateway.client(), config, receivers)

    assert result == {"sent": True, "balance": 5 * 10**9, "hash": TX_HASH_B64, "count": 1}
    assert receivers.exists()
    assert gateway.methods()[-1] == "sendBatch"


def test_send_file_low_balance(tmp_path):
    gateway = FakeGateway(balance=MIN_BALANCE_NANO - 1)
    config = tmp_path / "config.txt"
    config.write_text("seed=a b\n", encoding="utf-8")
    receivers = tmp_path / "receivers.txt"
    receivers.write_text("", encoding="utf-8")

    result = send_file(gateway.client(), config, receivers)

    assert result["sent"] is False
    assert "sendBatch" not in gateway.methods()
