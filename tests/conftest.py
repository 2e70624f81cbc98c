from __future__ import annotations

from typing import List, Optional

import pytest

from ton_disburser.address import Address
from ton_disburser.ledger import Account, TxResult

TX_HASH = bytes(range(32))  # url-safe base64 starts with "AAECAwQF"


class FakeSession:
    def __init__(self, ledger: "FakeLedger") -> None:
        self.ledger = ledger

    def account(self, seed_words) -> Account:
        if self.ledger.account_error:
            raise self.ledger.account_error
        return Account(seed_words=tuple(seed_words), address="wallet")

    def balance(self, account: Account) -> int:
        self.ledger.balance_calls += 1
        if self.ledger.balance_error:
            raise self.ledger.balance_error
        return self.ledger.balance

    def submit_batch(self, account: Account, instructions) -> TxResult:
        self.ledger.submits.append(list(instructions))
        if self.ledger.submit_errors:
            raise self.ledger.submit_errors.pop(0)
        return TxResult(hash=self.ledger.tx_hash, block_seqno=1)

    def close(self) -> None:
        self.ledger.closed += 1


class FakeLedger:
    def __init__(self, balance: int = 10**9) -> None:
        self.balance = balance
        self.tx_hash = TX_HASH
        self.connect_error: Optional[Exception] = None
        self.account_error: Optional[Exception] = None
        self.balance_error: Optional[Exception] = None
        self.submit_errors: List[Exception] = []
        self.submits: List[list] = []
        self.connects = 0
        self.balance_calls = 0
        self.closed = 0

    def connect(self) -> FakeSession:
        self.connects += 1
        if self.connect_error:
            raise self.connect_error
        return FakeSession(self)


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def make_address():
    def _make(n: int, bounceable: bool = True, workchain: int = 0) -> str:
        return Address(workchain, bytes([n]) * 32, bounceable=bounceable).to_friendly()

    return _make


@pytest.fixture
def workspace(tmp_path):
    """Config file pointing at an empty receiver folder."""
    folder = tmp_path / "outbox"
    folder.mkdir()
    config = tmp_path / "config.txt"
    config.write_text(
        f"seed=word1 word2 word3\ncomment=payout\nfolder_path={folder}\n",
        encoding="utf-8",
    )
    return config, folder

