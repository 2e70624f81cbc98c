from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from .batch import TransferInstruction
from .project_constants import HASH_PREFIX_LEN


class LedgerError(RuntimeError):
    pass


class LedgerConnectionError(LedgerError):
    """Ledger network unreachable, or the wallet could not be derived."""


class QueryError(LedgerError):
    pass


class SubmitError(LedgerError):
    def __init__(self, message: str, permanent: bool = False) -> None:
        super().__init__(message)
        # permanent: resubmitting the same batch can never succeed
        self.permanent = permanent


@dataclass(frozen=True)
class Account:
    seed_words: tuple
    address: str


@dataclass(frozen=True)
class TxResult:
    hash: bytes
    block_seqno: Optional[int] = None

    @property
    def hash_b64(self) -> str:
        return base64.b64encode(self.hash).decode("ascii")

    def hash_prefix(self, n: int = HASH_PREFIX_LEN) -> str:
        # URL-safe alphabet: the prefix ends up in a file name
        return base64.urlsafe_b64encode(self.hash).decode("ascii")[:n]


class LedgerSession(Protocol):
    def account(self, seed_words: Sequence[str]) -> Account: ...

    def balance(self, account: Account) -> int: ...

    def submit_batch(
        self, account: Account, instructions: List[TransferInstruction]
    ) -> TxResult: ...

    def close(self) -> None: ...


class LedgerClient(Protocol):
    def connect(self) -> LedgerSession: ...
