from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .amount import format_ton
from .batch import batch_total, build_batch
from .config import ConfigError, ConfigStore, WalletConfig
from .ledger import (
    Account,
    LedgerClient,
    LedgerError,
    LedgerSession,
    SubmitError,
    TxResult,
)
from .project_constants import (
    FAILED_SUFFIX,
    HASH_PREFIX_LEN,
    JOURNAL_SUFFIX,
    MIN_BALANCE_NANO,
    POLL_INTERVAL_S,
    PROCESSED_SUFFIX,
)
from .receivers import list_pending, parse_receivers

log = logging.getLogger("disburse")


@dataclass
class CycleReport:
    aborted: Optional[str] = None  # stage that ended the cycle early
    files: int = 0
    gated: bool = False
    submitted: int = 0
    marked: int = 0
    failed: int = 0
    errors: int = 0


def processed_path(path: Path, tx: TxResult) -> Path:
    """`batch1.txt` -> `batch1.txt_<hash prefix>.log`, same directory."""
    return path.with_name(f"{path.name}_{tx.hash_prefix(HASH_PREFIX_LEN)}{PROCESSED_SUFFIX}")


def failed_path(path: Path) -> Path:
    return path.with_name(path.name + FAILED_SUFFIX)


def journal_path(path: Path) -> Path:
    return path.with_name(path.name + JOURNAL_SUFFIX)


def _is_empty(path: Path) -> bool:
    try:
        return path.stat().st_size == 0
    except OSError:
        return False


def mark_processed(path: Path, tx: TxResult) -> Path:
    new_path = processed_path(path, tx)
    path.rename(new_path)
    return new_path


class SubmissionJournal:
    """
    `<name>.sent` markers for batches confirmed on-chain but not yet renamed.

    A pending file with a marker has already been paid: the next cycle only
    finishes the rename instead of sending the batch again.
    """

    def record(self, path: Path, tx: TxResult) -> bool:
        try:
            with open(journal_path(path), "w", encoding="utf-8") as f:
                f.write(tx.hash.hex() + "\n")
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            log.error("Could not journal %s (resubmission possible if rename fails): %s", path, e)
            return False
        return True

    def lookup(self, path: Path) -> Optional[TxResult]:
        marker = journal_path(path)
        if not marker.exists():
            return None
        try:
            return TxResult(hash=bytes.fromhex(marker.read_text(encoding="utf-8").strip()))
        except (OSError, ValueError) as e:
            # unreadable marker still means "already sent"
            raise RuntimeError(f"Journal {marker} is unreadable: {e}") from e

    def clear(self, path: Path) -> None:
        try:
            journal_path(path).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            log.warning("Could not remove journal for %s: %s", path, e)


class DisbursementLoop:
    """
    Polls the receiver folder forever and pays out each pending file as one
    multi-destination transfer.

    Every cycle starts from scratch: config re-read, new ledger session,
    one balance sample. Nothing but the filesystem carries state between
    cycles.
    """

    def __init__(
        self,
        client: LedgerClient,
        config_path: str | Path,
        interval_s: float = POLL_INTERVAL_S,
        min_balance: int = MIN_BALANCE_NANO,
        sleep: Callable[[float], None] = time.sleep,
        store: ConfigStore | None = None,
        journal: bool = True,
    ) -> None:
        self.client = client
        self.config_path = config_path
        self.interval_s = interval_s
        self.min_balance = min_balance
        self.sleep = sleep
        self.store = store or ConfigStore()
        self.journal = SubmissionJournal() if journal else None

    def run_forever(self, max_cycles: int | None = None) -> None:
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            try:
                report = self.run_cycle()
                log.debug("Cycle done: %s", report)
            except Exception:
                log.exception("Unexpected error in cycle")
            cycles += 1
            self.sleep(self.interval_s)

    def run_cycle(self) -> CycleReport:
        report = CycleReport()

        try:
            cfg = WalletConfig.from_mapping(self.store.load(self.config_path))
        except (OSError, ConfigError) as e:
            log.error("Error reading config: %s", e)
            report.aborted = "config"
            return report

        try:
            session = self.client.connect()
        except LedgerError as e:
            log.error("Error connecting to ledger: %s", e)
            report.aborted = "connect"
            return report

        try:
            self._run_session(session, cfg, report)
        finally:
            session.close()
        return report

    def _run_session(self, session: LedgerSession, cfg: WalletConfig, report: CycleReport) -> None:
        try:
            account = session.account(cfg.seed_words)
        except LedgerError as e:
            log.error("Error deriving wallet: %s", e)
            report.aborted = "connect"
            return

        try:
            balance = session.balance(account)
        except LedgerError as e:
            log.error("GetBalance err: %s", e)
            report.aborted = "balance"
            return

        try:
            files = list_pending(cfg.folder_path)
        except OSError as e:
            log.error("Error reading folder: %s", e)
            report.aborted = "enumerate"
            return

        if not files:
            log.info("No receiver files in %s", cfg.folder_path)
            return

        report.files = len(files)
        for path in files:
            # sampled once per cycle; not refreshed after each batch
            if balance < self.min_balance:
                log.warning("Not enough balance: %s TON (%d nano)", format_ton(balance), balance)
                report.gated = True
                break
            self._process_file(session, account, cfg, path, report)

    def _process_file(
        self,
        session: LedgerSession,
        account: Account,
        cfg: WalletConfig,
        path: Path,
        report: CycleReport,
    ) -> None:
        if self.journal is not None:
            try:
                tx = self.journal.lookup(path)
            except RuntimeError as e:
                log.error("%s; not resubmitting %s", e, path)
                report.errors += 1
                return
            if tx is not None:
                log.warning("%s was already sent (%s); finishing rename only", path, tx.hash_b64)
                self._mark_done(path, tx, report)
                return

        try:
            receivers = parse_receivers(path)
        except OSError as e:
            log.error("Error reading receivers: %s", e)
            report.errors += 1
            return

        if not receivers and _is_empty(path):
            log.info("%s is empty (still being written?); leaving it pending", path)
            return

        instructions = build_batch(receivers, cfg.comment)
        if not instructions:
            log.error("%s has no valid transfers; moving it out of the queue", path)
            self._mark_failed(path, report)
            return

        log.info(
            "%s: %d transfers, %s TON total. Sending transaction and waiting for confirmation...",
            path.name,
            len(instructions),
            format_ton(batch_total(instructions)),
        )
        try:
            tx = session.submit_batch(account, instructions)
        except SubmitError as e:
            log.error("Transfer err: %s", e)
            if e.permanent:
                self._mark_failed(path, report)
            else:
                report.errors += 1
            return
        except LedgerError as e:
            log.error("Transfer err: %s", e)
            report.errors += 1
            return

        report.submitted += 1
        log.info("Transaction sent, hash: %s", tx.hash_b64)

        if self.journal is not None:
            self.journal.record(path, tx)
        self._mark_done(path, tx, report)

    def _mark_done(self, path: Path, tx: TxResult, report: CycleReport) -> None:
        try:
            new_path = mark_processed(path, tx)
        except OSError as e:
            # file stays pending; without a journal it is sent again next cycle
            log.error("Error renaming file: %s", e)
            report.errors += 1
            return

        if self.journal is not None:
            self.journal.clear(path)
        report.marked += 1
        log.info("File renamed to: %s", new_path)

    def _mark_failed(self, path: Path, report: CycleReport) -> None:
        try:
            path.rename(failed_path(path))
        except OSError as e:
            log.error("Error moving %s to failed state: %s", path, e)
            report.errors += 1
            return
        report.failed += 1
        log.error("Moved to %s", failed_path(path))
