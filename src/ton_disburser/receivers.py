from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

from .project_constants import PENDING_GLOB

log = logging.getLogger("receivers")


def list_pending(folder: str | Path) -> List[Path]:
    """Pending receiver files in `folder` (no recursion), sorted by name."""
    folder = Path(folder)
    if not folder.is_dir():
        raise NotADirectoryError(f"Receiver folder not found: {folder}")
    return sorted(p for p in folder.glob(PENDING_GLOB) if p.is_file())


def parse_receivers(path: str | Path) -> Dict[str, str]:
    """
    Reads `<address> <amount>` lines into an ordered mapping.

    Lines that do not split into exactly two whitespace-separated tokens are
    skipped. A destination listed twice keeps its first position and the
    amount from its last line.
    """
    receivers: Dict[str, str] = {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except UnicodeDecodeError as e:
        raise OSError(f"{path}: not valid UTF-8 text: {e}") from e

    for lineno, line in enumerate(lines, start=1):
        parts = line.split()
        if not parts:
            continue
        if len(parts) != 2:
            log.warning("%s:%d: expected '<address> <amount>', got %d tokens; skipped",
                        path, lineno, len(parts))
            continue

        addr, amount = parts
        if addr in receivers:
            log.warning("%s:%d: duplicate destination %s; using last amount %s",
                        path, lineno, addr, amount)
        receivers[addr] = amount

    return receivers
