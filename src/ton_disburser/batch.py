from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Sequence

from .address import Address, AddressError, parse_address
from .amount import AmountError, parse_ton_amount
from .project_constants import BATCH_SEND_MODE

log = logging.getLogger("batch")


@dataclass(frozen=True)
class TransferInstruction:
    destination: Address
    amount: int  # nanotons
    bounce: bool
    mode: int
    comment: str


def build_batch(receivers: Mapping[str, str], comment: str) -> List[TransferInstruction]:
    """
    One instruction per valid (address, amount) entry, in receiver order.

    Entries with an unparsable address or amount are dropped; the rest of the
    batch is still built. Every instruction carries the same comment and send
    mode, and bounces according to the destination's own address flag.
    """
    out: List[TransferInstruction] = []
    for addr_str, amount_str in receivers.items():
        try:
            dest = parse_address(addr_str)
        except AddressError as e:
            log.error("Error parsing address %s: %s", addr_str, e)
            continue

        try:
            amount = parse_ton_amount(amount_str)
        except AmountError as e:
            log.error("Error parsing amount %s: %s", amount_str, e)
            continue

        log.debug("%s -> %d nano", dest.to_raw(), amount)
        out.append(
            TransferInstruction(
                destination=dest,
                amount=amount,
                bounce=dest.bounceable,
                mode=BATCH_SEND_MODE,
                comment=comment,
            )
        )
    return out


def batch_total(instructions: Sequence[TransferInstruction]) -> int:
    return sum(i.amount for i in instructions)
