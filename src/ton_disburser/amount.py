from __future__ import annotations

import re

from .project_constants import TON_DECIMALS

_AMOUNT_RE = re.compile(r"^([0-9]*)(?:\.([0-9]*))?$")


class AmountError(ValueError):
    pass


def parse_ton_amount(text: str) -> int:
    """
    Converts a decimal TON string ("1.5", "0.000000001", "10") to nanotons.

    No sign, no exponent, at most TON_DECIMALS fractional digits.
    """
    m = _AMOUNT_RE.match(text.strip())
    if not m:
        raise AmountError(f"Invalid amount: {text!r}")

    whole, frac = m.group(1), m.group(2) or ""
    if not whole and not frac:
        raise AmountError(f"Invalid amount: {text!r}")
    if len(frac) > TON_DECIMALS:
        raise AmountError(f"Too many decimal places in {text!r} (max {TON_DECIMALS})")

    return int(whole or "0") * 10**TON_DECIMALS + int(frac.ljust(TON_DECIMALS, "0"))


def format_ton(nano: int) -> str:
    """Nanotons -> decimal TON string with trailing zeros trimmed."""
    sign = "-" if nano < 0 else ""
    whole, frac = divmod(abs(nano), 10**TON_DECIMALS)
    if not frac:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{str(frac).rjust(TON_DECIMALS, '0').rstrip('0')}"
