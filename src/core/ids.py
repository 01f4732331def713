"""Identifier and address normalization shared by the chain and routing layers."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from eth_utils.address import to_normalized_address

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_DECIMAL_RE = re.compile(r"^[+-]?\d+$")
_HEX_RE = re.compile(r"^[+-]?0[xX][0-9a-fA-F]+$")
# digit limit for textual ids, matching the interpreter default for int(str)
_MAX_DIGITS = 4300


def normalize_id(raw: Any) -> Optional[int]:
    """
    Convert a pool/VTP identifier into a plain int.

    Accepts ints, decimal or 0x-hex strings, integral floats, big-number
    wrappers and anything whose str() is numeric. Returns None instead of
    raising when the value is missing or not an integer.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        return _parse_int_string(raw)
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    if isinstance(raw, Decimal):
        return _from_decimal(raw)

    # BigNumber-style wrappers
    to_hex = getattr(raw, "to_hex_string", None) or getattr(raw, "toHexString", None)
    if callable(to_hex):
        try:
            return _parse_int_string(str(to_hex()))
        except Exception:
            return None
    if hasattr(raw, "__index__"):
        try:
            return int(raw.__index__())
        except Exception:
            return None

    try:
        text = str(raw)
    except Exception:
        return None
    return _parse_int_string(text)


def _parse_int_string(value: str) -> Optional[int]:
    text = value.strip()
    if len(text) > _MAX_DIGITS + len("-0x"):
        return None
    try:
        if _DECIMAL_RE.match(text):
            return int(text)
        if _HEX_RE.match(text):
            return int(text, 16)
        return _from_decimal(Decimal(text))
    except (InvalidOperation, ValueError):
        return None


def _from_decimal(value: Decimal) -> Optional[int]:
    if not value.is_finite():
        return None
    if value.adjusted() >= _MAX_DIGITS:
        return None
    if value != value.to_integral_value():
        return None
    return int(value)


def is_address(value: Any) -> bool:
    """True iff value is a 0x-prefixed 40 hex character string."""
    return isinstance(value, str) and _ADDRESS_RE.match(value) is not None


def normalize_address(value: Any) -> Optional[str]:
    """Canonical lowercase address, or None when value is not an address."""
    if not is_address(value):
        return None
    return to_normalized_address(value)


def truncate_address(value: Any) -> str:
    """Short display form used when no symbol is known: 0x1234...abcd."""
    if not isinstance(value, str):
        return ""
    if len(value) <= 10:
        return value
    return f"{value[:6]}...{value[-4:]}"
