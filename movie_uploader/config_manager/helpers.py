"""Helpers for parsing byte-sized configuration values."""

import re

_BYTE_QUANTITY = re.compile(r"(?P<number>[0-9]*\.?[0-9]+)\s*(?P<unit>[a-z]*)")

# Binary multiples only: chunk sizes are sent to the server as exact bytes.
_UNIT_MULTIPLIERS = {
    "": 1,
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "kib": 1024,
    "m": 1024**2,
    "mb": 1024**2,
    "mib": 1024**2,
    "g": 1024**3,
    "gb": 1024**3,
    "gib": 1024**3,
}


def parse_bytes(value: int | str) -> int:
    """Parse a chunk size such as ``5242880``, ``"512 KiB"`` or ``"5M"``.

    Units are case-insensitive binary multiples (``k``/``kb``/``kib`` and so
    on for ``m`` and ``g``); a bare number or ``b`` means bytes.

    Raises:
        ValueError: If the value is negative, fractional, has an unknown unit
            or is not a byte quantity at all.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid byte value: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Byte value must not be negative, got {value}")
        return value

    text = str(value).strip().lower()
    match = _BYTE_QUANTITY.fullmatch(text)
    if match is None:
        if text.startswith("-"):
            raise ValueError(f"Byte value must not be negative, got {value!r}")
        raise ValueError(
            f"Invalid byte value {value!r}; expected a whole number with an "
            "optional unit such as '512k' or '5MB'"
        )

    number, unit = match.group("number"), match.group("unit")
    if unit not in _UNIT_MULTIPLIERS:
        raise ValueError(
            f"Unknown byte unit {unit!r} in {value!r}; use b, k, m or g "
            "(optionally followed by b or ib)"
        )
    if "." in number:
        raise ValueError(
            f"Fractional byte value {value!r} is not supported; use a whole "
            "number of a smaller unit, e.g. '1536k' instead of '1.5m'"
        )

    return int(number) * _UNIT_MULTIPLIERS[unit]
