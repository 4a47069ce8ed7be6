"""Kubernetes resource quantity parsing.

Quantities (``"250m"``, ``"1.5Gi"``, ``"120000n"``, ``"1e3"``) are parsed to
exact ``Decimal`` values in base units: cores for cpu, bytes for memory.
Exact arithmetic keeps utilization sums independent of merge order.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

_BINARY_SUFFIXES: dict[str, int] = {
    "Ki": 1024,
    "Mi": 1024**2,
    "Gi": 1024**3,
    "Ti": 1024**4,
    "Pi": 1024**5,
    "Ei": 1024**6,
}

_DECIMAL_SUFFIXES: dict[str, Decimal] = {
    "n": Decimal("1e-9"),
    "u": Decimal("1e-6"),
    "m": Decimal("1e-3"),
    "": Decimal(1),
    "k": Decimal("1e3"),
    "M": Decimal("1e6"),
    "G": Decimal("1e9"),
    "T": Decimal("1e12"),
    "P": Decimal("1e15"),
    "E": Decimal("1e18"),
}

_QUANTITY_RE = re.compile(
    r"^(?P<number>[+-]?(?:\d+(?:\.\d*)?|\.\d+))"
    r"(?:(?P<binary>Ki|Mi|Gi|Ti|Pi|Ei)|(?P<exponent>[eE][+-]?\d+)|(?P<decimal>[numkMGTPE]?))$"
)


def parse_quantity(value: str | int | float) -> Decimal:
    """Parse a Kubernetes quantity into a Decimal in base units.

    Raises:
        ValueError: if *value* is not a valid quantity.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid quantity: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))

    text = str(value).strip()
    match = _QUANTITY_RE.match(text)
    if match is None:
        raise ValueError(f"Invalid quantity: {value!r}")

    try:
        number = Decimal(match.group("number"))
    except InvalidOperation:
        raise ValueError(f"Invalid quantity: {value!r}") from None

    if match.group("binary"):
        return number * _BINARY_SUFFIXES[match.group("binary")]
    if match.group("exponent"):
        return number.scaleb(int(match.group("exponent")[1:]))
    return number * _DECIMAL_SUFFIXES[match.group("decimal") or ""]


def parse_resource_map(resources: dict[str, object] | None) -> dict[str, Decimal]:
    """Parse a ``{"cpu": "500m", "memory": "1Gi"}`` mapping.

    Raises:
        ValueError: if any quantity is invalid (the message names the resource).
    """
    parsed: dict[str, Decimal] = {}
    for name, raw in (resources or {}).items():
        try:
            parsed[name] = parse_quantity(raw)  # type: ignore[arg-type]
        except ValueError as exc:
            raise ValueError(f"{name}: {exc}") from exc
    return parsed
