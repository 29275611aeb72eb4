"""Host version parsing and comparison."""

from __future__ import annotations

import operator
from typing import Tuple

_OPERATORS = {
    "<": operator.lt,
    "<=": operator.le,
    "=": operator.eq,
    ">=": operator.ge,
    ">": operator.gt,
}


def parse_version(version: str) -> Tuple[int, ...]:
    """Parse a dotted host version (e.g. "2.3000.1014111620") into ints."""

    parts = version.strip().split(".")
    try:
        return tuple(int(part) for part in parts)
    except ValueError as exc:
        raise ValueError(f"Invalid host version: {version!r}") from exc


def compare_versions(left: str, op: str, right: str) -> bool:
    """Return the result of ``left <op> right`` for dotted versions.

    Shorter versions are padded with zeros so "2.3000" equals "2.3000.0".
    """

    if op not in _OPERATORS:
        raise ValueError(f"Unsupported comparison operator: {op}")

    left_parts = parse_version(left)
    right_parts = parse_version(right)
    width = max(len(left_parts), len(right_parts))
    left_parts += (0,) * (width - len(left_parts))
    right_parts += (0,) * (width - len(right_parts))
    return _OPERATORS[op](left_parts, right_parts)
