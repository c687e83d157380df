"""Collision-free short labels for records created from registry entries."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Collection

MAX_LABEL_LENGTH: Final[int] = 20
_INVALID_CHARS = re.compile(r"[^a-z0-9_\-.]+")


def base_label(name: str) -> str:
    label = _INVALID_CHARS.sub("_", name.strip().lower()).strip("_")
    return label[:MAX_LABEL_LENGTH] or "protein"


def unique_label(name: str, existing: Collection[str]) -> str:
    """Return ``name`` normalized, suffixed with the smallest free ``-N`` (N >= 2).

    The result only depends on ``name`` and the set of labels already taken.
    """

    base = base_label(name)
    taken = {label.lower() for label in existing}
    if base not in taken:
        return base
    index = 2
    while True:
        suffix = f"-{index}"
        candidate = f"{base[: MAX_LABEL_LENGTH - len(suffix)]}{suffix}"
        if candidate not in taken:
            return candidate
        index += 1
