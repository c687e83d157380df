"""Organisms (biological sources) referenced by protein records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

# Reserved pseudo-taxon ids for non-organism sources. Each id is its own placeholder,
# even where two ids share a label.
SPECIAL_TAXA: Final[dict[str, str]] = {
    "0": "in vivo",
    "-1": "in vitro",
    "-2": "chemical synthesis",
    "-3": "unknown",
    "-4": "in vivo",
    "-5": "in silico",
}


def is_special_taxon(taxon_id: str) -> bool:
    return taxon_id.strip() in SPECIAL_TAXA


@dataclass(eq=False, kw_only=True)
class Organism:
    taxon_id: str
    short_label: str
    full_name: str | None = None
    aliases: list[str] = field(default_factory=list)

    @property
    def is_placeholder(self) -> bool:
        return is_special_taxon(self.taxon_id)
