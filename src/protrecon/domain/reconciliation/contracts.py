"""Shared reconciliation contract components.

Each outcome family is a tagged union discriminated by its ``status`` field so
that consumers can ``match`` on the concrete classes exhaustively.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Final, Literal

from protrecon.domain.model import RangeStatus

if TYPE_CHECKING:
    from protrecon.domain.model import CrossReference, FeatureRange

UNDETERMINED_POSITION: Final[str] = "undetermined position"
REGION_NOT_FOUND: Final[str] = "sequence no longer contains the annotated region"
MISSING_SEQUENCE: Final[str] = "no sequence to locate the annotated region in"


class IdentityStatus(StrEnum):
    """Outcome of identity resolution for one record."""

    UNIQUE = "unique"
    AMBIGUOUS = "ambiguous"
    NO_IDENTITY = "no_identity"


@dataclass(frozen=True, slots=True, kw_only=True)
class UniqueIdentity:
    """Record claims exactly one external accession."""

    accession: str
    reference: CrossReference
    status: Literal[IdentityStatus.UNIQUE] = IdentityStatus.UNIQUE


@dataclass(frozen=True, slots=True, kw_only=True)
class AmbiguousIdentity:
    """Record claims several distinct external accessions."""

    accessions: tuple[str, ...]
    status: Literal[IdentityStatus.AMBIGUOUS] = IdentityStatus.AMBIGUOUS

    def __post_init__(self) -> None:
        if len(self.accessions) < 2:  # noqa: PLR2004
            raise ValueError("Ambiguous identity must include at least two accessions")


@dataclass(frozen=True, slots=True, kw_only=True)
class NoIdentity:
    """Record has no identity cross-reference to the registry."""

    reason: str | None = None
    status: Literal[IdentityStatus.NO_IDENTITY] = IdentityStatus.NO_IDENTITY


type IdentityResolution = UniqueIdentity | AmbiguousIdentity | NoIdentity


@dataclass(frozen=True, slots=True, kw_only=True)
class SpecialTaxon:
    """Reserved pseudo-taxon id that bypasses the taxonomy service."""

    taxon_id: str
    label: str
    status: Literal["special"] = "special"


@dataclass(frozen=True, slots=True, kw_only=True)
class RegularTaxon:
    taxon_id: str
    status: Literal["regular"] = "regular"


type TaxonClassification = SpecialTaxon | RegularTaxon


@dataclass(frozen=True, slots=True, kw_only=True)
class StableRange:
    """Range subsequence is unchanged at the same positions."""

    range: FeatureRange
    snapshot: str
    status: Literal[RangeStatus.STABLE] = RangeStatus.STABLE

    @property
    def new_start(self) -> int | None:
        return self.range.start

    @property
    def new_end(self) -> int | None:
        return self.range.end


@dataclass(frozen=True, slots=True, kw_only=True)
class ShiftedRange:
    """Same subsequence found at another offset of the new sequence."""

    range: FeatureRange
    new_start: int
    new_end: int
    snapshot: str
    status: Literal[RangeStatus.SHIFTED] = RangeStatus.SHIFTED

    def __post_init__(self) -> None:
        if (self.new_start, self.new_end) == (self.range.start, self.range.end):
            raise ValueError("Shifted range must move at least one position")

    @property
    def moved(self) -> FeatureRange:
        return self.range.moved_to(self.new_start, self.new_end, self.snapshot)


@dataclass(frozen=True, slots=True, kw_only=True)
class InvalidRange:
    """Range cannot be re-positioned on the new sequence."""

    range: FeatureRange
    reason: str
    status: Literal[RangeStatus.INVALID] = RangeStatus.INVALID

    @property
    def new_start(self) -> int | None:
        return None

    @property
    def new_end(self) -> int | None:
        return None


type RangeClassification = StableRange | ShiftedRange | InvalidRange


@dataclass(frozen=True, slots=True, kw_only=True)
class RangeReport:
    """Classification of every range of a record against a new sequence."""

    classifications: tuple[RangeClassification, ...] = ()

    @property
    def has_conflicts(self) -> bool:
        return any(isinstance(item, InvalidRange) for item in self.classifications)

    @property
    def invalid(self) -> tuple[InvalidRange, ...]:
        return tuple(item for item in self.classifications if isinstance(item, InvalidRange))

    @property
    def shifted(self) -> tuple[ShiftedRange, ...]:
        return tuple(item for item in self.classifications if isinstance(item, ShiftedRange))
