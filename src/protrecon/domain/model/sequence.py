"""Sequence helpers: checksums, change detection and conservation."""

from __future__ import annotations

from difflib import SequenceMatcher

from Bio.SeqUtils.CheckSum import crc64

_CRC_PREFIX = "CRC-"


def sequence_checksum(sequence: str) -> str:
    """Return the CRC64 checksum of ``sequence`` in the registry's hex notation."""

    checksum = crc64(sequence.upper())
    return checksum.removeprefix(_CRC_PREFIX)


def normalize_sequence(sequence: str | None) -> str:
    if not sequence:
        return ""
    return "".join(sequence.split()).upper()


def is_sequence_changed(old: str | None, new: str | None) -> bool:
    return normalize_sequence(old) != normalize_sequence(new)


def sequence_conservation(old: str | None, new: str | None) -> float:
    """Fraction of residues of ``old`` kept (in order) in ``new``."""

    old_normalized = normalize_sequence(old)
    new_normalized = normalize_sequence(new)
    if not old_normalized:
        return 0.0
    matcher = SequenceMatcher(a=old_normalized, b=new_normalized, autojunk=False)
    equal = sum(block.size for block in matcher.get_matching_blocks())
    return equal / len(old_normalized)


def subsequence(sequence: str, start: int, end: int) -> str | None:
    """Return residues ``start..end`` (1-based, inclusive) or ``None`` if out of bounds."""

    if start < 1 or end < start or end > len(sequence):
        return None
    return sequence[start - 1 : end]
