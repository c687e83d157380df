"""Tab-separated reports of one update process, one file per event kind."""

from __future__ import annotations

import csv
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Final

from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from protrecon.domain.model import (
    CreatedEvent,
    DeadEvent,
    DeletedEvent,
    ErrorEvent,
    MergedEvent,
    RangeChangedEvent,
    UpdatedEvent,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from protrecon.domain.model import UpdateEvent, UpdateProcess

log = getLogger(__name__)

CREATED_COLUMNS: Final = ("record_id", "accession", "cross_references", "aliases", "occurred_at")
UPDATED_COLUMNS: Final = (
    "record_id",
    "accession",
    "changed_fields",
    "conservation",
    "occurred_at",
)
DELETED_COLUMNS: Final = ("record_id", "accession", "reason", "occurred_at")
MERGED_COLUMNS: Final = (
    "survivor_id",
    "merged_id",
    "accession",
    "moved_participations",
    "moved_ranges",
    "copied_cross_references",
    "discarded_cross_references",
    "copied_aliases",
    "copied_annotations",
    "secondary_references",
    "occurred_at",
)
DEAD_COLUMNS: Final = (
    "record_id",
    "accession",
    "reason",
    "demoted_references",
    "removed_cross_references",
    "removed_annotations",
    "occurred_at",
)
RANGE_COLUMNS: Final = (
    "record_id",
    "accession",
    "feature_id",
    "component_id",
    "interaction_id",
    "status",
    "old_range",
    "new_range",
    "old_snapshot",
    "new_snapshot",
    "reason",
    "occurred_at",
)
ERROR_COLUMNS: Final = ("error", "record_ids", "accession", "candidates", "details", "occurred_at")

REPORT_FILES: Final[dict[str, tuple[str, ...]]] = {
    "created.tsv": CREATED_COLUMNS,
    "updated.tsv": UPDATED_COLUMNS,
    "deleted.tsv": DELETED_COLUMNS,
    "merged.tsv": MERGED_COLUMNS,
    "dead.tsv": DEAD_COLUMNS,
    "range_changed.tsv": RANGE_COLUMNS,
    "errors.tsv": ERROR_COLUMNS,
}
FASTA_FILE: Final[str] = "sequence_changed.fasta"


def _join(values: Iterable[object]) -> str:
    return "|".join(str(value) for value in values)


def _range(start: int | None, end: int | None) -> str:
    if start is None and end is None:
        return ""
    return f"{start}-{end}"


class TsvReportWriter:
    """Write the events of a process below ``directory``."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def write(self, process: UpdateProcess) -> list[Path]:
        self.directory.mkdir(parents=True, exist_ok=True)
        rows: dict[str, list[dict[str, str]]] = {name: [] for name in REPORT_FILES}
        changed_sequences: list[SeqRecord] = []

        for event in process.events:
            name, row = self._row(event)
            rows[name].append(row)
            if isinstance(event, UpdatedEvent) and event.new_sequence is not None:
                changed_sequences.append(
                    SeqRecord(
                        Seq(event.new_sequence),
                        id=event.record_id,
                        description=(
                            f"{event.accession or ''} conservation={event.conservation:.3f}"
                            if event.conservation is not None
                            else event.accession or ""
                        ),
                    )
                )

        written: list[Path] = []
        for name, columns in REPORT_FILES.items():
            path = self.directory / name
            with path.open("w", newline="", encoding="utf-8") as handle:
                writer = csv.DictWriter(handle, fieldnames=columns, delimiter="\t")
                writer.writeheader()
                writer.writerows(rows[name])
            written.append(path)

        fasta_path = self.directory / FASTA_FILE
        with fasta_path.open("w", encoding="utf-8") as handle:
            SeqIO.write(changed_sequences, handle, "fasta")
        written.append(fasta_path)

        log.info(
            "Wrote reports for process %s (%d events) to %s",
            process.id,
            len(process.events),
            self.directory,
        )
        return written

    @staticmethod
    def _row(event: UpdateEvent) -> tuple[str, dict[str, str]]:
        occurred_at = event.occurred_at.isoformat()
        match event:
            case CreatedEvent():
                after = event.after
                return "created.tsv", {
                    "record_id": event.record_id,
                    "accession": event.accession or "",
                    "cross_references": _join(after.cross_references) if after else "",
                    "aliases": _join(after.aliases) if after else "",
                    "occurred_at": occurred_at,
                }
            case UpdatedEvent():
                return "updated.tsv", {
                    "record_id": event.record_id,
                    "accession": event.accession or "",
                    "changed_fields": _join(event.changed_fields),
                    "conservation": (
                        f"{event.conservation:.3f}" if event.conservation is not None else ""
                    ),
                    "occurred_at": occurred_at,
                }
            case DeletedEvent():
                return "deleted.tsv", {
                    "record_id": event.record_id,
                    "accession": event.accession or "",
                    "reason": event.reason,
                    "occurred_at": occurred_at,
                }
            case MergedEvent(report=report):
                return "merged.tsv", {
                    "survivor_id": event.survivor_id,
                    "merged_id": event.merged_id,
                    "accession": event.accession or "",
                    "moved_participations": _join(report.moved_participations),
                    "moved_ranges": _join(report.moved_ranges),
                    "copied_cross_references": _join(report.copied_cross_references),
                    "discarded_cross_references": _join(report.discarded_cross_references),
                    "copied_aliases": _join(report.copied_aliases),
                    "copied_annotations": _join(report.copied_annotations),
                    "secondary_references": _join(report.secondary_references),
                    "occurred_at": occurred_at,
                }
            case DeadEvent():
                return "dead.tsv", {
                    "record_id": event.record_id,
                    "accession": event.accession,
                    "reason": event.reason or "",
                    "demoted_references": _join(event.demoted_references),
                    "removed_cross_references": _join(event.removed_cross_references),
                    "removed_annotations": _join(event.removed_annotations),
                    "occurred_at": occurred_at,
                }
            case RangeChangedEvent():
                return "range_changed.tsv", {
                    "record_id": event.record_id,
                    "accession": event.accession or "",
                    "feature_id": event.feature_id,
                    "component_id": event.component_id,
                    "interaction_id": event.interaction_id,
                    "status": event.status,
                    "old_range": _range(event.old_start, event.old_end),
                    "new_range": _range(event.new_start, event.new_end),
                    "old_snapshot": event.old_snapshot or "",
                    "new_snapshot": event.new_snapshot or "",
                    "reason": event.reason or "",
                    "occurred_at": occurred_at,
                }
            case ErrorEvent():
                return "errors.tsv", {
                    "error": event.error,
                    "record_ids": _join(event.record_ids),
                    "accession": event.accession or "",
                    "candidates": _join(event.candidates),
                    "details": event.details,
                    "occurred_at": occurred_at,
                }
