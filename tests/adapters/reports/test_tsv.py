from __future__ import annotations

import csv
from typing import TYPE_CHECKING

from Bio import SeqIO

from protrecon.adapters.reports import TsvReportWriter
from protrecon.adapters.reports.tsv import FASTA_FILE, REPORT_FILES
from protrecon.domain.model import (
    CreatedEvent,
    DeletedEvent,
    ErrorEvent,
    ErrorKind,
    MergedEvent,
    MergeReport,
    ProcessStatus,
    RangeChangedEvent,
    RangeStatus,
    UpdatedEvent,
    UpdateProcess,
)
from tests.helpers.records import feature_range, identity, participation

if TYPE_CHECKING:
    from pathlib import Path


def _read(path: Path) -> list[dict[str, str]]:
    with path.open(encoding="utf-8", newline="") as handle:
        return list(csv.DictReader(handle, delimiter="\t"))


def _process() -> UpdateProcess:
    process = UpdateProcess()
    process.append(CreatedEvent(record_id="PROT-9", accession="P9"))
    process.append(
        UpdatedEvent(
            record_id="PROT-1",
            accession="P1",
            changed_fields=("sequence", "full_name"),
            old_sequence="MKT",
            new_sequence="MKTAYIAK",
            conservation=0.5,
        )
    )
    process.append(UpdatedEvent(record_id="PROT-2", accession="P2", changed_fields=("aliases",)))
    process.append(
        RangeChangedEvent(
            record_id="PROT-1",
            accession="P1",
            feature_id="F1",
            component_id="C1",
            interaction_id="I1",
            status=RangeStatus.SHIFTED,
            old_start=10,
            old_end=14,
            new_start=12,
            new_end=16,
        )
    )
    process.append(
        MergedEvent(
            survivor_id="PROT-1",
            merged_id="PROT-3",
            accession="P1",
            report=MergeReport(
                survivor_id="PROT-1",
                merged_id="PROT-3",
                moved_participations=(participation("I1", "C1"), participation("I2", "C2")),
                moved_ranges=(feature_range("F2", 1, 3),),
                secondary_references=(identity("P3"),),
            ),
        )
    )
    process.append(DeletedEvent(record_id="PROT-3", accession="P1", reason="merged into PROT-1"))
    process.append(
        ErrorEvent(
            error=ErrorKind.MULTI_EXTERNAL_IDENTITIES,
            details="two identities",
            record_ids=("PROT-4",),
            candidates=("P4", "P5"),
        )
    )
    process.seal(ProcessStatus.COMPLETED)
    return process


def test_writes_one_file_per_event_kind(tmp_path: Path) -> None:
    written = TsvReportWriter(tmp_path / "reports").write(_process())

    assert [path.name for path in written] == [*REPORT_FILES, FASTA_FILE]
    for name, columns in REPORT_FILES.items():
        with (tmp_path / "reports" / name).open(encoding="utf-8") as handle:
            assert handle.readline().rstrip("\r\n").split("\t") == list(columns)


def test_rows_describe_events(tmp_path: Path) -> None:
    TsvReportWriter(tmp_path).write(_process())

    updated = _read(tmp_path / "updated.tsv")
    assert [row["record_id"] for row in updated] == ["PROT-1", "PROT-2"]
    assert updated[0]["changed_fields"] == "sequence|full_name"
    assert updated[0]["conservation"] == "0.500"
    assert updated[1]["conservation"] == ""

    (merged,) = _read(tmp_path / "merged.tsv")
    assert merged["moved_participations"] == "I1/C1|I2/C2"
    assert merged["moved_ranges"] == "F2[1-3]"
    assert merged["secondary_references"] == "uniprotkb:P3 (identity)"

    (shifted,) = _read(tmp_path / "range_changed.tsv")
    assert shifted["status"] == "shifted"
    assert (shifted["old_range"], shifted["new_range"]) == ("10-14", "12-16")

    (error,) = _read(tmp_path / "errors.tsv")
    assert error["error"] == "multi_external_identities"
    assert error["candidates"] == "P4|P5"

    assert _read(tmp_path / "dead.tsv") == []
    assert len(_read(tmp_path / "created.tsv")) == 1
    assert len(_read(tmp_path / "deleted.tsv")) == 1


def test_fasta_lists_changed_sequences_only(tmp_path: Path) -> None:
    TsvReportWriter(tmp_path).write(_process())

    (record,) = SeqIO.parse(tmp_path / FASTA_FILE, "fasta")

    assert record.id == "PROT-1"
    assert str(record.seq) == "MKTAYIAK"
    assert "conservation=0.500" in record.description
