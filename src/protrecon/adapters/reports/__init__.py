"""File reports of update processes."""

from __future__ import annotations

from .tsv import FASTA_FILE, REPORT_FILES, TsvReportWriter

__all__ = ["FASTA_FILE", "REPORT_FILES", "TsvReportWriter"]
