"""
app/services/progress_reporter.py

Skip diagnostics for one window and cumulative report aggregation.

Only counts and a capped sample of skipped rows are kept; reasons are
categorical so they aggregate across windows.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from typing import Iterable, Sequence

from app.domain.ingestion import ChunkResult, IngestReport, SkippedRecordDiagnostic

logger = logging.getLogger(__name__)

DEFAULT_MAX_SAMPLES = 100


class SkipTally:
    """
    Mutable per-window collector of skipped rows.
    """

    def __init__(self, *, max_samples: int = DEFAULT_MAX_SAMPLES, log_rows: bool = False) -> None:
        self._max_samples = max(0, max_samples)
        self._log_rows = log_rows
        self.count = 0
        self.reason_counts: Counter[str] = Counter()
        self._samples: list[SkippedRecordDiagnostic] = []

    def add(self, diagnostic: SkippedRecordDiagnostic) -> None:
        self.count += 1
        self.reason_counts[diagnostic.reason] += 1
        if len(self._samples) < self._max_samples:
            self._samples.append(diagnostic)
        if self._log_rows:
            logger.info(
                "Row skipped line=%s reason=%s missing=%s key=%s",
                diagnostic.line_number,
                diagnostic.reason,
                ",".join(diagnostic.missing_fields),
                diagnostic.natural_key_fragments,
            )

    @property
    def samples(self) -> tuple[SkippedRecordDiagnostic, ...]:
        return tuple(self._samples)


def merge_samples(
    existing: Sequence[SkippedRecordDiagnostic],
    incoming: Iterable[SkippedRecordDiagnostic],
    *,
    cap: int,
) -> tuple[SkippedRecordDiagnostic, ...]:
    """
    Keep the earliest samples up to ``cap`` while making sure every reason
    seen so far stays represented.
    """

    merged = list(existing)[:cap]
    for sample in incoming:
        if len(merged) < cap:
            merged.append(sample)
            continue
        reasons = Counter(item.reason for item in merged)
        if sample.reason in reasons or not merged:
            continue
        dominant = reasons.most_common(1)[0][0]
        for index in range(len(merged) - 1, -1, -1):
            if merged[index].reason == dominant:
                merged[index] = sample
                break
    return tuple(merged)


class ProgressReporter:
    """
    Pure aggregation of per-window results into a running report.
    """

    def __init__(self, *, max_samples: int = DEFAULT_MAX_SAMPLES) -> None:
        self._max_samples = max(0, max_samples)

    def accumulate(self, report: IngestReport, chunk: ChunkResult) -> IngestReport:
        reason_counts = Counter(report.skipped_reason_counts)
        reason_counts.update(chunk.skipped_reason_counts)
        return replace(
            report,
            parsed=report.parsed + chunk.parsed,
            inserted=report.inserted + chunk.inserted,
            updated=report.updated + chunk.updated,
            skipped=report.skipped + chunk.skipped,
            errored=report.errored + chunk.errored,
            chunks=report.chunks + 1,
            done=not chunk.has_more,
            skipped_reason_counts=dict(reason_counts),
            skipped_samples=merge_samples(
                report.skipped_samples,
                chunk.skipped_samples,
                cap=self._max_samples,
            ),
        )
