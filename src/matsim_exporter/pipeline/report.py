from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from matsim_exporter.core import atomic_output

from .stage import StageResult


@dataclass(slots=True)
class ExportReport:
    run_id: str
    started_at_utc: str
    finished_at_utc: str
    status: str  # "success" | "failed"
    duration_ms: int
    crs: str

    stages: list[StageResult] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)
    outputs: dict[str, str] = field(default_factory=dict)

    def stage(self, stage_id: str) -> StageResult | None:
        for s in self.stages:
            if s.stage == stage_id:
                return s
        return None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def write_json(self, path: Path) -> None:
        with atomic_output(Path(path)) as tmp:
            tmp.write_text(
                json.dumps(self.to_dict(), ensure_ascii=False, indent=2, default=str),
                encoding="utf-8",
            )


def build_export_report(
    *,
    run_id: str,
    started_at_utc: str,
    finished_at_utc: str,
    duration_ms: int,
    crs: str,
    stage_results: list[StageResult],
) -> ExportReport:
    status = "success" if all(s.status != "failed" for s in stage_results) else "failed"
    counts: dict[str, int] = {}
    outputs: dict[str, str] = {}
    for s in stage_results:
        for k, v in s.metrics.items():
            if isinstance(v, int):
                counts[k] = v
        for k, v in s.outputs.items():
            outputs[k] = str(v)
    return ExportReport(
        run_id=run_id,
        started_at_utc=started_at_utc,
        finished_at_utc=finished_at_utc,
        status=status,
        duration_ms=duration_ms,
        crs=crs,
        stages=stage_results,
        counts=counts,
        outputs=outputs,
    )
