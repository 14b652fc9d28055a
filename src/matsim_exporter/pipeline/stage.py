from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

from matsim_exporter.core import (
    StageFailure,
    format_duration_ms,
    monotonic_ms,
    stage_failure_from_exc,
    utc_now_iso,
)

from .context import RunContext


@dataclass(slots=True)
class FunctionStage:
    """
    Adapter that turns a plain function into a Stage.
    """

    stage_id: str
    fn: StageFn

    def run(self, ctx: RunContext) -> dict[str, Any] | None:
        return self.fn(ctx)


@dataclass(slots=True)
class StageResult:
    stage: str
    status: str  # "success" | "failed"
    started_at_utc: str
    finished_at_utc: str
    duration_ms: int

    outputs: dict[str, Any] = field(default_factory=dict)
    metrics: dict[str, Any] = field(default_factory=dict)
    error: Optional[StageFailure] = None


class Stage(Protocol):
    stage_id: str

    def run(self, ctx: RunContext) -> dict[str, Any] | None: ...


StageFn = Callable[[RunContext], dict[str, Any] | None]


def run_stage(
    *,
    ctx: RunContext,
    stage: Stage,
    index: int | None = None,
    total: int | None = None,
) -> StageResult:
    """
    Run one stage with start/finish logging. Every result, failed ones included, is
    appended to `ctx.results`; the exception of a failing stage is re-raised.
    """
    stage_id = stage.stage_id
    log = ctx.stage_logger(stage_id)

    t0 = monotonic_ms()
    started_at = utc_now_iso()
    position = f"{index}/{total}" if index is not None and total is not None else None

    log.info("Stage starting", position=position)

    try:
        out = stage.run(ctx) or {}
        if not isinstance(out, dict):
            raise TypeError(
                f"Stage {stage_id} returned {type(out).__name__}, expected dict or None"
            )
    except Exception as e:
        duration = monotonic_ms() - t0
        log.error(
            "Stage failed",
            status="failed",
            position=position,
            duration_ms=duration,
            duration=format_duration_ms(duration),
            error=str(e),
            exc_type=type(e).__name__,
        )
        ctx.results.append(
            StageResult(
                stage=stage_id,
                status="failed",
                started_at_utc=started_at,
                finished_at_utc=utc_now_iso(),
                duration_ms=duration,
                error=stage_failure_from_exc(e),
            )
        )
        raise

    metrics: dict[str, Any] = {}
    m = out.pop("_metrics", None)
    if isinstance(m, dict):
        metrics.update(m)

    duration = monotonic_ms() - t0
    log.info(
        "Stage succeeded",
        status="success",
        position=position,
        duration_ms=duration,
        duration=format_duration_ms(duration),
        outputs=sorted(out.keys()),
        **metrics,
    )
    result = StageResult(
        stage=stage_id,
        status="success",
        started_at_utc=started_at,
        finished_at_utc=utc_now_iso(),
        duration_ms=duration,
        outputs=out,
        metrics=metrics,
    )
    ctx.results.append(result)
    return result
