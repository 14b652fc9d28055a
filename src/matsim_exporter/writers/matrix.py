"""
Stop list consumed by the destination's matrix based public transport router.
Only stop locations are written; the router derives travel times itself.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import polars as pl

from matsim_exporter.core import ILogger, WriteError, atomic_output, get_logger

from .transit import StopFacility


def write_pt_stops(
    path: Path,
    stops: Sequence[StopFacility],
    *,
    logger: ILogger | None = None,
) -> int:
    log = logger or get_logger(__name__)
    if not stops:
        log.warning("[IGNORED] no stop facilities, stop list not written", path=str(path))
        return 0

    df = pl.DataFrame(
        {
            "id": [s.id for s in stops],
            "x": [s.x for s in stops],
            "y": [s.y for s in stops],
        },
        schema={"id": pl.Utf8, "x": pl.Utf8, "y": pl.Utf8},
    )
    log.info("Persisting stop list", path=str(path), rows=df.height)
    try:
        with atomic_output(Path(path)) as tmp:
            df.write_csv(tmp)
    except OSError as e:
        raise WriteError(f"failed writing {path}: {e}") from e
    return df.height
