from __future__ import annotations

from pathlib import Path

import numpy as np
import polars as pl

from matsim_exporter.core import ILogger, WriteError, atomic_output, format_decimal, get_logger
from matsim_exporter.crs import ResolvedCrs
from matsim_exporter.idmapping import IdMapper
from matsim_exporter.model import LinkSegment

from .network import NetworkWriteResult

LINK_ID_COLUMN = "LINK_ID"
GEOMETRY_COLUMN = "GEOMETRY"


def interior_wkt(
    link_segment: LinkSegment, crs: ResolvedCrs, decimals: int
) -> str | None:
    """
    WKT line string of the interior vertices of the parent link geometry, in the
    direction of travel. None when the geometry has no interior vertices; ValueError
    when they cannot be reprojected.
    """
    geometry = link_segment.parent.geometry
    coords = np.asarray(geometry.coords, dtype="float64")
    if len(coords) <= 2:
        return None
    if not link_segment.direction_ab:
        coords = coords[::-1]
    inner = coords[1:-1]
    xs, ys = crs.transform_coords(inner[:, 0], inner[:, 1])
    if not (np.isfinite(xs).all() and np.isfinite(ys).all()):
        raise ValueError("link geometry falls outside the target CRS domain")
    points = ",".join(
        f"{format_decimal(x, decimals)} {format_decimal(y, decimals)}" for x, y in zip(xs, ys)
    )
    return f"LINESTRING ({points})"


def write_network_geometry(
    path: Path,
    network_result: NetworkWriteResult,
    link_ids: IdMapper,
    crs: ResolvedCrs,
    decimals: int,
    *,
    logger: ILogger | None = None,
) -> int:
    """
    Write the tab separated detailed geometry side file for the links present in the
    network document. Returns the number of rows written.
    """
    log = logger or get_logger(__name__)
    ids: list[str] = []
    wkts: list[str] = []
    missing = 0
    for ls in network_result.emitted_segments:
        if ls.parent.geometry is None or ls.parent.geometry.is_empty:
            missing += 1
            log.warning("[DISCARD] link without geometry, detailed geometry skipped", link_segment_id=ls.id)
            continue
        try:
            wkt = interior_wkt(ls, crs, decimals)
        except ValueError as e:
            missing += 1
            log.warning("[DISCARD] detailed geometry skipped", link_segment_id=ls.id, reason=str(e))
            continue
        if wkt is None:
            continue
        ids.append(link_ids.id_for(ls))
        wkts.append(wkt)

    df = pl.DataFrame(
        {LINK_ID_COLUMN: ids, GEOMETRY_COLUMN: wkts},
        schema={LINK_ID_COLUMN: pl.Utf8, GEOMETRY_COLUMN: pl.Utf8},
    )
    log.info("Persisting network geometry", path=str(path), rows=df.height, missing=missing)
    try:
        with atomic_output(Path(path)) as tmp:
            df.write_csv(tmp, separator="\t")
    except OSError as e:
        raise WriteError(f"failed writing {path}: {e}") from e
    return df.height
