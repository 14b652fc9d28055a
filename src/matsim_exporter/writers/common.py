from __future__ import annotations

import math
from typing import Optional

from shapely.geometry import Point

from matsim_exporter.core import format_decimal
from matsim_exporter.crs import ResolvedCrs


def format_xy(
    position: Optional[Point], crs: ResolvedCrs, decimals: int
) -> tuple[str, str] | None:
    """
    Reprojected, formatted (x, y) of `position`. None when there is no position or
    it falls outside the domain of the target CRS (the transform yields inf/nan).
    """
    if position is None or position.is_empty:
        return None
    x, y = crs.transform_point(position.x, position.y)
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    return format_decimal(x, decimals), format_decimal(y, decimals)
