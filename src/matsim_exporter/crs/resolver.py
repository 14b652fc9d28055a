from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
from pyproj import CRS, Geod, Transformer
from pyproj.exceptions import CRSError

from matsim_exporter.core import ConfigurationError, CrsResolutionError, ILogger, get_logger

from .countries import default_crs_for_country

PointTransform = Callable[[float, float], tuple[float, float]]


def to_crs(value: Any, *, what: str) -> CRS:
    try:
        return CRS.from_user_input(value)
    except CRSError as e:
        raise ConfigurationError(f"invalid {what} CRS {value!r}: {e}") from e


@dataclass(frozen=True, slots=True)
class ResolvedCrs:
    """
    Target CRS of one run, plus the transformer from the source CRS when they differ.

    `geod` is set when the source CRS is geographic; source coordinates are then
    degrees and lengths have to be measured on the ellipsoid.
    """

    target: CRS
    source: CRS | None = None
    transformer: Transformer | None = None
    geod: Geod | None = None

    @property
    def reprojects(self) -> bool:
        return self.transformer is not None

    @property
    def transform(self) -> PointTransform | None:
        return self.transform_point if self.transformer is not None else None

    def transform_point(self, x: float, y: float) -> tuple[float, float]:
        if self.transformer is None:
            return float(x), float(y)
        tx, ty = self.transformer.transform(x, y)
        return float(tx), float(ty)

    def source_length_m(self, xs: Any, ys: Any) -> float | None:
        """Geodesic length of a source polyline in meters, None for projected sources."""
        if self.geod is None:
            return None
        return float(self.geod.line_length(list(xs), list(ys)))

    def transform_coords(
        self, xs: np.ndarray, ys: np.ndarray
    ) -> tuple[np.ndarray, np.ndarray]:
        xs = np.asarray(xs, dtype="float64")
        ys = np.asarray(ys, dtype="float64")
        if self.transformer is None or xs.size == 0:
            return xs, ys
        tx, ty = self.transformer.transform(xs, ys)
        return np.asarray(tx, dtype="float64"), np.asarray(ty, dtype="float64")

    def describe(self) -> str:
        code = self.target.to_string()
        return code if code else self.target.name


def resolve_crs(
    explicit_crs: Any = None,
    country: str | None = None,
    source_crs: Any = None,
    *,
    logger: ILogger | None = None,
) -> ResolvedCrs:
    """
    Resolve the run's target CRS: explicit setting, else the country default,
    else the source network CRS.

    Raises CrsResolutionError when none of the three is available.
    """
    log = logger or get_logger(__name__)

    source = to_crs(source_crs, what="source") if source_crs is not None else None

    if explicit_crs is not None:
        target = to_crs(explicit_crs, what="explicit")
        origin = "explicit"
    else:
        country_default = default_crs_for_country(country)
        if country_default is not None:
            target = to_crs(country_default, what="country default")
            origin = "country"
        elif source is not None:
            target = source
            origin = "source"
        else:
            raise CrsResolutionError(
                "unable to resolve a coordinate reference system: network has no CRS "
                f"and no explicit CRS or known destination country was given (country={country!r})"
            )

    transformer: Transformer | None = None
    if source is None:
        log.warning(
            "[ASSUMED] source network has no CRS, coordinates are written untransformed",
            target_crs=target.to_string(),
        )
    elif not target.equals(source, ignore_axis_order=True):
        transformer = Transformer.from_crs(source, target, always_xy=True)

    geod = source.get_geod() if source is not None and source.is_geographic else None
    resolved = ResolvedCrs(target=target, source=source, transformer=transformer, geod=geod)
    log.info(
        "Resolved destination CRS",
        crs=resolved.describe(),
        origin=origin,
        country=country,
        reproject=resolved.reprojects,
    )
    return resolved
