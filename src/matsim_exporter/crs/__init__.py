from .countries import DEFAULT_COUNTRY_CRS, GLOBAL, default_crs_for_country, normalize_country
from .resolver import PointTransform, ResolvedCrs, resolve_crs, to_crs

__all__ = [
    "DEFAULT_COUNTRY_CRS",
    "GLOBAL",
    "default_crs_for_country",
    "normalize_country",
    "PointTransform",
    "ResolvedCrs",
    "resolve_crs",
    "to_crs",
]
