"""
Default projected CRS per destination country.

Names are matched case-insensitively after trimming. `Global` (or any country
missing here) has no default, in which case the source network CRS is kept.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

GLOBAL = "Global"

DEFAULT_COUNTRY_CRS: Mapping[str, str] = MappingProxyType(
    {
        "australia": "EPSG:3112",
        "austria": "EPSG:31287",
        "belgium": "EPSG:31370",
        "canada": "EPSG:3347",
        "denmark": "EPSG:25832",
        "france": "EPSG:2154",
        "germany": "EPSG:25832",
        "hong kong": "EPSG:2326",
        "ireland": "EPSG:2157",
        "italy": "EPSG:6875",
        "japan": "EPSG:6677",
        "netherlands": "EPSG:28992",
        "new zealand": "EPSG:2193",
        "norway": "EPSG:25833",
        "portugal": "EPSG:3763",
        "singapore": "EPSG:3414",
        "spain": "EPSG:25830",
        "sweden": "EPSG:3006",
        "switzerland": "EPSG:2056",
        "united kingdom": "EPSG:27700",
        "united states": "EPSG:5070",
    }
)


def normalize_country(name: str | None) -> str | None:
    if name is None:
        return None
    key = " ".join(name.split()).lower()
    return key or None


def default_crs_for_country(name: str | None) -> str | None:
    key = normalize_country(name)
    if key is None or key == GLOBAL.lower():
        return None
    return DEFAULT_COUNTRY_CRS.get(key)
