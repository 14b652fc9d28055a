from __future__ import annotations

import numpy as np
import pytest
from pyproj import CRS
from structlog.testing import capture_logs

from matsim_exporter.core import ConfigurationError, CrsResolutionError
from matsim_exporter.crs import default_crs_for_country, resolve_crs

LOCAL_CRS = "+proj=tmerc +lat_0=0 +lon_0=0 +k=1 +x_0=0 +y_0=0 +ellps=GRS80 +units=m +no_defs"
SHIFTED_CRS = (
    "+proj=tmerc +lat_0=0 +lon_0=0 +k=1 +x_0=1000 +y_0=2000 +ellps=GRS80 +units=m +no_defs"
)


def test_country_table_lookup() -> None:
    assert default_crs_for_country("Australia") == "EPSG:3112"
    assert default_crs_for_country("  united   KINGDOM ") == "EPSG:27700"
    assert default_crs_for_country("Hong Kong") == "EPSG:2326"
    assert default_crs_for_country("Global") is None
    assert default_crs_for_country("Atlantis") is None
    assert default_crs_for_country(None) is None


def test_explicit_crs_wins_over_country_and_source() -> None:
    r = resolve_crs("EPSG:28992", "Australia", "EPSG:4326")
    assert r.target.equals(CRS.from_epsg(28992))
    assert r.reprojects


def test_country_default_used_without_explicit_crs() -> None:
    r = resolve_crs(None, "Netherlands", "EPSG:4326")
    assert r.target.equals(CRS.from_epsg(28992))
    x, y = r.transform_point(5.387, 52.155)
    # near the Amersfoort origin of the Dutch grid (155000, 463000)
    assert 150_000 < x < 160_000
    assert 455_000 < y < 470_000


def test_source_crs_kept_without_transform() -> None:
    r = resolve_crs(None, "Global", LOCAL_CRS)
    assert r.transformer is None
    assert r.transform is None
    assert r.transform_point(1.5, 2.5) == (1.5, 2.5)


def test_same_crs_does_not_reproject() -> None:
    r = resolve_crs(LOCAL_CRS, None, LOCAL_CRS)
    assert not r.reprojects


def test_unresolvable_crs_is_a_configuration_error() -> None:
    with pytest.raises(CrsResolutionError):
        resolve_crs(None, None, None)
    with pytest.raises(ConfigurationError):
        resolve_crs(None, "Atlantis", None)


def test_invalid_crs_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        resolve_crs("EPSG:not-a-code", None, LOCAL_CRS)


def test_explicit_crs_without_source_assumes_coordinates_are_in_target() -> None:
    with capture_logs() as logs:
        r = resolve_crs("EPSG:27700", None, None)
    assert r.transformer is None
    assert any(e["event"].startswith("[ASSUMED]") for e in logs)


def test_resolved_crs_logged_once() -> None:
    with capture_logs() as logs:
        resolve_crs(None, None, LOCAL_CRS)
    assert [e["event"] for e in logs].count("Resolved destination CRS") == 1


def test_offset_transform_is_applied_once_per_coordinate() -> None:
    r = resolve_crs(SHIFTED_CRS, None, LOCAL_CRS)
    assert r.reprojects
    assert r.transform_point(100.0, 0.0) == pytest.approx((1100.0, 2000.0), abs=1e-6)

    xs, ys = r.transform_coords(np.array([0.0, 30.0, 70.0]), np.array([0.0, 10.0, 10.0]))
    assert xs == pytest.approx([1000.0, 1030.0, 1070.0], abs=1e-6)
    assert ys == pytest.approx([2000.0, 2010.0, 2010.0], abs=1e-6)


def test_geodesic_lengths_only_for_geographic_sources() -> None:
    geographic = resolve_crs(None, "Australia", "EPSG:4326")
    assert geographic.geod is not None
    # one degree of longitude on the equator
    assert geographic.source_length_m([0.0, 1.0], [0.0, 0.0]) == pytest.approx(111_319.5, rel=1e-4)

    projected = resolve_crs(None, None, LOCAL_CRS)
    assert projected.geod is None
    assert projected.source_length_m([0.0, 1.0], [0.0, 0.0]) is None
