from __future__ import annotations

from pathlib import Path

import pytest
from structlog.testing import capture_logs

from matsim_exporter.crs import resolve_crs
from matsim_exporter.idmapping import NetworkIdMappers
from matsim_exporter.model import Mode
from matsim_exporter.writers import (
    MatsimNetworkWriter,
    NetworkWriterConfig,
    StopFacility,
    interior_wkt,
    write_network_geometry,
    write_pt_stops,
)

SHIFTED_CRS = (
    "+proj=tmerc +lat_0=0 +lon_0=0 +k=1 +x_0=1000 +y_0=2000 +ellps=GRS80 +units=m +no_defs"
)


def network_result(builder, out_dir: Path, crs: str | None = None):
    config = NetworkWriterConfig(output_dir=out_dir, crs=crs)
    resolved = resolve_crs(config.crs, None, builder.network.crs)
    mappers = NetworkIdMappers.create(config.id_mapper)
    result = MatsimNetworkWriter(config, resolved, mappers).write(builder.network)
    return result, mappers, resolved


def test_interior_vertices_follow_direction_of_travel(builder, out_dir: Path) -> None:
    a, b = builder.node(0, 0), builder.node(100, 0)
    link = builder.link(a, b, coords=[(0, 0), (30, 10), (70, 10.5), (100, 0)])
    crs = resolve_crs(None, None, builder.network.crs)

    assert interior_wkt(link.segment_ab, crs, 6) == "LINESTRING (30 10,70 10.5)"
    assert interior_wkt(link.segment_ba, crs, 6) == "LINESTRING (70 10.5,30 10)"


def test_geometry_file(builder, out_dir: Path) -> None:
    hover = builder.add_mode(Mode(id=9, name="hovercraft", max_speed_kmh=40.0))
    a, b, c, d = (builder.node(x, 0) for x in (0, 100, 200, 300))
    builder.link(a, b, coords=[(0, 0), (30, 10), (70, 10), (100, 0)])
    builder.link(b, c, coords=[(100, 0), (200, 0)])
    builder.link(c, d, coords=[(200, 0), (250, 5), (300, 0)], modes=frozenset({hover}))
    builder.link(a, d, both=False)

    result, mappers, crs = network_result(builder, out_dir)
    path = out_dir / "network_geometry.txt"
    with capture_logs() as logs:
        rows = write_network_geometry(path, result, mappers.link_segments, crs, 6)

    assert rows == 2
    assert path.read_text().splitlines() == [
        "LINK_ID\tGEOMETRY",
        "0\tLINESTRING (30 10,70 10)",
        "1\tLINESTRING (70 10,30 10)",
    ]
    # link a-d has no geometry at all
    assert any(e["event"].startswith("[DISCARD]") for e in logs)


def test_geometry_file_reprojected(builder, out_dir: Path) -> None:
    a, b = builder.node(0, 0), builder.node(100, 0)
    builder.link(a, b, coords=[(0, 0), (50, 20), (100, 0)], both=False)

    result, mappers, crs = network_result(builder, out_dir, crs=SHIFTED_CRS)
    path = out_dir / "network_geometry.txt"
    write_network_geometry(path, result, mappers.link_segments, crs, 6)
    assert path.read_text().splitlines()[1] == "0\tLINESTRING (1050 2020)"


def test_pt_stops_file(tmp_path: Path) -> None:
    path = tmp_path / "ptStops.csv"
    stops = [
        StopFacility(id="s1", x="10.5", y="20", link_ref_id="0"),
        StopFacility(id="s2", x="11", y="21.25", link_ref_id="1", name="Central"),
    ]
    assert write_pt_stops(path, stops) == 2
    assert path.read_text().splitlines() == ["id,x,y", "s1,10.5,20", "s2,11,21.25"]


def test_pt_stops_file_not_written_without_stops(tmp_path: Path) -> None:
    path = tmp_path / "ptStops.csv"
    with capture_logs() as logs:
        assert write_pt_stops(path, []) == 0
    assert not path.exists()
    assert any(e["event"].startswith("[IGNORED]") for e in logs)


def test_interior_vertices_outside_target_domain_rejected(builder) -> None:
    builder.network.crs = "EPSG:4326"
    a, b = builder.node(151.20, -33.80), builder.node(151.21, -33.80)
    link = builder.link(a, b, coords=[(151.20, -33.80), (151.205, 95.0), (151.21, -33.80)])
    crs = resolve_crs("EPSG:3112", None, builder.network.crs)

    with pytest.raises(ValueError):
        interior_wkt(link.segment_ab, crs, 6)
