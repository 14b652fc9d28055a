from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from matsim_exporter.core import ConsistencyError
from matsim_exporter.modes import ModeMapping
from matsim_exporter.model import PredefinedModeType
from matsim_exporter.writers import (
    IntermodalWriterConfig,
    NetworkWriterConfig,
    TransitWriterConfig,
)


def test_default_paths(tmp_path: Path) -> None:
    net = NetworkWriterConfig(output_dir=tmp_path)
    pt = TransitWriterConfig().inherit_from(net)

    assert net.network_path() == tmp_path / "output_network.xml"
    assert net.geometry_path() == tmp_path / "network_geometry.txt"
    assert pt.schedule_path() == tmp_path / "output_transitschedule.xml"
    assert pt.pt_stops_path() == tmp_path / "ptStops.csv"
    assert pt.decimals() == 6


@pytest.mark.parametrize("name", ["", "   "])
def test_blank_file_names_rejected(name: str) -> None:
    with pytest.raises(ValidationError):
        NetworkWriterConfig(file_name=name)
    with pytest.raises(ValidationError):
        TransitWriterConfig(matrix_router_file_name=name)


def test_configs_are_frozen(tmp_path: Path) -> None:
    net = NetworkWriterConfig(output_dir=tmp_path)
    with pytest.raises(ValidationError):
        net.crs = "EPSG:4326"
    assert net.with_crs("EPSG:4326").crs == "EPSG:4326"
    mapping = ModeMapping().deactivate_all()
    assert net.with_mode_mapping(mapping).mode_mapping is mapping
    assert net.crs is None


def test_transit_inherits_unset_values(tmp_path: Path) -> None:
    mapping = ModeMapping().deactivate(PredefinedModeType.BUS)
    net = NetworkWriterConfig(
        output_dir=tmp_path, country="Netherlands", coordinate_decimals=3, mode_mapping=mapping
    )
    pt = TransitWriterConfig(output_dir=tmp_path / "pt", coordinate_decimals=2).inherit_from(net)

    assert pt.output_dir == tmp_path / "pt"
    assert pt.country == "Netherlands"
    assert pt.coordinate_decimals == 2
    assert pt.mode_mapping == mapping


def test_consistency_checks() -> None:
    IntermodalWriterConfig(
        network=NetworkWriterConfig(country="netherlands "),
        transit=TransitWriterConfig(country="Netherlands"),
    ).check_consistency()

    with pytest.raises(ConsistencyError):
        IntermodalWriterConfig(
            network=NetworkWriterConfig(crs="EPSG:28992"),
            transit=TransitWriterConfig(crs="EPSG:25832"),
        ).check_consistency()

    # unset transit values are inherited and never conflict
    IntermodalWriterConfig.for_country("Germany").check_consistency()
