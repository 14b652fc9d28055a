"""
Run configuration of the writers.

All configs are frozen; use `model_copy(update=...)` or the `with_*` helpers to
derive a modified copy.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from matsim_exporter.core import ConsistencyError, load_settings
from matsim_exporter.crs import normalize_country, to_crs
from matsim_exporter.idmapping import IdMapperType
from matsim_exporter.model import LinkSegment
from matsim_exporter.modes import ModeMapping

XML_EXTENSION = ".xml"

DEFAULT_NETWORK_FILE_NAME = "output_network"
DEFAULT_TRANSIT_SCHEDULE_FILE_NAME = "output_transitschedule"
DEFAULT_GEOMETRY_FILE_NAME = "network_geometry.txt"
DEFAULT_PT_STOPS_FILE_NAME = "ptStops.csv"

DEFAULT_COORDINATE_DECIMALS = 6

LinkSegmentAttributeFn = Callable[[LinkSegment], str]


def _non_blank(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("file name must not be blank")
    return value.strip()


class NetworkWriterConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    output_dir: Optional[Path] = None
    file_name: str = DEFAULT_NETWORK_FILE_NAME
    country: Optional[str] = None
    crs: Optional[str] = None

    id_mapper: IdMapperType = IdMapperType.ID
    mode_mapping: ModeMapping = Field(default_factory=ModeMapping)

    restrict_speed_by_supported_modes: bool = False
    generate_detailed_geometry: bool = False
    geometry_file_name: str = DEFAULT_GEOMETRY_FILE_NAME
    coordinate_decimals: int = Field(default=DEFAULT_COORDINATE_DECIMALS, ge=0, le=15)

    # optional per link segment attribute derivations
    nt_category_fn: Optional[LinkSegmentAttributeFn] = None
    nt_type_fn: Optional[LinkSegmentAttributeFn] = None
    type_fn: Optional[LinkSegmentAttributeFn] = None

    @field_validator("file_name", "geometry_file_name")
    @classmethod
    def _check_names(cls, v: str) -> str:
        return _non_blank(v)

    def resolved_output_dir(self) -> Path:
        return Path(self.output_dir) if self.output_dir is not None else load_settings().output_dir

    def network_path(self) -> Path:
        return self.resolved_output_dir() / f"{self.file_name}{XML_EXTENSION}"

    def geometry_path(self) -> Path:
        return self.resolved_output_dir() / self.geometry_file_name

    def with_mode_mapping(self, mode_mapping: ModeMapping) -> "NetworkWriterConfig":
        return self.model_copy(update={"mode_mapping": mode_mapping})

    def with_crs(self, crs: str | None) -> "NetworkWriterConfig":
        return self.model_copy(update={"crs": crs})


class TransitWriterConfig(BaseModel):
    """
    Transit schedule settings. `output_dir`, `country`, `crs`, `coordinate_decimals`
    and `mode_mapping` left unset are taken from the network config of the same run.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    output_dir: Optional[Path] = None
    file_name: str = DEFAULT_TRANSIT_SCHEDULE_FILE_NAME
    country: Optional[str] = None
    crs: Optional[str] = None
    coordinate_decimals: Optional[int] = Field(default=None, ge=0, le=15)
    mode_mapping: Optional[ModeMapping] = None

    generate_matrix_router_file: bool = True
    matrix_router_file_name: str = DEFAULT_PT_STOPS_FILE_NAME
    stop_facilities_blocking: bool = False
    await_departure: bool = False

    @field_validator("file_name", "matrix_router_file_name")
    @classmethod
    def _check_names(cls, v: str) -> str:
        return _non_blank(v)

    def inherit_from(self, network: NetworkWriterConfig) -> "TransitWriterConfig":
        return self.model_copy(
            update={
                "output_dir": (
                    self.output_dir
                    if self.output_dir is not None
                    else network.resolved_output_dir()
                ),
                "country": self.country if self.country is not None else network.country,
                "crs": self.crs if self.crs is not None else network.crs,
                "coordinate_decimals": (
                    self.coordinate_decimals
                    if self.coordinate_decimals is not None
                    else network.coordinate_decimals
                ),
                "mode_mapping": (
                    self.mode_mapping if self.mode_mapping is not None else network.mode_mapping
                ),
            }
        )

    def resolved_output_dir(self) -> Path:
        return Path(self.output_dir) if self.output_dir is not None else load_settings().output_dir

    def decimals(self) -> int:
        if self.coordinate_decimals is None:
            return DEFAULT_COORDINATE_DECIMALS
        return self.coordinate_decimals

    def schedule_path(self) -> Path:
        return self.resolved_output_dir() / f"{self.file_name}{XML_EXTENSION}"

    def pt_stops_path(self) -> Path:
        return self.resolved_output_dir() / self.matrix_router_file_name


class IntermodalWriterConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    network: NetworkWriterConfig = Field(default_factory=NetworkWriterConfig)
    transit: TransitWriterConfig = Field(default_factory=TransitWriterConfig)

    @classmethod
    def for_country(cls, country: str, output_dir: Path | None = None) -> "IntermodalWriterConfig":
        return cls(network=NetworkWriterConfig(country=country, output_dir=output_dir))

    def check_consistency(self) -> None:
        """
        Raise ConsistencyError when the transit config names a different country or
        CRS than the network config.
        """
        net, pt = self.network, self.transit

        if pt.country is not None and net.country is not None:
            if normalize_country(pt.country) != normalize_country(net.country):
                raise ConsistencyError(
                    f"country mismatch between network ({net.country!r}) "
                    f"and transit schedule ({pt.country!r}) configuration"
                )
        if pt.crs is not None and net.crs is not None:
            if not to_crs(pt.crs, what="transit").equals(
                to_crs(net.crs, what="network"), ignore_axis_order=True
            ):
                raise ConsistencyError(
                    f"CRS mismatch between network ({net.crs!r}) "
                    f"and transit schedule ({pt.crs!r}) configuration"
                )

    def resolved_transit(self) -> TransitWriterConfig:
        return self.transit.inherit_from(self.network)
