from .geometry import interior_wkt, write_network_geometry
from .matrix import write_pt_stops
from .network import (
    MatsimNetworkWriter,
    NetworkWriteResult,
    NetworkWriterStats,
    validate_network,
)
from .settings import (
    IntermodalWriterConfig,
    NetworkWriterConfig,
    TransitWriterConfig,
)
from .transit import (
    MatsimTransitScheduleWriter,
    StopFacility,
    TransitWriteResult,
    TransitWriterStats,
    stop_facility_name,
    validate_service_network,
)

__all__ = [
    "interior_wkt",
    "write_network_geometry",
    "write_pt_stops",
    "MatsimNetworkWriter",
    "NetworkWriteResult",
    "NetworkWriterStats",
    "validate_network",
    "IntermodalWriterConfig",
    "NetworkWriterConfig",
    "TransitWriterConfig",
    "MatsimTransitScheduleWriter",
    "StopFacility",
    "TransitWriteResult",
    "TransitWriterStats",
    "stop_facility_name",
    "validate_service_network",
]
