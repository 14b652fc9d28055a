"""
Export of in-memory multimodal transport networks to MATSim network and
transit schedule files.
"""

from matsim_exporter.core import (
    ConfigurationError,
    ConsistencyError,
    CrsResolutionError,
    ExportError,
    StructuralError,
    WriteError,
    configure_logging,
)
from matsim_exporter.idmapping import IdMapperType
from matsim_exporter.modes import ModeMapping
from matsim_exporter.pipeline import ExportReport, MatsimExporter
from matsim_exporter.writers import (
    IntermodalWriterConfig,
    NetworkWriterConfig,
    TransitWriterConfig,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "ConsistencyError",
    "CrsResolutionError",
    "ExportError",
    "StructuralError",
    "WriteError",
    "configure_logging",
    "IdMapperType",
    "ModeMapping",
    "ExportReport",
    "MatsimExporter",
    "IntermodalWriterConfig",
    "NetworkWriterConfig",
    "TransitWriterConfig",
]
