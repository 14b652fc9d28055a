from .context import RunContext
from .exporter import (
    STAGE_NETWORK,
    STAGE_NETWORK_GEOMETRY,
    STAGE_PT_STOPS,
    STAGE_TRANSIT_SCHEDULE,
    MatsimExporter,
)
from .report import ExportReport, build_export_report
from .stage import FunctionStage, Stage, StageResult, run_stage

__all__ = [
    "RunContext",
    "MatsimExporter",
    "STAGE_NETWORK",
    "STAGE_NETWORK_GEOMETRY",
    "STAGE_TRANSIT_SCHEDULE",
    "STAGE_PT_STOPS",
    "ExportReport",
    "build_export_report",
    "FunctionStage",
    "Stage",
    "StageResult",
    "run_stage",
]
