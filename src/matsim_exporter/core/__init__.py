from .config import Settings, load_settings
from .errors import (
    ConfigurationError,
    ConsistencyError,
    CrsResolutionError,
    ExportError,
    StageFailure,
    StructuralError,
    WriteError,
    stage_failure_from_exc,
)
from .fs import atomic_output, ensure_parent
from .logging import ILogger, bind, clear_bindings, configure_logging, get_logger
from .time import (
    Timer,
    format_duration_ms,
    format_hhmmss,
    monotonic_ms,
    new_run_id,
    utc_now_iso,
)
from .units import format_decimal, format_fixed, km_to_m, kmh_to_ms

__all__ = [
    "Settings",
    "load_settings",
    "ExportError",
    "StructuralError",
    "ConfigurationError",
    "CrsResolutionError",
    "ConsistencyError",
    "WriteError",
    "StageFailure",
    "stage_failure_from_exc",
    "atomic_output",
    "ensure_parent",
    "ILogger",
    "bind",
    "clear_bindings",
    "configure_logging",
    "get_logger",
    "Timer",
    "new_run_id",
    "format_duration_ms",
    "format_hhmmss",
    "monotonic_ms",
    "utc_now_iso",
    "format_decimal",
    "format_fixed",
    "km_to_m",
    "kmh_to_ms",
]
