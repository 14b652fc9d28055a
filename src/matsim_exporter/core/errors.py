from __future__ import annotations

import traceback
from dataclasses import dataclass


class ExportError(RuntimeError):
    """Base error"""


@dataclass(frozen=True, slots=True)
class StageFailure:
    """
    A normalized error record for export stage failures.
    """

    exc_type: str
    message: str
    traceback: str


def stage_failure_from_exc(exc: BaseException) -> StageFailure:
    return StageFailure(
        exc_type=type(exc).__name__,
        message=str(exc),
        traceback=traceback.format_exc(),
    )


class StructuralError(ExportError):
    """
    Non-recoverable: the source model has a shape the output format cannot express
    (multiple layers, wrong layer type, empty layer, missing link segment type)
    """


class ConfigurationError(ExportError):
    """Invalid or incomplete writer configuration"""


class CrsResolutionError(ConfigurationError):
    """No coordinate reference system could be resolved for the run"""


class ConsistencyError(ExportError):
    """
    Coupled writers in one intermodal run disagree on country or CRS.
    Raised before any output file is opened.
    """


class WriteError(ExportError):
    """I/O or serialization failure while streaming an output document"""
