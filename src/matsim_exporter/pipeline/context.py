from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from matsim_exporter.core import ILogger
from matsim_exporter.crs import ResolvedCrs
from matsim_exporter.idmapping import ComponentIdMappers
from matsim_exporter.model import MacroscopicNetworkLayer
from matsim_exporter.writers import NetworkWriteResult, TransitWriteResult

if TYPE_CHECKING:
    from .stage import StageResult


@dataclass(slots=True)
class RunContext:
    """
    State shared by the stages of one export run.

    The CRS and the id mappers are fixed when the context is created; the network
    result is filled in by the network stage and read by every later stage.
    """

    run_id: str
    logger: ILogger
    crs: ResolvedCrs
    id_mappers: ComponentIdMappers
    layer: MacroscopicNetworkLayer

    network_result: NetworkWriteResult | None = None
    transit_result: TransitWriteResult | None = None
    results: list[StageResult] = field(default_factory=list)

    def stage_logger(self, stage: str) -> ILogger:
        return self.logger.bind(stage=stage)

    def require_network(self) -> NetworkWriteResult:
        if self.network_result is None:
            raise RuntimeError("network stage has not run")
        return self.network_result
