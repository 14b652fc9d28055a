from __future__ import annotations

from typing import Any

from matsim_exporter.core import (
    ILogger,
    StructuralError,
    Timer,
    bind,
    clear_bindings,
    format_duration_ms,
    get_logger,
    new_run_id,
    utc_now_iso,
)
from matsim_exporter.crs import resolve_crs
from matsim_exporter.idmapping import ComponentIdMappers
from matsim_exporter.model import MacroscopicNetwork, RoutedServices, ServiceNetwork, Zoning
from matsim_exporter.writers import (
    IntermodalWriterConfig,
    MatsimNetworkWriter,
    MatsimTransitScheduleWriter,
    NetworkWriterConfig,
    TransitWriterConfig,
    validate_network,
    validate_service_network,
    write_network_geometry,
    write_pt_stops,
)

from .context import RunContext
from .report import ExportReport, build_export_report
from .stage import FunctionStage, Stage, run_stage

STAGE_NETWORK = "network"
STAGE_NETWORK_GEOMETRY = "network_geometry"
STAGE_TRANSIT_SCHEDULE = "transit_schedule"
STAGE_PT_STOPS = "pt_stops"


class MatsimExporter:
    """
    Writes a network, optionally with its transit stops and scheduled services, to
    the simulator input format.

    Inputs and configuration are validated and the CRS is resolved before any file
    is created. The network document is always written first; its id mappers are
    reused by every later document of the run.
    """

    def __init__(
        self,
        config: IntermodalWriterConfig | NetworkWriterConfig | None = None,
        *,
        logger: ILogger | None = None,
    ) -> None:
        if isinstance(config, NetworkWriterConfig):
            config = IntermodalWriterConfig(network=config)
        self.config = config or IntermodalWriterConfig()
        self.log: ILogger = logger or get_logger("matsim_exporter")

        self.id_mappers: ComponentIdMappers | None = None
        self.last_report: ExportReport | None = None

    def reset(self) -> None:
        """Discard identifier state and the report of the previous run."""
        if self.id_mappers is not None:
            self.id_mappers.reset()
        self.id_mappers = None
        self.last_report = None

    def write_network(self, network: MacroscopicNetwork) -> ExportReport:
        return self._run(network)

    def write(self, network: MacroscopicNetwork, zoning: Zoning | None = None) -> ExportReport:
        return self._run(network, zoning=zoning)

    def write_with_services(
        self,
        network: MacroscopicNetwork,
        zoning: Zoning,
        service_network: ServiceNetwork,
        routed_services: RoutedServices,
    ) -> ExportReport:
        return self._run(
            network,
            zoning=zoning,
            service_network=service_network,
            routed_services=routed_services,
        )

    def _run(
        self,
        network: MacroscopicNetwork,
        *,
        zoning: Zoning | None = None,
        service_network: ServiceNetwork | None = None,
        routed_services: RoutedServices | None = None,
    ) -> ExportReport:
        run_id = new_run_id()
        bind(run_id=run_id)
        try:
            return self._run_bound(
                run_id, network, zoning, service_network, routed_services
            )
        finally:
            clear_bindings()

    def _run_bound(
        self,
        run_id: str,
        network: MacroscopicNetwork,
        zoning: Zoning | None,
        service_network: ServiceNetwork | None,
        routed_services: RoutedServices | None,
    ) -> ExportReport:
        log = self.log
        layer = validate_network(network)

        with_transit = zoning is not None
        if routed_services is not None:
            if not with_transit:
                raise StructuralError(
                    "routed services can only be written together with a zoning"
                )
            validate_service_network(service_network)
        if with_transit:
            self.config.check_consistency()

        net_cfg = self.config.network
        pt_cfg = self.config.resolved_transit()

        crs = resolve_crs(net_cfg.crs, net_cfg.country, network.crs, logger=log)
        net_cfg.mode_mapping.log_settings(network.modes or layer.modes(), logger=log)

        if self.id_mappers is not None:
            self.id_mappers.reset()
        self.id_mappers = ComponentIdMappers.create(net_cfg.id_mapper, logger=log)

        ctx = RunContext(
            run_id=run_id,
            logger=log,
            crs=crs,
            id_mappers=self.id_mappers,
            layer=layer,
        )
        stages = self._stages(
            net_cfg, pt_cfg, network, zoning, service_network, routed_services
        )

        started_at = utc_now_iso()
        log.info(
            "Export starting",
            stages=[s.stage_id for s in stages],
            output_dir=str(net_cfg.resolved_output_dir()),
            id_mapper=net_cfg.id_mapper.value,
        )

        total = len(stages)
        with Timer() as timer:
            try:
                for idx, st in enumerate(stages, start=1):
                    run_stage(ctx=ctx, stage=st, index=idx, total=total)
            except Exception:
                self.last_report = build_export_report(
                    run_id=run_id,
                    started_at_utc=started_at,
                    finished_at_utc=utc_now_iso(),
                    duration_ms=sum(s.duration_ms for s in ctx.results),
                    crs=crs.describe(),
                    stage_results=list(ctx.results),
                )
                log.error("Export failed", stage=ctx.results[-1].stage if ctx.results else None)
                raise

        report = build_export_report(
            run_id=run_id,
            started_at_utc=started_at,
            finished_at_utc=utc_now_iso(),
            duration_ms=timer.duration_ms or 0,
            crs=crs.describe(),
            stage_results=list(ctx.results),
        )
        self.last_report = report
        log.info(
            "Export complete",
            status=report.status,
            duration=format_duration_ms(report.duration_ms),
            **report.counts,
        )
        return report

    def _stages(
        self,
        net_cfg: NetworkWriterConfig,
        pt_cfg: TransitWriterConfig,
        network: MacroscopicNetwork,
        zoning: Zoning | None,
        service_network: ServiceNetwork | None,
        routed_services: RoutedServices | None,
    ) -> list[Stage]:
        def network_stage(ctx: RunContext) -> dict[str, Any]:
            writer = MatsimNetworkWriter(
                net_cfg, ctx.crs, ctx.id_mappers.network, logger=ctx.stage_logger(STAGE_NETWORK)
            )
            result = writer.write(network)
            ctx.network_result = result
            return {
                "network": result.path,
                "_metrics": {
                    "nodes": result.stats.nodes,
                    "links": result.stats.links,
                    "dropped_link_segments": result.stats.dropped_link_segments,
                },
            }

        def geometry_stage(ctx: RunContext) -> dict[str, Any]:
            path = net_cfg.geometry_path()
            rows = write_network_geometry(
                path,
                ctx.require_network(),
                ctx.id_mappers.network.link_segments,
                ctx.crs,
                net_cfg.coordinate_decimals,
                logger=ctx.stage_logger(STAGE_NETWORK_GEOMETRY),
            )
            return {"network_geometry": path, "_metrics": {"geometry_rows": rows}}

        def transit_stage(ctx: RunContext) -> dict[str, Any]:
            writer = MatsimTransitScheduleWriter(
                pt_cfg,
                ctx.crs,
                ctx.id_mappers,
                ctx.require_network(),
                logger=ctx.stage_logger(STAGE_TRANSIT_SCHEDULE),
            )
            result = writer.write(zoning, ctx.layer, service_network, routed_services)
            ctx.transit_result = result
            stats = result.stats
            return {
                "transit_schedule": result.path,
                "_metrics": {
                    "stop_facilities": stats.stop_facilities,
                    "discarded_stops": stats.discarded_stops,
                    "transit_lines": stats.transit_lines,
                    "skipped_lines": stats.skipped_lines,
                    "transit_routes": sum(stats.transit_routes.values()),
                },
            }

        def pt_stops_stage(ctx: RunContext) -> dict[str, Any]:
            if ctx.transit_result is None:
                raise RuntimeError("transit schedule stage has not run")
            path = pt_cfg.pt_stops_path()
            rows = write_pt_stops(
                path, ctx.transit_result.stops, logger=ctx.stage_logger(STAGE_PT_STOPS)
            )
            out: dict[str, Any] = {"_metrics": {"pt_stops": rows}}
            if rows:
                out["pt_stops"] = path
            return out

        stages: list[Stage] = [FunctionStage(STAGE_NETWORK, network_stage)]
        if net_cfg.generate_detailed_geometry:
            stages.append(FunctionStage(STAGE_NETWORK_GEOMETRY, geometry_stage))
        if zoning is not None:
            stages.append(FunctionStage(STAGE_TRANSIT_SCHEDULE, transit_stage))
            if pt_cfg.generate_matrix_router_file:
                stages.append(FunctionStage(STAGE_PT_STOPS, pt_stops_stage))
        return stages
