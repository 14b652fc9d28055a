"""
Transit schedule document: stop facilities, then (when services are given)
transit lines with their routes and departures.

Stop facilities reference link ids produced by the network writer of the same
run; a stop or line that would reference a link missing from the network
document is skipped instead.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from matsim_exporter.core import ILogger, StructuralError, format_hhmmss, get_logger
from matsim_exporter.crs import ResolvedCrs
from matsim_exporter.idmapping import ComponentIdMappers
from matsim_exporter.model import (
    LinkSegment,
    MacroscopicNetworkLayer,
    Mode,
    RoutedService,
    RoutedServices,
    RoutedTripSchedule,
    ServiceNetwork,
    TrackModeType,
    TransferConnectoid,
    Zoning,
)

from .common import format_xy
from .network import NetworkWriteResult
from .settings import TransitWriterConfig
from .xml import TRANSIT_SCHEDULE_DOCTYPE, TransitAttributes as A, TransitElements as E
from .xml import XmlStreamWriter, xml_bool, xml_document

STOP_NAME_SEPARATOR = "-"


@dataclass(frozen=True, slots=True)
class StopFacility:
    id: str
    x: str | None
    y: str | None
    link_ref_id: str
    name: str | None = None


@dataclass(slots=True)
class TransitWriterStats:
    stop_facilities: int = 0
    discarded_stops: int = 0
    transit_lines: int = 0
    skipped_lines: int = 0
    transit_routes: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class TransitWriteResult:
    path: Path
    stats: TransitWriterStats
    stops: list[StopFacility] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class _ProfileStop:
    ref_id: str
    arrival_offset_s: int | None
    departure_offset_s: int


@dataclass(slots=True)
class _PlannedRoute:
    mode_token: str
    description: str | None
    stops: list[_ProfileStop]
    link_ref_ids: list[str]
    departures: list[int]


def stop_facility_name(connectoid: TransferConnectoid) -> str | None:
    names = [z.name.strip() for z in connectoid.access_zones if z.has_name()]
    joined = STOP_NAME_SEPARATOR.join(names)
    return joined or None


class _StopLookup:
    """Stop facility id by (access link segment, downstream access)."""

    def __init__(self) -> None:
        self._by_key: dict[tuple[int, bool], str] = {}

    def register(self, link_segment: LinkSegment, downstream: bool, stop_id: str) -> None:
        self._by_key.setdefault((id(link_segment), downstream), stop_id)

    def get(self, link_segment: LinkSegment, downstream: bool) -> str | None:
        return self._by_key.get((id(link_segment), downstream))


class MatsimTransitScheduleWriter:
    def __init__(
        self,
        config: TransitWriterConfig,
        crs: ResolvedCrs,
        id_mappers: ComponentIdMappers,
        network_result: NetworkWriteResult,
        *,
        logger: ILogger | None = None,
    ) -> None:
        self.config = config
        self.crs = crs
        self.ids = id_mappers
        self.network_result = network_result
        self.log = logger or get_logger(__name__)

        self._layer: MacroscopicNetworkLayer | None = None
        self._stops = _StopLookup()
        self._logged_frequency_warning = False

    def write(
        self,
        zoning: Zoning,
        layer: MacroscopicNetworkLayer,
        service_network: ServiceNetwork | None = None,
        routed_services: RoutedServices | None = None,
    ) -> TransitWriteResult:
        if zoning is None:
            raise StructuralError("transit schedule requires a zoning")
        if routed_services is not None:
            validate_service_network(service_network)

        self._layer = layer
        self._stops = _StopLookup()
        self._logged_frequency_warning = False

        path = self.config.schedule_path()
        self.log.info("Persisting transit schedule", path=str(path))

        stats = TransitWriterStats()
        result = TransitWriteResult(path=path, stats=stats)

        stops = self._collect_stops(zoning, stats)
        result.stops = stops

        lines: list[tuple[RoutedService, str, list[_PlannedRoute]]] = []
        if routed_services is not None:
            mode_tokens = self._mode_tokens(layer)
            stats.transit_routes = {token: 0 for token in sorted(set(mode_tokens.values()))}
            for services_layer in routed_services.layers:
                for service in services_layer.services:
                    planned = self._plan_line(service, mode_tokens)
                    if planned is None:
                        stats.skipped_lines += 1
                        continue
                    lines.append(planned)

        with xml_document(path, doctype=TRANSIT_SCHEDULE_DOCTYPE) as doc:
            with doc.element(E.TRANSIT_SCHEDULE):
                with doc.element(E.TRANSIT_STOPS):
                    for stop in stops:
                        self._write_stop(doc, stop)
                for service, line_id, routes in lines:
                    self._write_line(doc, service, line_id, routes, stats)

        stats.stop_facilities = len(stops)
        self.log.info(
            "[STATS] transit schedule written",
            stop_facilities=stats.stop_facilities,
            transit_lines=stats.transit_lines,
        )
        for token, count in stats.transit_routes.items():
            self.log.info("[STATS] transit routes", mode=token, count=count)
        return result

    # stops

    def _collect_stops(self, zoning: Zoning, stats: TransitWriterStats) -> list[StopFacility]:
        decimals = self.config.decimals()
        out: list[StopFacility] = []
        for connectoid in zoning.transfer_connectoids:
            access = connectoid.access_link_segment
            if access is None:
                stats.discarded_stops += 1
                self.log.warning(
                    "[DISCARD] stop facility without access link segment",
                    connectoid_id=connectoid.id,
                )
                continue
            if not self.network_result.was_emitted(access):
                stats.discarded_stops += 1
                self.log.warning(
                    "[DISCARD] stop facility access link segment not present in network",
                    connectoid_id=connectoid.id,
                    link_segment_id=access.id,
                )
                continue

            stop_id = self.ids.zoning.connectoids.id_for(connectoid)
            xy = format_xy(connectoid.access_node.position, self.crs, decimals)
            if xy is None:
                self.log.warning(
                    "stop facility has no usable position, coordinates omitted",
                    connectoid_id=connectoid.id,
                )
            out.append(
                StopFacility(
                    id=stop_id,
                    x=xy[0] if xy else None,
                    y=xy[1] if xy else None,
                    link_ref_id=self.ids.network.link_segments.id_for(access),
                    name=stop_facility_name(connectoid),
                )
            )
            self._stops.register(access, connectoid.node_access_downstream, stop_id)
        return out

    def _write_stop(self, doc: XmlStreamWriter, stop: StopFacility) -> None:
        attrib = {A.ID: stop.id}
        if stop.x is not None and stop.y is not None:
            attrib[A.X] = stop.x
            attrib[A.Y] = stop.y
        attrib[A.LINK_REF_ID] = stop.link_ref_id
        if stop.name is not None:
            attrib[A.NAME] = stop.name
        attrib[A.IS_BLOCKING] = xml_bool(self.config.stop_facilities_blocking)
        doc.leaf(E.STOP_FACILITY, attrib)

    # services

    def _mode_tokens(self, layer: MacroscopicNetworkLayer) -> dict[Mode, str]:
        mapping = self.config.mode_mapping
        if mapping is None:
            return dict(self.network_result.mode_mapping)
        return mapping.activated_mapping(layer.modes(), logger=self.log)

    def _plan_line(
        self, service: RoutedService, mode_tokens: dict[Mode, str]
    ) -> tuple[RoutedService, str, list[_PlannedRoute]] | None:
        log = self.log.bind(service_id=service.id)

        if not service.schedules:
            if service.frequency_trips and not self._logged_frequency_warning:
                log.warning(
                    "[IGNORED] frequency based services have no schedule and are not written"
                )
                self._logged_frequency_warning = True
            return None

        token = mode_tokens.get(service.mode)
        if token is None:
            log.warning("[IGNORED] no destination mode for service mode", mode=service.mode.name)
            return None

        routes: list[_PlannedRoute] = []
        for schedules in _group_by_leg_timings(service.schedules).values():
            reference = schedules[0]
            stops = self._route_profile(service, reference)
            if stops is None:
                return None
            link_ref_ids = self._route_links(reference, log)
            if link_ref_ids is None:
                return None
            routes.append(
                _PlannedRoute(
                    mode_token=token,
                    description=service.name or None,
                    stops=stops,
                    link_ref_ids=link_ref_ids,
                    departures=self._departures(schedules, log),
                )
            )
        # skipped lines never reach the mapper
        line_id = self.ids.services.routed_services.id_for(service)
        return service, line_id, routes

    def _route_profile(
        self, service: RoutedService, schedule: RoutedTripSchedule
    ) -> list[_ProfileStop] | None:
        timings = schedule.leg_timings
        if not timings:
            self.log.warning("[IGNORED] trip schedule without leg timings", schedule_id=schedule.id)
            return None

        first_leg = timings[0].leg_segment.physical_segments
        if not first_leg:
            self.log.warning("[IGNORED] service leg without physical link segments")
            return None
        first_ref = self._upstream_stop(first_leg[0], service.mode)
        if first_ref is None:
            return None

        stops = [_ProfileStop(first_ref, None, timings[0].dwell_time_s)]
        elapsed = 0
        for i, timing in enumerate(timings):
            physical = timing.leg_segment.physical_segments
            if not physical:
                self.log.warning("[IGNORED] service leg without physical link segments")
                return None
            ref = self._stops.get(physical[-1], True)
            if ref is None:
                self.log.warning(
                    "[IGNORED] no stop facility at end of service leg",
                    link_segment_id=physical[-1].id,
                )
                return None
            elapsed += timing.dwell_time_s + timing.duration_s
            next_dwell = timings[i + 1].dwell_time_s if i + 1 < len(timings) else 0
            stops.append(_ProfileStop(ref, elapsed, elapsed + next_dwell))
        return stops

    def _upstream_stop(self, access: LinkSegment, mode: Mode) -> str | None:
        """
        Stop at the start of a route. The connectoid may sit on an entry segment of the
        upstream node instead; road modes may not use the reverse of `access` for it.
        """
        ref = self._stops.get(access, False)
        if ref is not None:
            return ref

        allow_u_turn = mode.track_type is not TrackModeType.ROAD
        for entry in self._layer.entry_link_segments(access.upstream_node):
            if entry.opposite_direction_segment is access and not allow_u_turn:
                continue
            ref = self._stops.get(entry, True)
            if ref is not None:
                return ref

        self.log.warning(
            "[IGNORED] no stop facility at start of route", link_segment_id=access.id
        )
        return None

    def _route_links(self, schedule: RoutedTripSchedule, log: ILogger) -> list[str] | None:
        link_map = self.ids.network.link_segments
        out: list[str] = []
        for timing in schedule.leg_timings:
            for ls in timing.leg_segment.physical_segments:
                if not self.network_result.was_emitted(ls):
                    log.warning(
                        "[IGNORED] route uses link segment not present in network",
                        link_segment_id=ls.id,
                    )
                    return None
                out.append(link_map.id_for(ls))
        return out

    def _departures(self, schedules: list[RoutedTripSchedule], log: ILogger) -> list[int]:
        seen = Counter(t for s in schedules for t in s.departures)
        duplicates = sorted(t for t, n in seen.items() if n > 1)
        if duplicates:
            log.warning(
                "[DUPLICATE] identical departure times on same route, duplicates ignored",
                departures=[format_hhmmss(t) for t in duplicates],
            )
        return sorted(seen)

    def _write_line(
        self,
        doc: XmlStreamWriter,
        service: RoutedService,
        line_id: str,
        routes: list[_PlannedRoute],
        stats: TransitWriterStats,
    ) -> None:
        attrib = {A.ID: line_id}
        name = service.display_name()
        if name:
            attrib[A.NAME] = name

        await_departure = xml_bool(self.config.await_departure)
        with doc.element(E.TRANSIT_LINE, attrib):
            for route_no, route in enumerate(routes, start=1):
                with doc.element(E.TRANSIT_ROUTE, {A.ID: str(route_no)}):
                    doc.text_element(E.TRANSPORT_MODE, route.mode_token)
                    if route.description:
                        doc.text_element(E.DESCRIPTION, route.description)
                    with doc.element(E.ROUTE_PROFILE):
                        for stop in route.stops:
                            stop_attrib = {A.REF_ID: stop.ref_id}
                            if stop.arrival_offset_s is not None:
                                stop_attrib[A.ARRIVAL_OFFSET] = format_hhmmss(stop.arrival_offset_s)
                            stop_attrib[A.DEPARTURE_OFFSET] = format_hhmmss(stop.departure_offset_s)
                            stop_attrib[A.AWAIT_DEPARTURE] = await_departure
                            doc.leaf(E.STOP, stop_attrib)
                    with doc.element(E.ROUTE):
                        for link_ref_id in route.link_ref_ids:
                            doc.leaf(E.LINK, {A.REF_ID: link_ref_id})
                    with doc.element(E.DEPARTURES):
                        for dep_no, departure in enumerate(route.departures, start=1):
                            doc.leaf(
                                E.DEPARTURE,
                                {A.ID: str(dep_no), A.DEPARTURE_TIME: format_hhmmss(departure)},
                            )
                stats.transit_routes[route.mode_token] = (
                    stats.transit_routes.get(route.mode_token, 0) + 1
                )
        stats.transit_lines += 1


def _group_by_leg_timings(
    schedules: list[RoutedTripSchedule],
) -> dict[tuple[tuple[int, int, int], ...], list[RoutedTripSchedule]]:
    grouped: dict[tuple[tuple[int, int, int], ...], list[RoutedTripSchedule]] = {}
    for s in schedules:
        grouped.setdefault(s.timing_key(), []).append(s)
    return grouped


def validate_service_network(service_network: ServiceNetwork | None) -> None:
    if service_network is None:
        raise StructuralError("routed services given without their service network")
    if len(service_network.layers) != 1:
        raise StructuralError(
            f"service network must have exactly one layer, found {len(service_network.layers)}"
        )
