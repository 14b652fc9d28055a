from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from matsim_exporter.core import (
    ILogger,
    StructuralError,
    format_fixed,
    get_logger,
    km_to_m,
    kmh_to_ms,
)
from matsim_exporter.crs import ResolvedCrs
from matsim_exporter.idmapping import NetworkIdMappers
from matsim_exporter.model import (
    LinkSegment,
    MacroscopicNetwork,
    MacroscopicNetworkLayer,
    Mode,
    Node,
)

from .common import format_xy
from .settings import NetworkWriterConfig
from .xml import NETWORK_DOCTYPE, NetworkAttributes as A, NetworkElements as E
from .xml import XmlStreamWriter, xml_document


def validate_network(network: MacroscopicNetwork | None) -> MacroscopicNetworkLayer:
    """
    Return the single macroscopic layer of `network`, or raise StructuralError when
    the network has a shape the output format cannot express.
    """
    if network is None:
        raise StructuralError("no network provided")
    if not network.layers:
        raise StructuralError("network has no layers")
    if len(network.layers) != 1:
        raise StructuralError(
            f"network must have exactly one layer, found {len(network.layers)}"
        )
    layer = network.layers[0]
    if not isinstance(layer, MacroscopicNetworkLayer):
        raise StructuralError(
            f"unsupported network layer type {type(layer).__name__}, "
            "expected MacroscopicNetworkLayer"
        )
    if layer.is_empty():
        raise StructuralError("network layer is empty")
    return layer


@dataclass(slots=True)
class NetworkWriterStats:
    nodes: int = 0
    links: int = 0
    dropped_link_segments: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class NetworkWriteResult:
    """
    Outcome of one network write. `emitted_segments` holds the link segments present
    in the document, in document order.
    """

    path: Path
    stats: NetworkWriterStats
    mode_mapping: dict[Mode, str]
    emitted_link_ids: set[str] = field(default_factory=set)
    emitted_segments: list[LinkSegment] = field(default_factory=list)
    _emitted_keys: set[int] = field(default_factory=set, repr=False)

    def mark_emitted(self, link_segment: LinkSegment, link_id: str) -> None:
        self.emitted_segments.append(link_segment)
        self.emitted_link_ids.add(link_id)
        self._emitted_keys.add(id(link_segment))

    def was_emitted(self, link_segment: LinkSegment) -> bool:
        return id(link_segment) in self._emitted_keys


def supported_speed_kmh(
    link_segment: LinkSegment, mode_mapping: dict[Mode, str], restrict: bool
) -> float:
    speed = link_segment.physical_speed_limit_kmh
    if restrict and mode_mapping:
        speed = min(speed, min(m.max_speed_kmh for m in mode_mapping))
    return speed


def link_length_m(link_segment: LinkSegment, crs: ResolvedCrs) -> float:
    """
    Length in meters. An explicit length wins; otherwise the parent geometry (or the
    straight line between the end nodes) is measured, on the ellipsoid when the
    source CRS is geographic.
    """
    link = link_segment.parent
    if link.explicit_length_km is None and crs.geod is not None:
        if link.geometry is not None and not link.geometry.is_empty:
            xs, ys = link.geometry.xy
            return crs.source_length_m(xs, ys)
        a, b = link.node_a.position, link.node_b.position
        if a is not None and b is not None:
            return crs.source_length_m([a.x, b.x], [a.y, b.y])
    return km_to_m(link_segment.length_km)


def original_tag(link_segment: LinkSegment) -> str | None:
    tag = link_segment.external_id
    if tag is None:
        tag = link_segment.parent.external_id
    return None if tag is None else str(tag)


class MatsimNetworkWriter:
    """
    Streams the physical network: all nodes, then one link per link segment that
    carries at least one activated and mapped mode.
    """

    def __init__(
        self,
        config: NetworkWriterConfig,
        crs: ResolvedCrs,
        id_mappers: NetworkIdMappers,
        *,
        logger: ILogger | None = None,
    ) -> None:
        self.config = config
        self.crs = crs
        self.ids = id_mappers
        self.log = logger or get_logger(__name__)

    def write(self, network: MacroscopicNetwork) -> NetworkWriteResult:
        layer = validate_network(network)
        cfg = self.config

        mode_mapping = cfg.mode_mapping.activated_mapping(layer.modes(), logger=self.log)
        if not mode_mapping:
            self.log.warning("[IGNORED] no activated and mapped modes, network will have no links")

        path = cfg.network_path()
        self.log.info("Persisting network", path=str(path), id_mapper=cfg.id_mapper.value)

        result = NetworkWriteResult(
            path=path, stats=NetworkWriterStats(), mode_mapping=mode_mapping
        )
        with xml_document(path, doctype=NETWORK_DOCTYPE) as doc:
            with doc.element(E.NETWORK):
                with doc.element(E.NODES):
                    for node in layer.nodes:
                        self._write_node(doc, node)
                        result.stats.nodes += 1
                with doc.element(E.LINKS):
                    for link in layer.links:
                        for ls in link.segments():
                            self._write_link(doc, ls, result)

        if result.stats.dropped_link_segments:
            self.log.info(
                "[DISCARD] link segments without activated modes not written",
                count=result.stats.dropped_link_segments,
            )
        self.log.info("[STATS] network written", **result.stats.to_dict())
        return result

    def _write_node(self, doc: XmlStreamWriter, node: Node) -> None:
        attrib = {A.ID: self.ids.nodes.id_for(node)}
        xy = format_xy(node.position, self.crs, self.config.coordinate_decimals)
        if xy is not None:
            attrib[A.X], attrib[A.Y] = xy
        else:
            self.log.warning("node has no usable position, coordinates omitted", node_id=node.id)
        doc.leaf(E.NODE, attrib)

    def _write_link(
        self, doc: XmlStreamWriter, ls: LinkSegment, result: NetworkWriteResult
    ) -> None:
        mapping = result.mode_mapping
        tokens = sorted({mapping[m] for m in ls.allowed_modes if m in mapping})
        if not tokens:
            result.stats.dropped_link_segments += 1
            self.log.debug("[DISCARD] link segment without activated modes", link_segment_id=ls.id)
            return

        if ls.segment_type is None:
            raise StructuralError(
                f"link segment {ls.id} has no link segment type, which the network format requires"
            )

        cfg = self.config
        link_id = self.ids.link_segments.id_for(ls)
        # origid carries the tag as written back by the external id mapper
        origid = original_tag(ls)

        speed_kmh = supported_speed_kmh(ls, mapping, cfg.restrict_speed_by_supported_modes)
        attrib = {
            A.ID: link_id,
            A.FROM: self.ids.nodes.id_for(ls.upstream_node),
            A.TO: self.ids.nodes.id_for(ls.downstream_node),
            A.LENGTH: format_fixed(link_length_m(ls, self.crs), 2),
            A.FREESPEED: format_fixed(kmh_to_ms(speed_kmh), 2),
            A.CAPACITY: format_fixed(ls.capacity_or_default_pcu_h(), 1),
            A.PERMLANES: str(ls.lanes),
            A.MODES: ",".join(tokens),
        }
        if origid is not None:
            attrib[A.ORIGID] = origid
        if cfg.nt_category_fn is not None:
            attrib[A.NT_CATEGORY] = str(cfg.nt_category_fn(ls))
        if cfg.nt_type_fn is not None:
            attrib[A.NT_TYPE] = str(cfg.nt_type_fn(ls))
        if cfg.type_fn is not None:
            attrib[A.TYPE] = str(cfg.type_fn(ls))

        doc.leaf(E.LINK, attrib)
        result.stats.links += 1
        result.mark_emitted(ls, link_id)
