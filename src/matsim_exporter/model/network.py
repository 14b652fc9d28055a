from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from shapely.geometry import LineString, Point

from .modes import Mode

DEFAULT_CAPACITY_PER_LANE_PCU_H = 1800.0


@dataclass(eq=False, slots=True)
class Node:
    id: int
    position: Optional[Point] = None
    xml_id: str | None = None
    external_id: str | None = None


@dataclass(eq=False, slots=True)
class LinkSegmentType:
    """
    Shared properties of a class of link segments (e.g. 'primary road').
    """

    id: int
    name: str | None = None
    capacity_per_lane_pcu_h: float = DEFAULT_CAPACITY_PER_LANE_PCU_H
    max_speed_kmh: dict[Mode, float] = field(default_factory=dict)
    xml_id: str | None = None
    external_id: str | None = None


@dataclass(eq=False, slots=True)
class Link:
    """
    Undirected connection between two nodes with up to two directed segments.

    `length_km` wins when given; otherwise the length is derived from the geometry
    (or the straight line between the end nodes), assuming a metric CRS.
    """

    id: int
    node_a: Node
    node_b: Node
    geometry: Optional[LineString] = None
    xml_id: str | None = None
    external_id: str | None = None
    explicit_length_km: float | None = None
    segment_ab: Optional["LinkSegment"] = field(default=None, repr=False)
    segment_ba: Optional["LinkSegment"] = field(default=None, repr=False)

    @property
    def length_km(self) -> float:
        if self.explicit_length_km is not None:
            return self.explicit_length_km
        if self.geometry is not None:
            return self.geometry.length / 1000.0
        a, b = self.node_a.position, self.node_b.position
        if a is None or b is None:
            return 0.0
        return math.hypot(b.x - a.x, b.y - a.y) / 1000.0

    def segments(self) -> Iterator["LinkSegment"]:
        """Existing directed segments, forward first."""
        if self.segment_ab is not None:
            yield self.segment_ab
        if self.segment_ba is not None:
            yield self.segment_ba


@dataclass(eq=False, slots=True)
class LinkSegment:
    """
    One directed traversal of a parent link.

    `external_id` is mutable: the identifier mapper writes disambiguated tags back onto it.
    """

    id: int
    parent: Link
    direction_ab: bool
    allowed_modes: frozenset[Mode] = frozenset()
    segment_type: LinkSegmentType | None = None
    lanes: int = 1
    physical_speed_limit_kmh: float = 50.0
    capacity_pcu_h: float | None = None
    xml_id: str | None = None
    external_id: str | None = None

    @property
    def upstream_node(self) -> Node:
        return self.parent.node_a if self.direction_ab else self.parent.node_b

    @property
    def downstream_node(self) -> Node:
        return self.parent.node_b if self.direction_ab else self.parent.node_a

    @property
    def length_km(self) -> float:
        return self.parent.length_km

    @property
    def opposite_direction_segment(self) -> Optional["LinkSegment"]:
        return self.parent.segment_ba if self.direction_ab else self.parent.segment_ab

    def capacity_or_default_pcu_h(self) -> float:
        if self.capacity_pcu_h is not None:
            return self.capacity_pcu_h
        per_lane = (
            self.segment_type.capacity_per_lane_pcu_h
            if self.segment_type is not None
            else DEFAULT_CAPACITY_PER_LANE_PCU_H
        )
        return per_lane * self.lanes


def add_link_segment(link: Link, segment: LinkSegment) -> LinkSegment:
    """Register `segment` on its parent link in the slot matching its direction."""
    if segment.parent is not link:
        raise ValueError(f"link segment {segment.id} does not belong to link {link.id}")
    if segment.direction_ab:
        link.segment_ab = segment
    else:
        link.segment_ba = segment
    return segment


class NetworkLayer:
    """Marker base for the transport layers a network may carry."""

    id: int


@dataclass(eq=False)
class MacroscopicNetworkLayer(NetworkLayer):
    id: int = 0
    nodes: list[Node] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    supported_modes: frozenset[Mode] | None = None
    xml_id: str | None = None
    _entry_index: dict[int, list[LinkSegment]] | None = field(
        default=None, init=False, repr=False
    )

    def link_segments(self) -> Iterator[LinkSegment]:
        for link in self.links:
            yield from link.segments()

    def modes(self) -> frozenset[Mode]:
        """Supported modes, derived from the segments when not set explicitly."""
        if self.supported_modes is not None:
            return self.supported_modes
        found: set[Mode] = set()
        for ls in self.link_segments():
            found.update(ls.allowed_modes)
        return frozenset(found)

    def is_empty(self) -> bool:
        return not self.nodes and not self.links

    def entry_link_segments(self, node: Node) -> list[LinkSegment]:
        """Segments whose downstream node is `node`, in source order."""
        if self._entry_index is None:
            index: dict[int, list[LinkSegment]] = {}
            for ls in self.link_segments():
                index.setdefault(id(ls.downstream_node), []).append(ls)
            self._entry_index = index
        return list(self._entry_index.get(id(node), ()))


@dataclass(eq=False)
class MacroscopicNetwork:
    """
    The physical network handed to the writers.

    `crs` is anything `pyproj.CRS.from_user_input` accepts, or None when unknown.
    """

    layers: list[NetworkLayer] = field(default_factory=list)
    modes: list[Mode] = field(default_factory=list)
    crs: Any = None
    id: int = 0
