from __future__ import annotations

from dataclasses import dataclass, field

from .network import LinkSegment, Node


@dataclass(eq=False, slots=True)
class TransferZone:
    """A named area grouping one or more stop facilities, e.g. a station."""

    id: int
    name: str | None = None
    xml_id: str | None = None
    external_id: str | None = None

    def has_name(self) -> bool:
        return bool(self.name and self.name.strip())


@dataclass(eq=False, slots=True)
class TransferConnectoid:
    """
    Network-attached access point of one or more transfer zones.

    The stop location is the downstream node of the access link segment, or its
    upstream node when `node_access_downstream` is false.
    """

    id: int
    access_link_segment: LinkSegment | None
    access_zones: list[TransferZone] = field(default_factory=list)
    node_access_downstream: bool = True
    xml_id: str | None = None
    external_id: str | None = None

    @property
    def access_node(self) -> Node | None:
        if self.access_link_segment is None:
            return None
        if self.node_access_downstream:
            return self.access_link_segment.downstream_node
        return self.access_link_segment.upstream_node


@dataclass(eq=False)
class Zoning:
    transfer_zones: list[TransferZone] = field(default_factory=list)
    transfer_connectoids: list[TransferConnectoid] = field(default_factory=list)
