from __future__ import annotations

import itertools
from pathlib import Path

import pytest
from shapely.geometry import LineString, Point

from matsim_exporter.model import (
    Link,
    LinkSegment,
    LinkSegmentType,
    MacroscopicNetwork,
    MacroscopicNetworkLayer,
    Mode,
    Node,
    PredefinedModeType,
    RelativeLegTiming,
    RoutedService,
    RoutedServices,
    RoutedServicesLayer,
    RoutedTripSchedule,
    ServiceLegSegment,
    ServiceNetwork,
    ServiceNetworkLayer,
    TransferConnectoid,
    TransferZone,
    Zoning,
    add_link_segment,
)

# two transverse mercator definitions that differ only by false easting/northing
LOCAL_CRS = "+proj=tmerc +lat_0=0 +lon_0=0 +k=1 +x_0=0 +y_0=0 +ellps=GRS80 +units=m +no_defs"
SHIFTED_CRS = (
    "+proj=tmerc +lat_0=0 +lon_0=0 +k=1 +x_0=1000 +y_0=2000 +ellps=GRS80 +units=m +no_defs"
)


class NetworkBuilder:
    """Small in-memory networks for writer tests."""

    def __init__(self, crs: str | None = LOCAL_CRS) -> None:
        self.car = Mode.predefined(1, PredefinedModeType.CAR, 120.0)
        self.bus = Mode.predefined(2, PredefinedModeType.BUS, 80.0)
        self.road = LinkSegmentType(id=0, name="road", xml_id="road")
        self.layer = MacroscopicNetworkLayer()
        self.network = MacroscopicNetwork(
            layers=[self.layer], modes=[self.car, self.bus], crs=crs
        )
        self._node_ids = itertools.count()
        self._link_ids = itertools.count()
        self._segment_ids = itertools.count()

    def add_mode(self, mode: Mode) -> Mode:
        self.network.modes.append(mode)
        return mode

    def node(self, x: float, y: float, **kw) -> Node:
        n = Node(id=next(self._node_ids), position=Point(x, y), **kw)
        self.layer.nodes.append(n)
        return n

    def link(
        self,
        a: Node,
        b: Node,
        *,
        coords: list[tuple[float, float]] | None = None,
        modes: frozenset[Mode] | None = None,
        both: bool = True,
        external_id: str | None = None,
        segment_type: LinkSegmentType | None | bool = True,
        lanes: int = 1,
        speed_kmh: float = 50.0,
    ) -> Link:
        geometry = LineString(coords) if coords else None
        link = Link(
            id=next(self._link_ids),
            node_a=a,
            node_b=b,
            geometry=geometry,
            external_id=external_id,
        )
        allowed = modes if modes is not None else frozenset({self.car, self.bus})
        ls_type = self.road if segment_type is True else (segment_type or None)
        for direction_ab in (True, False) if both else (True,):
            add_link_segment(
                link,
                LinkSegment(
                    id=next(self._segment_ids),
                    parent=link,
                    direction_ab=direction_ab,
                    allowed_modes=allowed,
                    segment_type=ls_type,
                    lanes=lanes,
                    physical_speed_limit_kmh=speed_kmh,
                ),
            )
        self.layer.links.append(link)
        return link


class TransitFixture:
    """
    Three nodes on a line with two bidirectional links, three stops and one bus
    service running n0 -> n1 -> n2.
    """

    def __init__(self, builder: NetworkBuilder) -> None:
        b = builder
        self.builder = b
        self.n0 = b.node(0, 0)
        self.n1 = b.node(100, 0)
        self.n2 = b.node(200, 0)
        self.l0 = b.link(self.n0, self.n1)
        self.l1 = b.link(self.n1, self.n2)

        self.central = TransferZone(id=0, name="Central")
        self.north = TransferZone(id=1, name="North")
        self.plaza = TransferZone(id=2, name="  ")

        self.c0 = TransferConnectoid(
            id=0,
            access_link_segment=self.l0.segment_ab,
            access_zones=[self.central],
            node_access_downstream=False,
        )
        self.c1 = TransferConnectoid(
            id=1,
            access_link_segment=self.l0.segment_ab,
            access_zones=[self.central, self.plaza, self.north],
        )
        self.c2 = TransferConnectoid(
            id=2, access_link_segment=self.l1.segment_ab, access_zones=[self.north]
        )
        self.zoning = Zoning(
            transfer_zones=[self.central, self.north, self.plaza],
            transfer_connectoids=[self.c0, self.c1, self.c2],
        )

        self.leg0 = ServiceLegSegment(id=0, physical_segments=[self.l0.segment_ab])
        self.leg1 = ServiceLegSegment(id=1, physical_segments=[self.l1.segment_ab])
        self.service_network = ServiceNetwork(
            parent_network=b.network,
            layers=[ServiceNetworkLayer(leg_segments=[self.leg0, self.leg1])],
        )

        timings = [
            RelativeLegTiming(self.leg0, duration_s=120, dwell_time_s=0),
            RelativeLegTiming(self.leg1, duration_s=180, dwell_time_s=30),
        ]
        self.line = RoutedService(
            id=0,
            mode=b.bus,
            name="Line 1",
            schedules=[
                RoutedTripSchedule(id=0, departures=[28800, 90000], leg_timings=list(timings)),
                RoutedTripSchedule(id=1, departures=[30600, 28800], leg_timings=list(timings)),
            ],
        )
        self.routed_services = RoutedServices(
            service_network=self.service_network,
            layers=[RoutedServicesLayer(services=[self.line])],
        )


@pytest.fixture
def builder() -> NetworkBuilder:
    return NetworkBuilder()


@pytest.fixture
def transit(builder: NetworkBuilder) -> TransitFixture:
    return TransitFixture(builder)


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    return tmp_path / "out"
