from __future__ import annotations

from dataclasses import dataclass, field

from .modes import Mode
from .network import LinkSegment, MacroscopicNetwork


@dataclass(eq=False, slots=True)
class ServiceLegSegment:
    """Directed leg between two consecutive service stops, routed over physical segments."""

    id: int
    physical_segments: list[LinkSegment] = field(default_factory=list)
    xml_id: str | None = None


@dataclass(eq=False)
class ServiceNetworkLayer:
    id: int = 0
    leg_segments: list[ServiceLegSegment] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.leg_segments


@dataclass(eq=False)
class ServiceNetwork:
    parent_network: MacroscopicNetwork
    layers: list[ServiceNetworkLayer] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class RelativeLegTiming:
    """Travel time over one leg plus the dwell time at the stop the leg starts from."""

    leg_segment: ServiceLegSegment
    duration_s: int
    dwell_time_s: int = 0

    def key(self) -> tuple[int, int, int]:
        return (self.leg_segment.id, self.duration_s, self.dwell_time_s)


@dataclass(eq=False, slots=True)
class RoutedTripSchedule:
    """
    Trips sharing one sequence of leg timings, departing at `departures`
    (seconds after midnight, values past 24h allowed).
    """

    id: int
    departures: list[int] = field(default_factory=list)
    leg_timings: list[RelativeLegTiming] = field(default_factory=list)
    external_id: str | None = None

    def timing_key(self) -> tuple[tuple[int, int, int], ...]:
        return tuple(t.key() for t in self.leg_timings)


@dataclass(eq=False, slots=True)
class RoutedService:
    id: int
    mode: Mode
    name: str | None = None
    name_description: str | None = None
    schedules: list[RoutedTripSchedule] = field(default_factory=list)
    frequency_trips: int = 0
    xml_id: str | None = None
    external_id: str | None = None

    def display_name(self) -> str | None:
        return self.name or self.name_description or None


@dataclass(eq=False)
class RoutedServicesLayer:
    id: int = 0
    services: list[RoutedService] = field(default_factory=list)


@dataclass(eq=False)
class RoutedServices:
    service_network: ServiceNetwork
    layers: list[RoutedServicesLayer] = field(default_factory=list)
