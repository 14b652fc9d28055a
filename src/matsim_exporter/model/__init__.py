from .modes import Mode, PredefinedModeType, TrackModeType
from .network import (
    Link,
    LinkSegment,
    LinkSegmentType,
    MacroscopicNetwork,
    MacroscopicNetworkLayer,
    NetworkLayer,
    Node,
    add_link_segment,
)
from .services import (
    RelativeLegTiming,
    RoutedService,
    RoutedServices,
    RoutedServicesLayer,
    RoutedTripSchedule,
    ServiceLegSegment,
    ServiceNetwork,
    ServiceNetworkLayer,
)
from .zoning import TransferConnectoid, TransferZone, Zoning

__all__ = [
    "Mode",
    "PredefinedModeType",
    "TrackModeType",
    "Node",
    "Link",
    "LinkSegment",
    "LinkSegmentType",
    "NetworkLayer",
    "MacroscopicNetworkLayer",
    "MacroscopicNetwork",
    "add_link_segment",
    "TransferZone",
    "TransferConnectoid",
    "Zoning",
    "ServiceLegSegment",
    "ServiceNetworkLayer",
    "ServiceNetwork",
    "RelativeLegTiming",
    "RoutedTripSchedule",
    "RoutedService",
    "RoutedServicesLayer",
    "RoutedServices",
]
