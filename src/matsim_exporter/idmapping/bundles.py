from __future__ import annotations

from dataclasses import dataclass

from matsim_exporter.core import ILogger

from .mapper import IdMapper, IdMapperType


@dataclass(slots=True)
class NetworkIdMappers:
    nodes: IdMapper
    link_segments: IdMapper

    @classmethod
    def create(
        cls, strategy: IdMapperType, *, logger: ILogger | None = None
    ) -> "NetworkIdMappers":
        return cls(
            nodes=IdMapper("node", strategy, logger=logger),
            link_segments=IdMapper("link_segment", strategy, logger=logger),
        )

    def reset(self) -> None:
        self.nodes.reset()
        self.link_segments.reset()


@dataclass(slots=True)
class ZoningIdMappers:
    connectoids: IdMapper

    @classmethod
    def create(
        cls, strategy: IdMapperType, *, logger: ILogger | None = None
    ) -> "ZoningIdMappers":
        return cls(connectoids=IdMapper("transfer_connectoid", strategy, logger=logger))

    def reset(self) -> None:
        self.connectoids.reset()


@dataclass(slots=True)
class ServiceIdMappers:
    routed_services: IdMapper

    @classmethod
    def create(
        cls, strategy: IdMapperType, *, logger: ILogger | None = None
    ) -> "ServiceIdMappers":
        return cls(routed_services=IdMapper("routed_service", strategy, logger=logger))

    def reset(self) -> None:
        self.routed_services.reset()


@dataclass(slots=True)
class ComponentIdMappers:
    """All per-category mappers of one run; the transit writer reuses `network`."""

    strategy: IdMapperType
    network: NetworkIdMappers
    zoning: ZoningIdMappers
    services: ServiceIdMappers

    @classmethod
    def create(
        cls, strategy: IdMapperType = IdMapperType.ID, *, logger: ILogger | None = None
    ) -> "ComponentIdMappers":
        strategy = IdMapperType(strategy)
        return cls(
            strategy=strategy,
            network=NetworkIdMappers.create(strategy, logger=logger),
            zoning=ZoningIdMappers.create(strategy, logger=logger),
            services=ServiceIdMappers.create(strategy, logger=logger),
        )

    def reset(self) -> None:
        self.network.reset()
        self.zoning.reset()
        self.services.reset()
