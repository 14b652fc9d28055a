from .bundles import ComponentIdMappers, NetworkIdMappers, ServiceIdMappers, ZoningIdMappers
from .mapper import IdMapper, IdMapperType

__all__ = [
    "IdMapper",
    "IdMapperType",
    "NetworkIdMappers",
    "ZoningIdMappers",
    "ServiceIdMappers",
    "ComponentIdMappers",
]
