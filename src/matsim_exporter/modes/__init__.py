from .mapping import (
    DEFAULT_ACTIVATED_MODES,
    DEFAULT_MODE_MAPPING,
    PRIVATE_TRANSPORT_TOKEN,
    PUBLIC_TRANSPORT_TOKEN,
    ModeMapping,
    default_token,
)

__all__ = [
    "DEFAULT_ACTIVATED_MODES",
    "DEFAULT_MODE_MAPPING",
    "PRIVATE_TRANSPORT_TOKEN",
    "PUBLIC_TRANSPORT_TOKEN",
    "ModeMapping",
    "default_token",
]
