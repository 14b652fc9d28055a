"""
Mapping of source modes onto destination mode tokens.

Only predefined modes can be mapped; custom modes have no destination
equivalent and are always skipped. A mode contributes to the output when it is
activated and has a non-blank token.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from matsim_exporter.core import ILogger, get_logger
from matsim_exporter.model import Mode, PredefinedModeType

PUBLIC_TRANSPORT_TOKEN = "pt"
PRIVATE_TRANSPORT_TOKEN = "car"

_PUBLIC_TRANSPORT_TYPES = frozenset(
    {
        PredefinedModeType.BUS,
        PredefinedModeType.SUBWAY,
        PredefinedModeType.TRAIN,
        PredefinedModeType.TRAM,
        PredefinedModeType.LIGHTRAIL,
    }
)

_EXCLUDED_BY_DEFAULT = frozenset(
    {
        PredefinedModeType.CUSTOM,
        PredefinedModeType.BICYCLE,
        PredefinedModeType.PEDESTRIAN,
    }
)


def default_token(mode_type: PredefinedModeType) -> str:
    if mode_type in _PUBLIC_TRANSPORT_TYPES:
        return PUBLIC_TRANSPORT_TOKEN
    return PRIVATE_TRANSPORT_TOKEN


DEFAULT_MODE_MAPPING: Mapping[PredefinedModeType, str] = MappingProxyType(
    {t: default_token(t) for t in PredefinedModeType if t not in _EXCLUDED_BY_DEFAULT}
)

DEFAULT_ACTIVATED_MODES: frozenset[PredefinedModeType] = frozenset(
    t for t in PredefinedModeType if t not in _EXCLUDED_BY_DEFAULT
)


class ModeMapping(BaseModel):
    """
    Immutable mode mapping. Every modifier returns a new instance.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    tokens: Mapping[PredefinedModeType, str] = Field(
        default_factory=lambda: DEFAULT_MODE_MAPPING
    )
    activated: frozenset[PredefinedModeType] = Field(
        default_factory=lambda: DEFAULT_ACTIVATED_MODES
    )

    @field_validator("tokens")
    @classmethod
    def _freeze_tokens(
        cls, v: Mapping[PredefinedModeType, str]
    ) -> Mapping[PredefinedModeType, str]:
        return MappingProxyType(dict(v))

    def token_for(self, mode_type: PredefinedModeType) -> str | None:
        token = self.tokens.get(mode_type)
        if token is None or not token.strip():
            return None
        return token

    def is_activated(self, mode_type: PredefinedModeType) -> bool:
        return mode_type in self.activated

    def with_mode_token(self, mode_type: PredefinedModeType, token: str) -> "ModeMapping":
        mode_type = PredefinedModeType(mode_type)
        if mode_type is PredefinedModeType.CUSTOM:
            raise ValueError("custom modes cannot be mapped")
        tokens = dict(self.tokens)
        tokens[mode_type] = token
        return self.model_copy(update={"tokens": MappingProxyType(tokens)})

    def activate(self, mode_type: PredefinedModeType) -> "ModeMapping":
        mode_type = PredefinedModeType(mode_type)
        if mode_type is PredefinedModeType.CUSTOM:
            raise ValueError("custom modes cannot be activated")
        tokens = dict(self.tokens)
        if self.token_for(mode_type) is None:
            tokens[mode_type] = default_token(mode_type)
        return self.model_copy(
            update={
                "tokens": MappingProxyType(tokens),
                "activated": self.activated | {mode_type},
            }
        )

    def deactivate(self, mode_type: PredefinedModeType) -> "ModeMapping":
        mode_type = PredefinedModeType(mode_type)
        if mode_type not in self.activated:
            return self
        return self.model_copy(update={"activated": self.activated - {mode_type}})

    def deactivate_all(self) -> "ModeMapping":
        return self.model_copy(update={"activated": frozenset()})

    def activated_mapping(
        self, modes: Iterable[Mode], *, logger: ILogger | None = None
    ) -> dict[Mode, str]:
        """
        Token per mode for the modes that are activated and mapped. Skipped modes are
        logged at debug level; `log_settings` reports them once per run.
        """
        log = logger or get_logger(__name__)
        out: dict[Mode, str] = {}
        for mode in modes:
            if not mode.is_predefined:
                log.debug("[IGNORED] custom mode has no destination token", mode=mode.name)
                continue
            if mode.predefined_type not in self.activated:
                continue
            token = self.token_for(mode.predefined_type)
            if token is None:
                log.debug(
                    "[IGNORED] activated mode has no destination token",
                    mode=mode.predefined_type.value,
                )
                continue
            out[mode] = token
        return out

    def log_settings(self, modes: Iterable[Mode], *, logger: ILogger | None = None) -> None:
        log = logger or get_logger(__name__)
        for mode in modes:
            if not mode.is_predefined:
                log.warning(
                    "[IGNORED] only predefined modes can be written, custom mode skipped",
                    mode=mode.name,
                )
                continue
            mode_type = mode.predefined_type
            if mode_type not in self.activated:
                log.info("[DEACTIVATED] mode", mode=mode_type.value)
                continue
            token = self.token_for(mode_type)
            if token is None:
                log.warning(
                    "[IGNORED] activated mode without destination token, provide an explicit mapping",
                    mode=mode_type.value,
                )
            else:
                log.info("[ACTIVATED] mode", mode=mode_type.value, token=token)
