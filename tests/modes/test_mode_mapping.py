from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from matsim_exporter.model import Mode, PredefinedModeType as M
from matsim_exporter.modes import (
    DEFAULT_ACTIVATED_MODES,
    DEFAULT_MODE_MAPPING,
    ModeMapping,
)

CAR = Mode.predefined(1, M.CAR, 120.0)
BUS = Mode.predefined(2, M.BUS, 80.0)
TRAM = Mode.predefined(3, M.TRAM, 60.0)
BICYCLE = Mode.predefined(4, M.BICYCLE, 20.0)
HOVERCRAFT = Mode(id=5, name="hovercraft", max_speed_kmh=40.0)


def test_defaults() -> None:
    assert DEFAULT_MODE_MAPPING[M.BUS] == "pt"
    assert DEFAULT_MODE_MAPPING[M.LIGHTRAIL] == "pt"
    assert DEFAULT_MODE_MAPPING[M.GOODS_VEHICLE] == "car"
    assert M.BICYCLE not in DEFAULT_MODE_MAPPING
    assert M.PEDESTRIAN not in DEFAULT_ACTIVATED_MODES
    assert M.CUSTOM not in DEFAULT_ACTIVATED_MODES
    with pytest.raises(TypeError):
        DEFAULT_MODE_MAPPING[M.BICYCLE] = "bike"  # type: ignore[index]


def test_tokens_cannot_be_changed_in_place() -> None:
    for m in (
        ModeMapping(),
        ModeMapping(tokens={M.BUS: "pt"}),
        ModeMapping().with_mode_token(M.BUS, "bus"),
        ModeMapping().activate(M.BICYCLE),
    ):
        with pytest.raises(TypeError):
            m.tokens[M.CAR] = "truck"  # type: ignore[index]
    assert ModeMapping().token_for(M.CAR) == "car"


def test_default_activated_mapping() -> None:
    got = ModeMapping().activated_mapping([CAR, BUS, TRAM, BICYCLE, HOVERCRAFT])
    assert got == {CAR: "car", BUS: "pt", TRAM: "pt"}


def test_modifiers_return_new_instances() -> None:
    base = ModeMapping()
    changed = base.with_mode_token(M.BUS, "bus")
    assert base.token_for(M.BUS) == "pt"
    assert changed.token_for(M.BUS) == "bus"

    off = changed.deactivate(M.CAR)
    assert changed.is_activated(M.CAR)
    assert not off.is_activated(M.CAR)
    assert off.activated_mapping([CAR, BUS]) == {BUS: "bus"}

    assert base.deactivate_all().activated_mapping([CAR, BUS, TRAM]) == {}


def test_activate_keeps_configured_token() -> None:
    m = ModeMapping().with_mode_token(M.BICYCLE, "bike").activate(M.BICYCLE)
    assert m.activated_mapping([BICYCLE]) == {BICYCLE: "bike"}

    d = ModeMapping().activate(M.BICYCLE)
    assert d.activated_mapping([BICYCLE]) == {BICYCLE: "car"}


def test_custom_mode_cannot_be_mapped() -> None:
    with pytest.raises(ValueError):
        ModeMapping().with_mode_token(M.CUSTOM, "hover")
    with pytest.raises(ValueError):
        ModeMapping().activate(M.CUSTOM)


def test_activated_mode_without_token_is_skipped() -> None:
    m = ModeMapping(tokens={M.BUS: "pt"}, activated=frozenset({M.BUS, M.CAR}))
    assert m.activated_mapping([CAR, BUS]) == {BUS: "pt"}


def test_log_settings_records_decisions() -> None:
    m = ModeMapping(tokens={M.BUS: "pt"}, activated=frozenset({M.BUS, M.CAR}))
    with capture_logs() as logs:
        m.log_settings([CAR, BUS, BICYCLE, HOVERCRAFT])
    events = [(e["event"], e.get("mode")) for e in logs]
    assert ("[ACTIVATED] mode", "bus") in events
    assert ("[DEACTIVATED] mode", "bicycle") in events
    assert any(ev.startswith("[IGNORED]") and mode == "hovercraft" for ev, mode in events)
    assert any(ev.startswith("[IGNORED]") and mode == "car" for ev, mode in events)
