from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class PredefinedModeType(StrEnum):
    BICYCLE = "bicycle"
    BUS = "bus"
    CAR = "car"
    CAR_SHARE = "car_share"
    CAR_HIGH_OCCUPANCY = "car_hov"
    GOODS_VEHICLE = "goods_vehicle"
    HEAVY_GOODS_VEHICLE = "heavy_goods_vehicle"
    LARGE_HEAVY_GOODS_VEHICLE = "large_heavy_goods_vehicle"
    LIGHTRAIL = "lightrail"
    MOTOR_BIKE = "motor_bike"
    PEDESTRIAN = "pedestrian"
    SUBWAY = "subway"
    TRAIN = "train"
    TRAM = "tram"
    FERRY = "ferry"
    CUSTOM = "custom"


class TrackModeType(StrEnum):
    ROAD = "road"
    RAIL = "rail"
    WATER = "water"


@dataclass(frozen=True, slots=True)
class Mode:
    """
    A travel mode of the source network.

    Identity is the internal `id`; modes are used as mapping keys throughout the writers.
    """

    id: int
    name: str
    max_speed_kmh: float
    predefined_type: PredefinedModeType = PredefinedModeType.CUSTOM
    track_type: TrackModeType = TrackModeType.ROAD
    xml_id: str | None = None
    external_id: str | None = None

    @property
    def is_predefined(self) -> bool:
        return self.predefined_type is not PredefinedModeType.CUSTOM

    @classmethod
    def predefined(
        cls,
        id: int,
        mode_type: PredefinedModeType,
        max_speed_kmh: float,
        *,
        track_type: TrackModeType | None = None,
    ) -> "Mode":
        if track_type is None:
            track_type = _DEFAULT_TRACK_TYPE.get(mode_type, TrackModeType.ROAD)
        return cls(
            id=id,
            name=mode_type.value,
            max_speed_kmh=max_speed_kmh,
            predefined_type=mode_type,
            track_type=track_type,
            xml_id=mode_type.value,
        )


_DEFAULT_TRACK_TYPE: dict[PredefinedModeType, TrackModeType] = {
    PredefinedModeType.LIGHTRAIL: TrackModeType.RAIL,
    PredefinedModeType.SUBWAY: TrackModeType.RAIL,
    PredefinedModeType.TRAIN: TrackModeType.RAIL,
    PredefinedModeType.TRAM: TrackModeType.RAIL,
    PredefinedModeType.FERRY: TrackModeType.WATER,
}
