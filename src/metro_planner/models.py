"""Route and segment value types shared by every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from .geo import compass_direction
from .stations import Station


class SegmentKind(str, Enum):
    TRANSIT = "transit"
    WALK = "walk"


class ErrorCode(str, Enum):
    SAME_STATION = "SAME_STATION"
    INVALID_STATION = "INVALID_STATION"


@dataclass(frozen=True)
class RoutingError:
    """Failure result of a planning request."""
    code: ErrorCode
    message: str


class InvalidSegment(ValueError):
    """Raised when a segment cannot be built from the given stations."""


@dataclass(frozen=True)
class LineRef:
    """The parts of a line a segment needs to carry."""
    id: str
    name: str
    color: str
    fare: float = 0.0


@dataclass(frozen=True)
class TransitSegment:
    """A ride on one line through an ordered run of stations."""
    line: LineRef
    stations: tuple[Station, ...]
    duration: float
    distance: float
    stop_wait_time: float

    kind = SegmentKind.TRANSIT

    @property
    def fare(self) -> float:
        return self.line.fare

    @property
    def stops(self) -> int:
        return len(self.stations) - 1

    def __str__(self):
        return (f"Take {self.line.name} from {self.stations[0].name} to {self.stations[-1].name} "
                f"({self.stops} stops, ~{round(self.duration / 60)} min)")


@dataclass(frozen=True)
class WalkSegment:
    """A walk between two stations."""
    stations: tuple[Station, Station]
    distance: float
    duration: float

    kind = SegmentKind.WALK

    @property
    def fare(self) -> float:
        return 0.0

    def __str__(self):
        direction = compass_direction(self.stations[0].coordinates, self.stations[1].coordinates)
        return (f"Walk {direction} from {self.stations[0].name} to {self.stations[1].name} "
                f"({round(self.distance)} m, ~{round(self.duration / 60)} min)")


Segment = Union[TransitSegment, WalkSegment]


@dataclass(frozen=True)
class Route:
    """A complete journey with its aggregates."""
    id: str
    segments: tuple[Segment, ...]
    total_duration: float
    total_distance: float
    total_stops: int
    transfers: int
    total_fare: float
    requested_origin: Optional[str] = None

    @property
    def first_station(self) -> Station:
        return self.segments[0].stations[0]

    @property
    def last_station(self) -> Station:
        return self.segments[-1].stations[-1]

    @property
    def transit_segments(self) -> list[TransitSegment]:
        return [s for s in self.segments if s.kind is SegmentKind.TRANSIT]

    @property
    def walk_segments(self) -> list[WalkSegment]:
        return [s for s in self.segments if s.kind is SegmentKind.WALK]

    @property
    def walking_distance(self) -> float:
        return sum(s.distance for s in self.walk_segments)

    @property
    def line_ids(self) -> list[str]:
        """Line of each transit segment, in travel order."""
        return [s.line.id for s in self.transit_segments]

    @property
    def station_ids(self) -> list[str]:
        """Stations in travel order, with transfer points listed once."""
        ids: list[str] = []
        for segment in self.segments:
            for station in segment.stations:
                if not ids or ids[-1] != station.id:
                    ids.append(station.id)
        return ids

    def with_requested_origin(self, origin_id: str) -> Route:
        return replace(self, requested_origin=origin_id)

    def describe(self) -> str:
        result = []
        for i, seg in enumerate(self.segments):
            result.append(f"{i+1}. {seg}")
        summary = f"\nTotal: ~{round(self.total_duration / 60)} minutes, {self.transfers} transfer(s)"
        if self.total_fare:
            summary += f", fare {self.total_fare:g}"
        result.append(summary)
        return "\n".join(result)

    def __str__(self):
        return self.describe()


def station_to_dict(station: Station) -> dict:
    return {
        "id": station.id,
        "name": station.name,
        "coordinates": {"lat": station.latitude, "lng": station.longitude},
    }


def segment_to_dict(segment: Segment) -> dict:
    data = {
        "type": segment.kind.value,
        "stations": [station_to_dict(s) for s in segment.stations],
        "duration": round(segment.duration),
        "distance": round(segment.distance),
    }
    if segment.kind is SegmentKind.TRANSIT:
        data["line"] = {"id": segment.line.id, "name": segment.line.name, "color": segment.line.color}
        data["stopWaitTime"] = segment.stop_wait_time
        data["fare"] = segment.fare
    return data


def route_to_dict(route: Route) -> dict:
    """JSON-friendly representation of a route."""
    return {
        "id": route.id,
        "segments": [segment_to_dict(s) for s in route.segments],
        "totalDuration": round(route.total_duration),
        "totalDistance": round(route.total_distance),
        "totalStops": route.total_stops,
        "transfers": route.transfers,
        "totalFare": route.total_fare,
        "requestedOrigin": route.requested_origin,
    }
