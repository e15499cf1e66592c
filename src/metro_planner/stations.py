"""Metro network data: stations, lines, curated interchanges and walking shortcuts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .geo import Coordinates


@dataclass(frozen=True)
class Station:
    """Represents a metro station."""
    id: str
    name: str
    latitude: float
    longitude: float
    is_interchange: bool = False

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(self.latitude, self.longitude)


@dataclass(frozen=True)
class TransitLine:
    """A line with its ordered station sequence and flat fare."""
    id: str
    name: str
    color: str
    station_ids: tuple[str, ...]
    fare: float = 0.0
    quality: Optional[float] = None


@dataclass(frozen=True)
class MajorInterchange:
    """Curated interchange whose declared lines always count as connected."""
    station_id: str
    lines: tuple[str, ...]
    priority: int


@dataclass(frozen=True)
class WalkingShortcutSpec:
    """Curated walking connection between two nearby stations."""
    from_id: str
    to_id: str
    priority: Optional[float] = None


@dataclass(frozen=True)
class NetworkData:
    """Everything needed to build a network graph."""
    stations: dict[str, Station]
    lines: list[TransitLine]
    major_interchanges: list[MajorInterchange] = field(default_factory=list)
    walking_shortcuts: list[WalkingShortcutSpec] = field(default_factory=list)


# Islamabad / Rawalpindi metro stations
# Format: id, name, lat, lng
STATIONS_DATA = [
    # Red line
    ("secretariat", "Secretariat", 33.736213, 73.091590),
    ("paradeGround", "Parade Ground", 33.725005, 73.084718),
    ("shaheedEMillat", "Shaheed-E-Millat", 33.721741, 73.078777),
    ("seventhAvenue", "7th Avenue", 33.718077, 73.071780),
    ("stockExchange", "Stock Exchange", 33.711768, 73.060332),
    ("pims", "PIMS", 33.705835, 73.048396),
    ("kachehry", "Kachehry", 33.702507, 73.042055),
    ("ibnESina", "Ibn-e-Sina", 33.696378, 73.038607),
    ("chaman", "Chaman", 33.690181, 73.043541),
    ("kashmirHighway", "Kashmir Highway", 33.686187, 73.048284),
    ("faizAhmadFaiz", "Faiz Ahmad Faiz", 33.676229, 73.054997),
    ("khayabanEJohar", "Khayaban-e-Johar", 33.669400, 73.059125),
    ("potohar", "Potohar", 33.660529, 73.064574),
    ("ijPrincipal", "IJ Principal", 33.651000, 73.074000),
    ("faizabad", "Faizabad", 33.661283, 73.082809),
    ("shamsabad", "Shamsabad", 33.650139, 73.079901),
    ("sixthRoad", "6th Road", 33.643359, 73.077736),
    ("rehmanabad", "Rehmanabad", 33.636256, 73.074924),
    ("chandaniChowk", "Chandani Chowk", 33.630130, 73.071958),
    ("warisKhan", "Waris Khan", 33.620563, 73.066092),
    ("committeeChowk", "Committee Chowk", 33.613116, 73.065211),
    ("liaquatBagh", "Liaquat Bagh", 33.606229, 73.065699),
    ("marrirChowk", "Marrir Chowk", 33.599502, 73.062580),
    ("saddar", "Saddar", 33.593644, 73.056053),
    # Orange line
    ("g10", "G-10", 33.667024, 73.015489),
    ("nha", "NHA/G-9", 33.684000, 73.033500),
    ("policeFoundation", "Police Foundation", 33.661200, 73.002700),
    ("nust", "NUST", 33.649800, 72.987300),
    ("g13", "G-13", 33.632700, 72.964200),
    ("golraMorr", "Golra Morr", 33.651000, 73.065000),
    ("n5", "N-5", 33.627000, 72.956500),
    ("airport", "Airport", 33.555953, 72.837354),
    # Green line
    ("g7g8", "G7/G8", 33.697656, 73.061922),
    ("cda", "CDA", 33.700263, 73.078162),
    ("aabpara", "Aabpara", 33.705870, 73.088788),
    ("foreignOffice", "Foreign Office", 33.712534, 73.101470),
    ("lakeviewPark", "Lakeview Park", 33.723006, 73.135394),
    ("malpur", "Malpur", 33.729779, 73.144522),
    ("shahdara", "Shahdara", 33.734770, 73.159262),
    ("bharakau", "Bharakau", 33.735453, 73.165347),
    # Blue line
    ("h8Shakarparia", "H-8 / Shakarparia", 33.683907, 73.055678),
    ("i8ParadeGround", "I-8/Parade Ground", 33.673271, 73.080564),
    ("sohan", "Sohan", 33.650106, 73.098380),
    ("iqbalTown", "Iqbal Town", 33.645790, 73.100885),
    ("kuriRoad", "Kuri Road", 33.642174, 73.103521),
    ("ziaMasjid", "Zia Masjid", 33.636667, 73.107650),
    ("khannaPul", "Khanna Pul", 33.625850, 73.115544),
    ("fazaia", "Fazaia", 33.620948, 73.119377),
    ("gangal", "Gangal", 33.612443, 73.126066),
    ("koralChowk", "Koral Chowk", 33.603225, 73.132999),
]

# Line definitions
# Format: id, name, color, fare, quality, stations in order
LINES_DATA = [
    ("red", "Red Line (Secretariat to Saddar)", "#e53935", 30.0, 1.0, [
        "secretariat", "paradeGround", "shaheedEMillat", "seventhAvenue",
        "stockExchange", "pims", "kachehry", "ibnESina", "chaman",
        "kashmirHighway", "faizAhmadFaiz", "khayabanEJohar", "potohar",
        "ijPrincipal", "faizabad", "shamsabad", "sixthRoad", "rehmanabad",
        "chandaniChowk", "warisKhan", "committeeChowk", "liaquatBagh",
        "marrirChowk", "saddar",
    ]),
    ("orange", "Orange Line (FAF to Airport)", "#fb8c00", 30.0, 0.96, [
        "faizAhmadFaiz", "g10", "nha", "policeFoundation", "nust", "g13",
        "golraMorr", "n5", "airport",
    ]),
    ("green", "Green Line (PIMS to Bharakau)", "#43a047", 30.0, 0.95, [
        "pims", "g7g8", "cda", "aabpara", "foreignOffice", "lakeviewPark",
        "malpur", "shahdara", "bharakau",
    ]),
    ("blue", "Blue Line (PIMS to Koral Chowk)", "#1e88e5", 30.0, 0.95, [
        "pims", "g7g8", "h8Shakarparia", "i8ParadeGround", "faizabad", "sohan",
        "iqbalTown", "kuriRoad", "ziaMasjid", "khannaPul", "fazaia", "gangal",
        "koralChowk",
    ]),
]

# Curated interchanges
# Format: station_id, declared lines, priority
MAJOR_INTERCHANGES_DATA = [
    ("faizAhmadFaiz", ["red", "orange"], 10),
    ("pims", ["red", "green", "blue"], 9),
    ("faizabad", ["red", "blue"], 8),
]

# Curated walking shortcuts
# Format: from_id, to_id, priority (None = computed)
WALKING_SHORTCUTS_DATA = [
    ("kashmirHighway", "h8Shakarparia", None),
]

# Common aliases
STATION_ALIASES = {
    "faf": "faizAhmadFaiz",
    "faiz ahmed faiz": "faizAhmadFaiz",
    "pims hospital": "pims",
    "g7": "g7g8",
    "g8": "g7g8",
    "g-7": "g7g8",
    "g-8": "g7g8",
    "g9": "nha",
    "g-9": "nha",
    "h8": "h8Shakarparia",
    "shakarparian": "h8Shakarparia",
    "i8": "i8ParadeGround",
    "islamabad airport": "airport",
    "rawalpindi saddar": "saddar",
    "pindi saddar": "saddar",
    "6th road": "sixthRoad",
    "sixth road": "sixthRoad",
}


def _build_stations() -> dict[str, Station]:
    return {
        sid: Station(id=sid, name=name, latitude=lat, longitude=lng)
        for sid, name, lat, lng in STATIONS_DATA
    }


def _build_lines() -> list[TransitLine]:
    return [
        TransitLine(id=lid, name=name, color=color, station_ids=tuple(stations),
                    fare=fare, quality=quality)
        for lid, name, color, fare, quality, stations in LINES_DATA
    ]


STATIONS = _build_stations()
LINES = {line.id: line for line in _build_lines()}
STATION_NAME_INDEX = {s.name.lower(): s for s in STATIONS.values()}

DEFAULT_NETWORK = NetworkData(
    stations=STATIONS,
    lines=list(LINES.values()),
    major_interchanges=[
        MajorInterchange(station_id=sid, lines=tuple(lines), priority=priority)
        for sid, lines, priority in MAJOR_INTERCHANGES_DATA
    ],
    walking_shortcuts=[
        WalkingShortcutSpec(from_id=a, to_id=b, priority=p)
        for a, b, p in WALKING_SHORTCUTS_DATA
    ],
)


def find_station(query: str, stations: Optional[dict[str, Station]] = None) -> Optional[Station]:
    """Find a station by name (fuzzy match)."""
    query_lower = query.lower().strip()
    if not query_lower:
        return None

    if stations is None:
        stations = STATIONS
        name_index = STATION_NAME_INDEX
        aliases = STATION_ALIASES
    else:
        name_index = {s.name.lower(): s for s in stations.values()}
        aliases = {}

    # Exact id
    if query in stations:
        return stations[query]

    # Check aliases first
    if query_lower in aliases:
        return stations.get(aliases[query_lower])

    # Exact match
    if query_lower in name_index:
        return name_index[query_lower]

    # Partial match - prefer shorter station names (more specific)
    matches = []
    for name, station in name_index.items():
        if query_lower in name or name in query_lower:
            matches.append((len(name), station))

    if matches:
        matches.sort(key=lambda x: x[0])
        return matches[0][1]

    # Check station IDs
    for station_id, station in stations.items():
        if query_lower in station_id.lower():
            return station

    return None


def find_stations_by_line(line_id: str) -> list[Station]:
    """Find all stations on a given line, in line order."""
    line = LINES.get(line_id.lower())
    if not line:
        return []
    return [STATIONS[sid] for sid in line.station_ids]


def get_station_lines(station_id: str) -> list[str]:
    """Get all lines serving a station."""
    return [line.id for line in LINES.values() if station_id in line.station_ids]
