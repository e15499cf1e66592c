"""Loading of network definitions from JSON files or remote URLs."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import requests
from pydantic import BaseModel, Field, ValidationError

from .config import DATA_DIR, NETWORK_DATA_PATH, NETWORK_DATA_URL
from .stations import (
    DEFAULT_NETWORK,
    MajorInterchange,
    NetworkData,
    Station,
    TransitLine,
    WalkingShortcutSpec,
)

logger = logging.getLogger(__name__)


class NetworkDataError(ValueError):
    """Raised when a network definition cannot be read or is malformed."""


class StationRecord(BaseModel):
    id: str
    name: str
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class LineRecord(BaseModel):
    id: str
    name: str
    color: str = "#777777"
    stations: list[str] = Field(min_length=2)
    fare: float = 0.0
    quality: Optional[float] = Field(default=None, ge=0, le=1)


class InterchangeRecord(BaseModel):
    station: str
    lines: list[str]
    priority: int = 5


class ShortcutRecord(BaseModel):
    source: str = Field(alias="from")
    target: str = Field(alias="to")
    priority: Optional[float] = None


class NetworkFile(BaseModel):
    """Schema of a network definition file."""
    stations: list[StationRecord]
    lines: list[LineRecord]
    major_interchanges: list[InterchangeRecord] = []
    walking_shortcuts: list[ShortcutRecord] = []

    def to_network(self) -> NetworkData:
        return NetworkData(
            stations={
                s.id: Station(id=s.id, name=s.name, latitude=s.lat, longitude=s.lng)
                for s in self.stations
            },
            lines=[
                TransitLine(id=l.id, name=l.name, color=l.color, station_ids=tuple(l.stations),
                            fare=l.fare, quality=l.quality)
                for l in self.lines
            ],
            major_interchanges=[
                MajorInterchange(station_id=m.station, lines=tuple(m.lines), priority=m.priority)
                for m in self.major_interchanges
            ],
            walking_shortcuts=[
                WalkingShortcutSpec(from_id=w.source, to_id=w.target, priority=w.priority)
                for w in self.walking_shortcuts
            ],
        )


def parse_network(payload: dict) -> NetworkData:
    """Validate a decoded network definition."""
    try:
        return NetworkFile.model_validate(payload).to_network()
    except ValidationError as e:
        raise NetworkDataError(f"Invalid network definition: {e}") from e


def load_network(path: Path) -> NetworkData:
    """Load a network definition from a JSON file."""
    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise NetworkDataError(f"Could not read network file {path}: {e}") from e
    return parse_network(payload)


def fetch_network(url: str, cache_path: Optional[Path] = None, force: bool = False) -> NetworkData:
    """Download a network definition, keeping a local copy.

    Args:
        url: Location of the JSON definition
        cache_path: Where to keep the downloaded file
        force: Force re-download even if the local copy exists

    Returns:
        The parsed network
    """
    cache_path = cache_path or DATA_DIR / "network.json"
    if cache_path.exists() and not force:
        return load_network(cache_path)

    logger.info("Downloading network data from %s", url)
    try:
        response = requests.get(url, timeout=30)
        response.raise_for_status()
        payload = response.json()
    except requests.exceptions.Timeout as e:
        raise NetworkDataError(f"Timed out downloading network data from {url}") from e
    except requests.exceptions.RequestException as e:
        raise NetworkDataError(f"Error downloading network data: {e}") from e
    except ValueError as e:
        raise NetworkDataError(f"Network data at {url} is not JSON: {e}") from e

    network = parse_network(payload)
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    with open(cache_path, "w", encoding="utf-8") as f:
        json.dump(payload, f)
    return network


def get_network_data() -> NetworkData:
    """Network configured through the environment, or the bundled one."""
    if NETWORK_DATA_PATH:
        return load_network(Path(NETWORK_DATA_PATH))
    if NETWORK_DATA_URL:
        return fetch_network(NETWORK_DATA_URL)
    return DEFAULT_NETWORK
