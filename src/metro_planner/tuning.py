"""Heuristic constants for route discovery and ranking.

Every threshold, weight and penalty used by the pipeline lives here so the
stages can be tuned (or tested) by passing a different ``Tuning`` instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .config import MAX_WALKING_DISTANCE_METERS


@dataclass(frozen=True)
class MovementConstants:
    """Speeds and fixed delays of the travel time model."""
    walking_speed_kmh: float = 5.0
    metro_speed_kmh: float = 60.0
    acceleration_factor: float = 0.2
    max_acceleration_seconds: float = 30.0
    stop_wait_seconds: float = 20.0
    interchange_dwell_seconds: float = 120.0
    max_walking_distance: float = MAX_WALKING_DISTANCE_METERS
    grid_cell_size: float = 1000.0

    @property
    def walking_speed_ms(self) -> float:
        return self.walking_speed_kmh * 1000 / 3600

    @property
    def metro_speed_ms(self) -> float:
        return self.metro_speed_kmh * 1000 / 3600


@dataclass(frozen=True)
class SearchLimits:
    """Bounds of the discovery and selection phases."""
    max_transfers: int = 2
    max_routes: int = 5
    pruning_cap: int = 10
    refined_routes: int = 3
    # A direct walk shorter than this share of the walking limit replaces all transit
    direct_walk_ratio: float = 0.5
    # Transfer routes must beat the best direct route by this fraction
    transfer_improvement: float = 0.15
    duplicate_overlap: float = 0.7
    duplicate_duration_tolerance: float = 0.1


@dataclass(frozen=True)
class SingleTransferTuning:
    detour_threshold: float = 1.5
    detour_penalty: float = 300.0
    major_interchange_bonus: float = 60.0
    major_priority_bonus: float = 30.0
    extra_line_bonus: float = 20.0


@dataclass(frozen=True)
class ScoringWeights:
    time: float = 0.45
    transfers: float = 0.30
    walking: float = 0.15
    complexity: float = 0.05
    stops: float = 0.05


@dataclass(frozen=True)
class ScoringThresholds:
    long_walk_penalty: float = 0.1
    transfer_distance_penalty: float = 0.08
    multiple_transfer_penalty: float = 0.15
    short_walk: float = 200.0
    medium_walk: float = 400.0
    long_walk: float = 600.0
    origin_mismatch_penalty: float = 100.0
    short_trip_minutes: float = 15.0
    short_trip_factor: float = 1.2
    long_trip_minutes: float = 30.0
    long_trip_factor: float = 3.0
    alternation_penalty: float = 2.0
    line_penalty: float = 3.0
    quality_penalty: float = 5.0
    stop_penalty: float = 0.2
    interchange_importance_factor: float = 0.5


@dataclass(frozen=True)
class PruningThresholds:
    max_distance_deviation: float = 1.4
    max_duration_deviation: float = 1.5
    route_similarity: float = 0.85
    max_walking_detour_ratio: float = 1.2
    transfer_justification: float = 0.2
    max_segment_alternations: int = 4
    poor_quality: float = 0.85
    poor_quality_duration_allowance: float = 1.2


@dataclass(frozen=True)
class PruningWeights:
    distance: float = 0.25
    duration: float = 0.45
    transfers: float = 0.30


@dataclass(frozen=True)
class DiversityWeights:
    quality: float = 0.35
    stations: float = 0.20
    lines: float = 0.15
    duration: float = 0.10
    transfers: float = 0.15
    walk_ratio: float = 0.05
    duplicate_signature_penalty: float = 0.7
    fewer_transfers_bonus: float = 50.0
    new_transfer_count_bonus: float = 40.0
    default_transfer_diversity: float = 20.0


@dataclass(frozen=True)
class RationalityThresholds:
    backtrack_step_ratio: float = 0.4
    backtrack_distance_ratio: float = 0.3


@dataclass(frozen=True)
class Tuning:
    """All heuristic knobs, grouped by pipeline stage."""
    movement: MovementConstants = field(default_factory=MovementConstants)
    limits: SearchLimits = field(default_factory=SearchLimits)
    single_transfer: SingleTransferTuning = field(default_factory=SingleTransferTuning)
    scoring_weights: ScoringWeights = field(default_factory=ScoringWeights)
    scoring: ScoringThresholds = field(default_factory=ScoringThresholds)
    pruning: PruningThresholds = field(default_factory=PruningThresholds)
    pruning_weights: PruningWeights = field(default_factory=PruningWeights)
    diversity: DiversityWeights = field(default_factory=DiversityWeights)
    rationality: RationalityThresholds = field(default_factory=RationalityThresholds)
    default_interchange_importance: float = 5.0
    default_line_quality: float = 0.8


DEFAULT_TUNING = Tuning()
