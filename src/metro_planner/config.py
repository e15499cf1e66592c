"""Configuration settings for the metro route planner."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = Path(os.getenv("METRO_PLANNER_DATA_DIR", PROJECT_ROOT / "data"))
DB_PATH = DATA_DIR / "metro_planner.db"

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Google Distance Matrix (optional; walking refinement is skipped without a key)
GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY")
DISTANCE_MATRIX_URL = os.getenv(
    "DISTANCE_MATRIX_URL",
    "https://maps.googleapis.com/maps/api/distancematrix/json",
)

# External network definition (JSON); the bundled network is used when neither is set
NETWORK_DATA_PATH = os.getenv("NETWORK_DATA_PATH")
NETWORK_DATA_URL = os.getenv("NETWORK_DATA_URL")

# Graph cache lifetime, one week by default
GRAPH_CACHE_TTL_SECONDS = int(os.getenv("GRAPH_CACHE_TTL_SECONDS", 7 * 24 * 60 * 60))

# Deadline for the multi-transfer search, in seconds
SEARCH_TIMEOUT_SECONDS = float(os.getenv("SEARCH_TIMEOUT_SECONDS", 5.0))

# Longest walk considered between two stations, in meters
MAX_WALKING_DISTANCE_METERS = float(os.getenv("MAX_WALKING_DISTANCE_METERS", 800))
