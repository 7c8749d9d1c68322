"""
constants.py — shared constants used across the pipeline.

Domain tags, field-name aliases, envelope paths, static location lookup
tables and the TTC route tables are defined here so fetchers, transformers
and the scaffold generator stay in sync.
"""

from __future__ import annotations

from typing import Final, Literal

# ---------------------------------------------------------------------------
# Typed literals
# ---------------------------------------------------------------------------
Domain = Literal["transportation", "infrastructure", "environment", "events"]
Reliability = Literal["high", "medium", "low"]
GeoStrategy = Literal["embedded", "fields", "lookup", "polyline"]
UnresolvedPolicy = Literal["drop", "default"]
OutputPolicy = Literal["passthrough", "filter"]
FetcherKind = Literal["json", "ckan_datastore", "gbfs", "nextbus_xml"]
VehicleType = Literal["bus", "streetcar", "subway"]

DOMAINS: Final[tuple[str, ...]] = (
    "transportation",
    "infrastructure",
    "environment",
    "events",
)

# ---------------------------------------------------------------------------
# Envelope unwrap: candidate paths to the record array, probed in order
# ---------------------------------------------------------------------------
DEFAULT_ENVELOPE_PATHS: Final[tuple[str, ...]] = ("result.records", "result", "data")

# ---------------------------------------------------------------------------
# Field aliases
# ---------------------------------------------------------------------------
LATITUDE_FIELDS: Final[tuple[str, ...]] = (
    "latitude", "lat", "LATITUDE", "Latitude", "LAT", "y",
)
LONGITUDE_FIELDS: Final[tuple[str, ...]] = (
    "longitude", "lon", "lng", "long", "LONGITUDE", "Longitude", "LONG", "x",
)
GEOMETRY_FIELDS: Final[tuple[str, ...]] = ("geometry", "geom", "GEOMETRY")
POLYLINE_FIELDS: Final[tuple[str, ...]] = ("geoPolyline",)
ID_FIELDS: Final[tuple[str, ...]] = ("id", "_id", "ID", "station_id", "FID")

# Prioritized date aliases used for recency ordering
DATE_FIELDS: Final[tuple[str, ...]] = (
    "sampleDate",
    "observationDate",
    "date",
    "collectionDate",
    "timestamp",
)

# Sentinel for sources configured to default unresolvable records
SENTINEL_COORDINATES: Final[tuple[float, float]] = (0.0, 0.0)

# ---------------------------------------------------------------------------
# Static name → (lon, lat) lookup tables
# ---------------------------------------------------------------------------
TORONTO_BEACHES: Final[dict[str, tuple[float, float]]] = {
    "Bluffer's Beach Park": (-79.2344, 43.7067),
    "Centre Island Beach": (-79.3687, 43.6234),
    "Cherry Beach": (-79.3443, 43.6368),
    "Gibraltar Point Beach": (-79.3850, 43.6200),
    "Hanlan's Point Beach": (-79.3944, 43.6139),
    "Kew Balmy Beach": (-79.2977, 43.6677),
    "Marie Curtis Park East Beach": (-79.5500, 43.5850),
    "Sunnyside Beach": (-79.4450, 43.6350),
    "Ward's Island Beach": (-79.3500, 43.6150),
    "Woodbine Beaches": (-79.3089, 43.6622),
}

LOOKUP_TABLES: Final[dict[str, dict[str, tuple[float, float]]]] = {
    "toronto_beaches": TORONTO_BEACHES,
}

# ---------------------------------------------------------------------------
# TTC routes
# ---------------------------------------------------------------------------
TTC_ROUTE_NAMES: Final[dict[str, str]] = {
    # Streetcars (500s)
    "501": "Queen",
    "502": "Downtowner",
    "503": "Kingston Rd",
    "504": "King",
    "505": "Dundas",
    "506": "Carlton",
    "507": "Long Branch",
    "508": "Lake Shore",
    "509": "Harbourfront",
    "510": "Spadina",
    "511": "Bathurst",
    "512": "St. Clair",
    "513": "Jane",
    "514": "Cherry",
    "515": "Cherry Beach",
    # Buses
    "7": "Bathurst",
    "25": "Don Mills",
    "29": "Dufferin",
    "32": "Eglinton West",
    "35": "Jane",
    "36": "Finch West",
    "39": "Finch East",
    "41": "Keele",
    "54": "Lawrence East",
    "60": "Steeles West",
    "96": "Wilson",
    "100": "Flemingdon Park",
    "190": "Scarborough Centre Rocket",
    "191": "Highway 27 Rocket",
    "192": "Airport Rocket",
    "196": "York University Rocket",
}

# Direction names for dirTag "_0_" / "_1_"
TTC_ROUTE_DIRECTIONS: Final[dict[str, tuple[str, str]]] = {
    "501": ("Eastbound", "Westbound"),
    "504": ("Eastbound", "Westbound"),
    "505": ("Eastbound", "Westbound"),
    "506": ("Eastbound", "Westbound"),
    "512": ("Eastbound", "Westbound"),
    "510": ("Northbound", "Southbound"),
    "511": ("Northbound", "Southbound"),
    "514": ("Northbound", "Southbound"),
    "7": ("Northbound", "Southbound"),
    "25": ("Northbound", "Southbound"),
    "29": ("Northbound", "Southbound"),
    "35": ("Northbound", "Southbound"),
}

TTC_MAJOR_ROUTES: Final[tuple[str, ...]] = (
    "501", "504", "506", "510", "511", "512", "514", "505",
)
