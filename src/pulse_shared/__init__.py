"""
pulse_shared — shared models, configuration and helpers for Toronto Pulse.

Usage:
    from pulse_shared.config import settings
    from pulse_shared.models import FeatureCollection, GeoFeature, ValidationResult
    from pulse_shared.geo import BoundingBox, parse_embedded_point
    from pulse_shared.time_utils import parse_timestamp
    from pulse_shared.constants import TORONTO_BEACHES, DEFAULT_ENVELOPE_PATHS
"""

__version__ = "0.1.0"
