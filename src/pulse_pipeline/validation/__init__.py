"""
pulse_pipeline.validation — feature-collection validation.

  FeatureValidator — configurable per-source validator (validator.py)
  rules            — individual hard and soft checks (rules.py)
"""

from pulse_pipeline.validation.validator import EMPTY_WARNING, FeatureValidator

__all__ = ["FeatureValidator", "EMPTY_WARNING"]
