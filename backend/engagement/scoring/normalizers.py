"""
Feature Normalization Module
============================
Normalizes raw content features to a common [0, 1] scale.

Every feature has a fixed, documented range. Values outside the range are
clamped (saturating), never rejected:
- Percentage features (brightness, contrast, ...): 0-100
- Hook strength: already 0-1
- Content length: clipped to 500 units, then divided by 500
- Duration: clipped to 30 seconds, then divided by 30
"""

import logging
from typing import Dict, Tuple
from dataclasses import dataclass

from ..models import FeatureVector, FEATURE_NAMES

logger = logging.getLogger(__name__)


@dataclass
class NormalizationConfig:
    """Expected raw range of each feature."""

    # Visual quality (percent scale)
    brightness_range: Tuple[float, float] = (0, 100)
    contrast_range: Tuple[float, float] = (0, 100)
    motion_range: Tuple[float, float] = (0, 100)
    color_variance_range: Tuple[float, float] = (0, 100)
    text_coverage_range: Tuple[float, float] = (0, 100)

    # Script and hook
    hook_strength_range: Tuple[float, float] = (0, 1)
    content_length_range: Tuple[float, float] = (0, 500)

    # Timing and tone
    duration_range: Tuple[float, float] = (0, 30)
    tone_score_range: Tuple[float, float] = (0, 100)


class FeatureNormalizer:
    """
    Normalizes features to [0, 1] range using fixed ranges.

    Pure and stateless after construction, so a single instance can be
    shared across threads.

    Usage:
        normalizer = FeatureNormalizer()

        # Normalize a single value
        normalized = normalizer.normalize_value(raw_value, 'duration')

        # Normalize a whole feature vector
        normalized_features = normalizer.normalize(features)
    """

    def __init__(self, config: NormalizationConfig = None):
        self.config = config or NormalizationConfig()
        self._ranges = self._build_ranges()

    def _build_ranges(self) -> Dict[str, Tuple[float, float]]:
        """Build lookup table for feature ranges."""
        return {
            'avg_brightness': self.config.brightness_range,
            'avg_contrast': self.config.contrast_range,
            'motion_level': self.config.motion_range,
            'color_variance': self.config.color_variance_range,
            'text_coverage': self.config.text_coverage_range,
            'hook_strength': self.config.hook_strength_range,
            'content_length': self.config.content_length_range,
            'duration': self.config.duration_range,
            'tone_score': self.config.tone_score_range,
        }

    @property
    def ranges(self) -> Dict[str, Tuple[float, float]]:
        return dict(self._ranges)

    def normalize_value(self, value: float, feature_name: str) -> float:
        """
        Normalize a single feature value to [0, 1].

        Args:
            value: Raw feature value
            feature_name: Name of the feature

        Returns:
            Normalized value, clamped to [0, 1]
        """
        if feature_name not in self._ranges:
            logger.warning(f"Unknown feature: {feature_name}, treating as zero")
            return 0.0

        min_val, max_val = self._ranges[feature_name]
        if max_val == min_val:
            return 0.0

        normalized = (value - min_val) / (max_val - min_val)
        return max(0.0, min(1.0, normalized))

    def normalize(self, features: FeatureVector) -> FeatureVector:
        """Normalize every field of a feature vector."""
        return FeatureVector(**self.normalize_values(features))

    def normalize_values(self, features: FeatureVector) -> Dict[str, float]:
        """Normalized values keyed by feature name."""
        return {
            name: self.normalize_value(getattr(features, name), name)
            for name in FEATURE_NAMES
        }
