"""
Engagement Predictor Module
===========================
Scores a content item's predicted engagement from its features.

The scoring function:
    E(x) = 100 * sigmoid( Σ_f w_f * norm(x_f) )

Each feature's contribution (w_f * norm(x_f)) is reported alongside the
score so callers can see what drove it.

The active weights live in an ActiveWeights slot. Every prediction reads
one snapshot of it, and adoption of a new model replaces the whole
WeightVector in a single assignment, so a prediction never sees a mix of
old and new weights.
"""

import math
import logging
import threading
from typing import Dict, Mapping, Optional, Tuple

from .normalizers import FeatureNormalizer
from ..models import FeatureVector, WeightVector, PredictionResult, FEATURE_NAMES
from ..config import PredictorConfig, ResearchConfig, get_config
from ..logging_config import get_prediction_logger, log_prediction


def sigmoid(x: float) -> float:
    """Logistic function."""
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def weighted_contributions(
    normalized: Mapping[str, float],
    weights: WeightVector
) -> Tuple[float, Dict[str, float]]:
    """
    Combine normalized features with weights.

    Features missing from `normalized` contribute zero.

    Returns:
        (weighted sum, per-feature contributions)
    """
    total = 0.0
    contributions: Dict[str, float] = {}
    for name, weight in weights.items():
        contribution = normalized.get(name, 0.0) * weight
        contributions[name] = contribution
        total += contribution
    return total, contributions


def score_normalized(normalized: Mapping[str, float], weights: WeightVector) -> float:
    """Unrounded engagement score (0-100) for already-normalized features."""
    total, _ = weighted_contributions(normalized, weights)
    return sigmoid(total) * 100


class ActiveWeights:
    """
    Process-wide slot holding the weights that serve predictions.

    Readers call snapshot() and keep using that one immutable vector.
    Writers call publish(), which swaps the reference.
    """

    def __init__(self, initial: Optional[WeightVector] = None):
        self._current = initial if initial is not None else WeightVector.default()
        self._write_lock = threading.Lock()

    def snapshot(self) -> WeightVector:
        return self._current

    def publish(self, weights: WeightVector) -> WeightVector:
        """Replace the active weights. Returns the vector that was replaced."""
        with self._write_lock:
            previous = self._current
            self._current = weights
        return previous

    @property
    def version(self) -> Optional[str]:
        return self._current.version


class EngagementPredictor:
    """
    Predicts engagement scores from content features.

    Usage:
        predictor = EngagementPredictor()
        result = predictor.predict(FeatureVector(hook_strength=0.9))
        result.score         # 0-100
        result.contributions # per-feature weighted values
    """

    def __init__(
        self,
        active: Optional[ActiveWeights] = None,
        normalizer: Optional[FeatureNormalizer] = None,
        config: Optional[PredictorConfig] = None,
        research: Optional[ResearchConfig] = None,
        prediction_logger: Optional[logging.Logger] = None
    ):
        self.config = config or get_config().predictor
        self.log_predictions = (research or get_config().research).log_predictions
        self.prediction_logger = prediction_logger or get_prediction_logger()
        self.active = active or ActiveWeights(WeightVector.default(self.config.default_weights))
        self.normalizer = normalizer or FeatureNormalizer()

    def score(self, features: FeatureVector, weights: Optional[WeightVector] = None) -> float:
        """Unrounded score for a raw feature vector."""
        weights = weights if weights is not None else self.active.snapshot()
        return score_normalized(self.normalizer.normalize_values(features), weights)

    def predict(
        self,
        features: FeatureVector,
        weights: Optional[WeightVector] = None
    ) -> PredictionResult:
        """
        Predict engagement for one content item.

        Args:
            features: Raw (un-normalized) features
            weights: Weights to use instead of the active ones

        Returns:
            PredictionResult with score, confidence and contributions
        """
        weights = weights if weights is not None else self.active.snapshot()
        normalized = self.normalizer.normalize_values(features)

        total, contributions = weighted_contributions(normalized, weights)
        score = sigmoid(total) * 100

        # Completeness proxy: share of features carrying any signal
        present = sum(1 for name in FEATURE_NAMES if normalized[name] > 0)
        completeness = present / len(FEATURE_NAMES)
        confidence = self.config.confidence_base + self.config.confidence_span * completeness

        precision = self.config.score_precision
        result = PredictionResult(
            score=round(score, precision),
            confidence=round(confidence, precision),
            contributions=contributions,
            model_version=weights.version
        )

        log_prediction(
            result.score,
            result.confidence,
            contributions,
            weights.version,
            logger=self.prediction_logger,
            enabled=self.log_predictions
        )
        return result

    def predict_raw(self, raw_features: Mapping) -> PredictionResult:
        """Predict from a loosely typed feature mapping."""
        return self.predict(FeatureVector.from_raw(raw_features))
