"""
Weight Fitting Module
=====================
Derives feature weights from observed engagement.

MODELING CHOICE:
Each feature's weight is the absolute Pearson correlation between its
normalized values and observed engagement, rescaled so all weights sum
to 1. This is not a regression: the sign of the correlation is dropped
and features are scored independently. Only the strength of each
feature's relationship with engagement matters.

Degenerate batches (every correlation zero, e.g. all samples identical)
keep the previous weights rather than producing NaN or all-zero weights.
"""

import math
from typing import Dict, List, Optional, Sequence

from ..models import TrainingSample, WeightVector, FEATURE_NAMES
from ..scoring.normalizers import FeatureNormalizer
from ..config import TrainingConfig, get_config
from ..errors import InsufficientDataError, DegenerateBatchError
from ..logging_config import get_research_logger

logger = get_research_logger("training")


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson correlation coefficient of two equal-length series.

    Returns 0.0 when either series has fewer than two points or no variance.
    """
    n = min(len(x), len(y))
    if n < 2:
        return 0.0

    x = list(x[:n])
    y = list(y[:n])

    # Constant series: correlation undefined
    if max(x) == min(x) or max(y) == min(y):
        return 0.0

    mean_x = sum(x) / n
    mean_y = sum(y) / n

    cov = sum((xi - mean_x) * (yi - mean_y) for xi, yi in zip(x, y)) / n
    std_x = math.sqrt(sum((xi - mean_x) ** 2 for xi in x) / n)
    std_y = math.sqrt(sum((yi - mean_y) ** 2 for yi in y) / n)

    if std_x == 0 or std_y == 0:
        return 0.0

    return max(-1.0, min(1.0, cov / (std_x * std_y)))


class WeightFitter:
    """
    Fits a WeightVector from a batch of training samples.

    Usage:
        fitter = WeightFitter()
        candidate = fitter.fit(samples, previous=active_weights)
    """

    def __init__(
        self,
        normalizer: Optional[FeatureNormalizer] = None,
        config: Optional[TrainingConfig] = None,
        feature_names: Sequence[str] = FEATURE_NAMES
    ):
        self.normalizer = normalizer or FeatureNormalizer()
        self.config = config or get_config().training
        self.feature_names = tuple(feature_names)

    def correlations(self, samples: List[TrainingSample]) -> Dict[str, float]:
        """Signed correlation of each normalized feature with engagement."""
        normalized = [self.normalizer.normalize_values(s.features) for s in samples]
        engagement = [s.engagement for s in samples]

        return {
            name: pearson_correlation([row[name] for row in normalized], engagement)
            for name in self.feature_names
        }

    def compute_weights(self, samples: List[TrainingSample]) -> WeightVector:
        """
        Absolute correlations rescaled to sum to 1.

        Raises:
            DegenerateBatchError: if every correlation is zero
        """
        raw = {name: abs(r) for name, r in self.correlations(samples).items()}
        total = sum(raw.values())

        if total <= 0 or not math.isfinite(total):
            raise DegenerateBatchError(len(samples))

        return WeightVector({name: value / total for name, value in raw.items()})

    def fit(
        self,
        samples: List[TrainingSample],
        previous: Optional[WeightVector] = None
    ) -> WeightVector:
        """
        Fit a candidate weight vector.

        Args:
            samples: Training samples (at least config.min_samples)
            previous: Weights to fall back to on a degenerate batch

        Returns:
            Candidate weights, or `previous` unchanged on a degenerate batch

        Raises:
            InsufficientDataError: too few samples
        """
        if len(samples) < self.config.min_samples:
            raise InsufficientDataError(len(samples), self.config.min_samples)

        try:
            weights = self.compute_weights(samples)
        except DegenerateBatchError as e:
            fallback = previous if previous is not None else WeightVector.default()
            logger.warning(
                f"{e.message}; keeping previous weights",
                extra={'sample_count': len(samples), 'fallback_version': fallback.version or 'default'}
            )
            return fallback

        logger.info(
            f"Fitted weights from {len(samples)} samples",
            extra={'sample_count': len(samples), 'weights': weights.to_dict()}
        )
        return weights
