"""
Model Evaluation Module
=======================
Measures how well a weight vector predicts observed engagement.

Metrics:
- mean_error: mean absolute difference between predicted and observed (points)
- accuracy: share of samples predicted within the error tolerance (default 20)

Evaluation is descriptive only. Whether a candidate is good enough to
adopt is decided by the lifecycle manager.
"""

import logging
from typing import List, Optional

from ..models import TrainingSample, WeightVector, PerformanceSummary
from ..scoring.normalizers import FeatureNormalizer
from ..scoring.predictor import score_normalized
from ..config import TrainingConfig, get_config

logger = logging.getLogger(__name__)


class ModelEvaluator:
    """
    Evaluates candidate weights against a sample batch.

    Usage:
        evaluator = ModelEvaluator()
        performance = evaluator.evaluate(samples, candidate)
        performance.accuracy, performance.mean_error
    """

    def __init__(
        self,
        normalizer: Optional[FeatureNormalizer] = None,
        config: Optional[TrainingConfig] = None
    ):
        self.normalizer = normalizer or FeatureNormalizer()
        self.config = config or get_config().training

    def evaluate(
        self,
        samples: List[TrainingSample],
        weights: WeightVector
    ) -> PerformanceSummary:
        """
        Score every sample with `weights` and compare to observed engagement.

        Returns:
            PerformanceSummary (all zeros for an empty batch)
        """
        if not samples:
            return PerformanceSummary()

        total_error = 0.0
        correct = 0

        for sample in samples:
            predicted = score_normalized(
                self.normalizer.normalize_values(sample.features), weights
            )
            error = abs(predicted - sample.engagement)
            total_error += error
            if error <= self.config.error_tolerance:
                correct += 1

        summary = PerformanceSummary(
            accuracy=correct / len(samples),
            mean_error=total_error / len(samples),
            sample_count=len(samples)
        )

        logger.debug(
            f"Evaluated {len(samples)} samples: "
            f"accuracy={summary.accuracy:.3f}, mean_error={summary.mean_error:.2f}"
        )
        return summary
