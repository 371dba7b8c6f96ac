"""
Adaptive Weighting Module
=========================
Refits scoring weights from observed engagement.

This module implements:
- Correlation-based weight fitting
- Accuracy evaluation of candidate weights
- Gated adoption, persistence and retirement of model versions

Usage:
    from engagement.training import ModelLifecycleManager

    manager = ModelLifecycleManager(store, active_weights)
    result = manager.retrain(samples)
"""

from .fitter import WeightFitter, pearson_correlation
from .evaluator import ModelEvaluator
from .lifecycle import ModelLifecycleManager

__all__ = [
    'WeightFitter',
    'pearson_correlation',
    'ModelEvaluator',
    'ModelLifecycleManager',
]
