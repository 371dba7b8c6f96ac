"""
Engagement Scoring Module
=========================
Scores content items from their features.

This module implements:
- Fixed-range feature normalization
- Weighted, sigmoid-squashed engagement prediction
- An atomically swappable slot for the active weights
- Improvement suggestions for low-scoring content

Usage:
    from engagement.scoring import EngagementPredictor, ImprovementAdvisor

    predictor = EngagementPredictor()
    result = predictor.predict(features)

    advisor = ImprovementAdvisor(predictor)
    plan = advisor.suggest(features, target_score=75)
"""

from .normalizers import FeatureNormalizer, NormalizationConfig
from .predictor import (
    EngagementPredictor,
    ActiveWeights,
    sigmoid,
    score_normalized,
    weighted_contributions,
)
from .advisor import ImprovementAdvisor, ADJUSTMENT_RULES, FEATURE_DESCRIPTIONS

__all__ = [
    'FeatureNormalizer',
    'NormalizationConfig',
    'EngagementPredictor',
    'ActiveWeights',
    'sigmoid',
    'score_normalized',
    'weighted_contributions',
    'ImprovementAdvisor',
    'ADJUSTMENT_RULES',
    'FEATURE_DESCRIPTIONS',
]
