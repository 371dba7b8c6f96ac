"""
Data Models Package
===================
Exports all data model classes for the engagement engine.

Usage:
    from engagement.models import FeatureVector, WeightVector, TrainingSample
    from engagement.models import ModelVersion, PredictionResult
"""

from .schemas import (
    # Feature catalogue
    FEATURE_NAMES,
    FEATURE_ALIASES,
    TONE_SCORES,
    tone_to_score,

    # Base
    BaseModel,

    # Features and weights
    FeatureVector,
    WeightVector,

    # Training
    TrainingSample,
    PerformanceSummary,
    ModelVersion,

    # Outputs
    PredictionResult,
    Suggestion,
    ImprovementPlan,
    RetrainResult,

    # Utilities
    generate_version_id,
)

__all__ = [
    'FEATURE_NAMES',
    'FEATURE_ALIASES',
    'TONE_SCORES',
    'tone_to_score',

    'BaseModel',

    'FeatureVector',
    'WeightVector',

    'TrainingSample',
    'PerformanceSummary',
    'ModelVersion',

    'PredictionResult',
    'Suggestion',
    'ImprovementPlan',
    'RetrainResult',

    'generate_version_id',
]
