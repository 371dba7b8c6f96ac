"""
Data Models and Schemas Module
==============================
Defines structured data representations for the engagement engine.

This module provides:
- Type-safe dataclasses for features, samples, and model versions
- An immutable WeightVector shared by scoring and training
- Serialization/deserialization methods

These models form the contract between the predictor, the training
components, the model store, and the API layer.

Usage:
    from engagement.models.schemas import FeatureVector, WeightVector

    features = FeatureVector.from_raw({"avgBrightness": 80, "hookStrength": 0.7})
    weights = WeightVector.default()
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Optional, List, Dict, Any, Iterator, Tuple
import json
import math
import threading
import time


# =============================================================================
# FEATURE CATALOGUE
# =============================================================================

FEATURE_NAMES: Tuple[str, ...] = (
    'avg_brightness',
    'avg_contrast',
    'motion_level',
    'color_variance',
    'text_coverage',
    'hook_strength',
    'content_length',
    'duration',
    'tone_score',
)

# Wire names used by the upstream feature extractor
FEATURE_ALIASES: Dict[str, str] = {
    'avgBrightness': 'avg_brightness',
    'avgContrast': 'avg_contrast',
    'motionLevel': 'motion_level',
    'colorVariance': 'color_variance',
    'textCoverage': 'text_coverage',
    'hookStrength': 'hook_strength',
    'contentLength': 'content_length',
    'duration': 'duration',
    'toneScore': 'tone_score',
}

TONE_SCORES: Dict[str, float] = {
    'energetic': 85.0,
    'funny': 80.0,
    'inspiring': 75.0,
    'educational': 70.0,
    'mysterious': 65.0,
    'calm': 60.0,
}
UNKNOWN_TONE_SCORE = 50.0
DEFAULT_TONE = 'energetic'


def tone_to_score(tone: Optional[str]) -> float:
    """Map a content tone label to its effectiveness score (0-100)."""
    if not tone:
        return TONE_SCORES[DEFAULT_TONE]
    return TONE_SCORES.get(str(tone).strip().lower(), UNKNOWN_TONE_SCORE)


def _as_number(value: Any) -> Optional[float]:
    """Coerce a loosely typed value to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


# =============================================================================
# BASE CLASSES
# =============================================================================

@dataclass
class BaseModel:
    """Base class for all data models with common serialization methods."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary, handling nested objects."""
        def convert(obj):
            if isinstance(obj, BaseModel):
                return obj.to_dict()
            elif isinstance(obj, WeightVector):
                return obj.to_dict()
            elif isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, datetime):
                return obj.isoformat()
            elif isinstance(obj, (list, tuple)):
                return [convert(item) for item in obj]
            elif isinstance(obj, dict):
                return {k: convert(v) for k, v in obj.items()}
            return obj

        return {k: convert(v) for k, v in asdict(self).items()}

    def to_json(self, indent: int = 2) -> str:
        """Convert model to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaseModel":
        """Create model from dictionary. Override in subclasses for nested objects."""
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> "BaseModel":
        """Create model from JSON string."""
        return cls.from_dict(json.loads(json_str))


# =============================================================================
# FEATURE VECTORS
# =============================================================================

@dataclass
class FeatureVector(BaseModel):
    """
    Numeric description of one content item.

    Raw scales:
        avg_brightness: Mean frame brightness (0-100)
        avg_contrast: Mean frame contrast (0-100)
        motion_level: Amount of on-screen movement (0-100)
        color_variance: Colour richness (0-100)
        text_coverage: Share of the frame covered by text overlays (0-100)
        hook_strength: Strength of the opening hook (0-1)
        content_length: Script length in characters (0-500)
        duration: Video duration in seconds (0-30)
        tone_score: Effectiveness of the content tone (0-100)

    Every field has a default so no missing value reaches the predictor.
    """
    avg_brightness: float = 50.0
    avg_contrast: float = 50.0
    motion_level: float = 50.0
    color_variance: float = 50.0
    text_coverage: float = 20.0
    hook_strength: float = 0.5
    content_length: float = 100.0
    duration: float = 10.0
    tone_score: float = TONE_SCORES[DEFAULT_TONE]

    @classmethod
    def from_raw(cls, raw: Optional[Mapping]) -> "FeatureVector":
        """
        Build a FeatureVector from a loosely typed key->number mapping.

        Accepts camelCase or snake_case keys. Missing, null, or non-numeric
        values fall back to the field default. A textual 'tone' is scored
        when no numeric tone score is present.
        """
        raw = raw or {}
        values: Dict[str, float] = {}

        for key, value in raw.items():
            name = FEATURE_ALIASES.get(key, key)
            if name not in FEATURE_NAMES:
                continue
            number = _as_number(value)
            if number is not None:
                values[name] = number

        if 'tone_score' not in values and raw.get('tone') is not None:
            values['tone_score'] = tone_to_score(raw.get('tone'))

        return cls(**values)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeatureVector":
        return cls.from_raw(data)

    def values(self) -> Dict[str, float]:
        """Feature values keyed by name, in catalogue order."""
        return {name: getattr(self, name) for name in FEATURE_NAMES}

    def get(self, name: str, default: float = 0.0) -> float:
        return getattr(self, name, default) if name in FEATURE_NAMES else default

    def replace(self, **changes: float) -> "FeatureVector":
        """Copy with some fields changed."""
        values = self.values()
        values.update(changes)
        return FeatureVector(**values)


class WeightVector(Mapping):
    """
    Immutable feature-name -> weight mapping.

    Weights are non-negative; after fitting they sum to 1.0 and act as an
    importance distribution. A vector may be tagged with the model version
    it was loaded from. Equality compares weights only, not the version.
    """

    __slots__ = ('_weights', '_version')

    def __init__(self, weights: Mapping, version: Optional[str] = None):
        cleaned: Dict[str, float] = {}
        for name, weight in weights.items():
            number = _as_number(weight)
            if number is None or number < 0:
                raise ValueError(f"Invalid weight for {name}: {weight!r}")
            cleaned[str(name)] = number
        self._weights = MappingProxyType(cleaned)
        self._version = version

    @classmethod
    def default(cls, weights: Optional[Mapping] = None) -> "WeightVector":
        """The starting weights, from config unless given explicitly."""
        if weights is None:
            from ..config import get_config
            weights = get_config().predictor.default_weights
        return cls(weights)

    @classmethod
    def uniform(cls, names=FEATURE_NAMES) -> "WeightVector":
        names = list(names)
        return cls({name: 1.0 / len(names) for name in names})

    @property
    def version(self) -> Optional[str]:
        return self._version

    def with_version(self, version: Optional[str]) -> "WeightVector":
        return WeightVector(self._weights, version=version)

    def __getitem__(self, name: str) -> float:
        return self._weights[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._weights)

    def __len__(self) -> int:
        return len(self._weights)

    def __repr__(self) -> str:
        return f"WeightVector({dict(self._weights)!r}, version={self._version!r})"

    def total(self) -> float:
        return sum(self._weights.values())

    def is_normalized(self, tolerance: float = 1e-6) -> bool:
        return abs(self.total() - 1.0) <= tolerance

    def ranked(self) -> List[Tuple[str, float]]:
        """Entries sorted by weight, heaviest first (stable on ties)."""
        return sorted(self._weights.items(), key=lambda item: item[1], reverse=True)

    def to_dict(self) -> Dict[str, float]:
        return dict(self._weights)


# =============================================================================
# TRAINING DATA
# =============================================================================

@dataclass
class TrainingSample(BaseModel):
    """
    One historical observation used for fitting and evaluation.

    Attributes:
        features: The content item's features
        engagement: Observed engagement (0-100)
        views: View count, if recorded
        completion_rate: Completion rate, if recorded
    """
    features: FeatureVector
    engagement: float
    views: Optional[int] = None
    completion_rate: Optional[float] = None

    @classmethod
    def from_record(cls, record: Mapping) -> Optional["TrainingSample"]:
        """
        Build a sample from a historical record.

        Record layout:
            {
                "features": {...},          # raw feature map
                "engagement": 63.5,         # observed engagement
                "views": 1200,              # optional
                "completion_rate": 0.41,    # optional
                "duration": 12,             # optional, video-level
                "tone": "funny"             # optional, video-level
            }

        Returns None when the record has no features or no engagement value.
        Observed engagement is clamped to [0, 100].
        """
        raw_features = record.get('features')
        metrics = record.get('metrics') or {}
        engagement = _as_number(record.get('engagement', metrics.get('engagement')))
        if not raw_features or engagement is None:
            return None

        merged = dict(raw_features)
        for key in ('duration', 'tone'):
            if key not in merged and record.get(key) is not None:
                merged[key] = record[key]

        views = _as_number(record.get('views', metrics.get('views')))
        completion = _as_number(record.get('completion_rate', metrics.get('completionRate')))

        return cls(
            features=FeatureVector.from_raw(merged),
            engagement=max(0.0, min(100.0, engagement)),
            views=int(views) if views is not None else None,
            completion_rate=completion,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrainingSample":
        return cls(
            features=FeatureVector.from_raw(data.get('features', {})),
            engagement=data['engagement'],
            views=data.get('views'),
            completion_rate=data.get('completion_rate'),
        )


# =============================================================================
# MODEL VERSIONS
# =============================================================================

@dataclass
class PerformanceSummary(BaseModel):
    """
    Descriptive accuracy of a weight vector against a batch.

    Attributes:
        accuracy: Share of predictions within the error tolerance (0-1)
        mean_error: Mean absolute error in score points
        sample_count: Number of samples evaluated
    """
    accuracy: float = 0.0
    mean_error: float = 0.0
    sample_count: int = 0


@dataclass
class ModelVersion(BaseModel):
    """
    A persisted weight vector.

    Only the active flag may change after creation.
    """
    model_name: str
    version: str
    weights: WeightVector
    performance: PerformanceSummary = field(default_factory=PerformanceSummary)
    active: bool = False
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'model_name': self.model_name,
            'version': self.version,
            'weights': self.weights.to_dict(),
            'performance': self.performance.to_dict(),
            'active': self.active,
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelVersion":
        return cls(
            model_name=data['model_name'],
            version=data['version'],
            weights=WeightVector(data['weights'], version=data['version']),
            performance=PerformanceSummary(**data.get('performance', {})),
            active=bool(data.get('active', False)),
            created_at=data.get('created_at', datetime.now().isoformat()),
        )


# =============================================================================
# OUTPUTS
# =============================================================================

@dataclass
class PredictionResult(BaseModel):
    """
    Predicted engagement for one content item.

    Attributes:
        score: Predicted engagement (0-100)
        confidence: Feature-completeness proxy (0-1), not a statistical interval
        contributions: normalized value * weight, per feature
        model_version: Version of the weights used (None for defaults)
    """
    score: float
    confidence: float
    contributions: Dict[str, float] = field(default_factory=dict)
    model_version: Optional[str] = None


@dataclass
class Suggestion(BaseModel):
    """A bounded adjustment to one feature."""
    feature: str
    current_value: float
    suggested_value: float
    impact: float
    description: str = ""


@dataclass
class ImprovementPlan(BaseModel):
    """Suggestions toward a target score and their heuristic total impact."""
    suggestions: List[Suggestion] = field(default_factory=list)
    potential_improvement: float = 0.0
    current_score: Optional[float] = None
    target_score: Optional[float] = None


@dataclass
class RetrainResult(BaseModel):
    """
    Outcome of a retrain.

    version_id is always freshly minted. It names a persisted version only
    when adopted is True; a rejected candidate's id is never stored.
    """
    version_id: str
    performance: PerformanceSummary
    weights: WeightVector
    adopted: bool
    model_name: str = "engagement_predictor"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version_id': self.version_id,
            'performance': self.performance.to_dict(),
            'weights': self.weights.to_dict(),
            'adopted': self.adopted,
            'model_name': self.model_name,
        }


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

_version_lock = threading.Lock()
_last_version_ms = 0


def generate_version_id() -> str:
    """Generate a time-based model version id ("v<epoch millis>"), strictly increasing."""
    global _last_version_ms
    with _version_lock:
        now_ms = int(time.time() * 1000)
        if now_ms <= _last_version_ms:
            now_ms = _last_version_ms + 1
        _last_version_ms = now_ms
    return f"v{now_ms}"
