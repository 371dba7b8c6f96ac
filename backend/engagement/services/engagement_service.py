"""
Engagement Service Module
=========================
The entry point collaborators use to score content and retrain the model.

This service handles:
- Engagement prediction with the active weights
- Retraining from historical samples, with gated adoption
- Feature importance snapshots
- Improvement suggestions

Scoring never depends on the store being reachable: if the stored model
cannot be loaded at start-up, or a retrain fails, predictions continue
with the weights already in memory.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Union

from ..config import AppConfig, get_config
from ..errors import ModelStoreError
from ..logging_config import get_research_logger
from ..models import (
    FeatureVector,
    WeightVector,
    PredictionResult,
    ImprovementPlan,
    RetrainResult,
)
from ..scoring import EngagementPredictor, ImprovementAdvisor, ActiveWeights
from ..storage import ModelStore, SampleSource, JsonSampleSource, create_model_store
from ..training import ModelLifecycleManager

logger = logging.getLogger(__name__)

FeatureInput = Union[FeatureVector, Mapping[str, Any]]


def _as_features(features: FeatureInput) -> FeatureVector:
    if isinstance(features, FeatureVector):
        return features
    return FeatureVector.from_raw(features)


class EngagementService:
    """
    Facade over prediction, advice and model lifecycle.

    Usage:
        service = EngagementService()
        prediction = service.predict({"avgBrightness": 80, "hookStrength": 0.7})
        outcome = service.retrain()
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        store: Optional[ModelStore] = None,
        sample_source: Optional[SampleSource] = None,
        load_active: bool = True
    ):
        self.config = config or get_config()

        self.active = ActiveWeights(WeightVector.default(self.config.predictor.default_weights))
        self.predictor = EngagementPredictor(
            active=self.active,
            config=self.config.predictor,
            research=self.config.research,
            prediction_logger=get_research_logger("predictions", config=self.config)
        )
        self.advisor = ImprovementAdvisor(self.predictor, config=self.config.advisor)

        self.store = store or create_model_store(self.config)
        self.sample_source = sample_source or JsonSampleSource(self.config.samples_path)
        self.lifecycle = ModelLifecycleManager(
            self.store,
            self.active,
            config=self.config
        )

        if load_active:
            try:
                self.lifecycle.load_active()
            except ModelStoreError as e:
                logger.warning(f"Could not load stored model, serving default weights: {e}")

        logger.info(
            f"Initialized EngagementService with model: {self.lifecycle.model_name}, "
            f"version: {self.active.version or 'default'}"
        )

    def predict(self, features: FeatureInput) -> PredictionResult:
        """Predict engagement for raw features. Read-only."""
        return self.predictor.predict(_as_features(features))

    def retrain(self, timeout_seconds: Optional[float] = None) -> RetrainResult:
        """
        Refit weights from the sample source and adopt them if accurate enough.

        Raises:
            InsufficientDataError: fewer than the minimum usable samples
            ModelStoreError: persistence failed (active weights unchanged)
        """
        samples = self.sample_source.fetch_samples()
        return self.lifecycle.retrain(samples, timeout_seconds=timeout_seconds)

    def get_feature_importance(self) -> Dict[str, float]:
        """Snapshot of the active weights."""
        return self.active.snapshot().to_dict()

    def suggest_improvements(
        self,
        features: FeatureInput,
        target_score: Optional[float] = None
    ) -> ImprovementPlan:
        """Bounded feature adjustments toward target_score."""
        return self.advisor.suggest(_as_features(features), target_score)

    def reconcile(self):
        """Finish an interrupted model swap. Safe to repeat."""
        return self.lifecycle.reconcile()

    def model_info(self) -> Dict[str, Any]:
        weights = self.active.snapshot()
        return {
            'model_name': self.lifecycle.model_name,
            'active_version': weights.version,
            'feature_importance': weights.to_dict(),
            'needs_reconciliation': self.lifecycle.needs_reconciliation,
        }


# =============================================================================
# GLOBAL SERVICE SINGLETON
# =============================================================================

_service: Optional[EngagementService] = None


def get_service() -> EngagementService:
    """Get the process-wide service, creating it on first access."""
    global _service
    if _service is None:
        _service = EngagementService()
    return _service


def set_service(service: EngagementService) -> None:
    global _service
    _service = service


def reset_service() -> None:
    global _service
    _service = None
