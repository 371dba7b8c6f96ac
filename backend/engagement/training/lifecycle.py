"""
Model Lifecycle Module
======================
Decides whether a freshly fitted candidate replaces the active model.

States per model name:
    no active version -> candidate evaluated -> adopted (active)
                                             -> superseded (inactive, kept for audit)

GATING:
A candidate is adopted only if its accuracy is strictly above the
configured threshold (default 0.6). Otherwise it is discarded and the
previous weights keep serving predictions.

ADOPTION is two store writes:
1. save the new version with active=True
2. deactivate every other version of the same model
Only after both succeed are the new weights published to the predictor.
If step 2 fails, the model is marked for reconciliation; reconcile()
re-runs step 2 (safe to repeat) and then publishes the weights.

VERSION IDS:
Every retrain mints a fresh version id and returns it, even when the
candidate is rejected. Check RetrainResult.adopted before assuming the
weights changed; a degenerate batch can also re-adopt identical weights
under a new id.
"""

import threading
import time
from typing import Callable, Dict, List, Optional

from ..models import (
    TrainingSample,
    WeightVector,
    ModelVersion,
    PerformanceSummary,
    RetrainResult,
    generate_version_id,
)
from ..scoring.predictor import ActiveWeights
from ..storage.store import ModelStore
from ..config import AppConfig, get_config
from ..errors import (
    InsufficientDataError,
    ModelStoreError,
    ReconciliationRequiredError,
    RetrainTimeoutError,
)
from ..logging_config import get_research_logger, log_training_run, log_model_decision
from .fitter import WeightFitter
from .evaluator import ModelEvaluator

logger = get_research_logger("training")


# One lock per model name, shared by every manager in the process
_name_locks: Dict[str, threading.Lock] = {}
_name_locks_guard = threading.Lock()


def _lock_for(model_name: str) -> threading.Lock:
    with _name_locks_guard:
        if model_name not in _name_locks:
            _name_locks[model_name] = threading.Lock()
        return _name_locks[model_name]


class ModelLifecycleManager:
    """
    Fits, evaluates, gates, persists and publishes model versions.

    Usage:
        manager = ModelLifecycleManager(store, active_weights)
        result = manager.retrain(samples)
        if result.adopted:
            ...
    """

    def __init__(
        self,
        store: ModelStore,
        active: ActiveWeights,
        fitter: Optional[WeightFitter] = None,
        evaluator: Optional[ModelEvaluator] = None,
        config: Optional[AppConfig] = None,
        model_name: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.config = config or get_config()
        self.store = store
        self.active = active
        self.fitter = fitter or WeightFitter(config=self.config.training)
        self.evaluator = evaluator or ModelEvaluator(config=self.config.training)
        self.model_name = model_name or self.config.predictor.model_name
        self.clock = clock

        # model name -> version saved active whose predecessors are still active
        self._pending: Dict[str, str] = {}

    # =========================================================================
    # RETRAINING
    # =========================================================================

    def retrain(
        self,
        samples: List[TrainingSample],
        timeout_seconds: Optional[float] = None
    ) -> RetrainResult:
        """
        Fit and evaluate a candidate, adopting it if accurate enough.

        Args:
            samples: Fresh training samples
            timeout_seconds: Abandon the run if persistence has not started
                by then (defaults to config.training.retrain_timeout_seconds)

        Returns:
            RetrainResult (always with a new version id)

        Raises:
            InsufficientDataError: too few samples
            RetrainTimeoutError: deadline passed before persistence
            ModelStoreError: persistence failed; active weights unchanged
            ReconciliationRequiredError: saved, but older versions still active
        """
        if timeout_seconds is None:
            timeout_seconds = self.config.training.retrain_timeout_seconds

        with _lock_for(self.model_name):
            started = self.clock()

            if self.model_name in self._pending:
                self._reconcile_locked()

            min_samples = self.config.training.min_samples
            if len(samples) < min_samples:
                raise InsufficientDataError(len(samples), min_samples)

            logger.info(f"Training model with {len(samples)} samples",
                        extra={'model_name': self.model_name})

            previous = self.active.snapshot()
            candidate = self.fitter.fit(samples, previous=previous)
            performance = self.evaluator.evaluate(samples, candidate)
            version_id = generate_version_id()

            log_training_run(
                self.model_name,
                len(samples),
                performance.to_dict(),
                candidate.to_dict()
            )

            threshold = self.config.training.accuracy_threshold
            if performance.accuracy <= threshold:
                log_model_decision(
                    "candidate_rejected",
                    {
                        'version_id': version_id,
                        'accuracy': performance.accuracy,
                        'threshold': threshold,
                        'serving_version': previous.version or 'default'
                    },
                    model_name=self.model_name
                )
                return RetrainResult(
                    version_id=version_id,
                    performance=performance,
                    weights=candidate,
                    adopted=False,
                    model_name=self.model_name
                )

            self._check_deadline(started, timeout_seconds)
            adopted = self._adopt(version_id, candidate, performance)

            return RetrainResult(
                version_id=version_id,
                performance=performance,
                weights=adopted.weights,
                adopted=True,
                model_name=self.model_name
            )

    def _check_deadline(self, started: float, timeout_seconds: Optional[float]) -> None:
        if timeout_seconds is None:
            return
        elapsed = self.clock() - started
        if elapsed > timeout_seconds:
            log_model_decision(
                "retrain_abandoned",
                {'elapsed_seconds': elapsed, 'timeout_seconds': timeout_seconds},
                model_name=self.model_name
            )
            raise RetrainTimeoutError(self.model_name, elapsed, timeout_seconds)

    def _adopt(
        self,
        version_id: str,
        candidate: WeightVector,
        performance: PerformanceSummary
    ) -> ModelVersion:
        version = ModelVersion(
            model_name=self.model_name,
            version=version_id,
            weights=candidate.with_version(version_id),
            performance=performance,
            active=True
        )

        try:
            self.store.save(version)
        except ModelStoreError:
            raise
        except Exception as e:
            raise ModelStoreError(f"Failed to save {self.model_name} {version_id}: {e}") from e

        try:
            self.store.deactivate_others(self.model_name, version_id)
        except Exception as e:
            self._pending[self.model_name] = version_id
            logger.error(
                f"Saved {version_id} but could not deactivate older versions",
                extra={'model_name': self.model_name, 'version_id': version_id}
            )
            raise ReconciliationRequiredError(self.model_name, version_id, e) from e

        replaced = self.active.publish(version.weights)

        log_model_decision(
            "candidate_adopted",
            {
                'version_id': version_id,
                'accuracy': performance.accuracy,
                'mean_error': performance.mean_error,
                'sample_count': performance.sample_count,
                'replaced_version': replaced.version or 'default'
            },
            model_name=self.model_name
        )
        return version

    # =========================================================================
    # RECONCILIATION AND LOADING
    # =========================================================================

    @property
    def needs_reconciliation(self) -> bool:
        return self.model_name in self._pending

    def reconcile(self) -> Optional[ModelVersion]:
        """
        Finish an interrupted adoption, or repair a store with several
        active versions. Safe to call at any time.

        Returns:
            The version left active (None if the model has no versions)
        """
        with _lock_for(self.model_name):
            return self._reconcile_locked()

    def _reconcile_locked(self) -> Optional[ModelVersion]:
        target_id = self._pending.get(self.model_name)

        if target_id is None:
            current = self.store.get_active(self.model_name)
            if current is None:
                return None
            target_id = current.version

        try:
            changed = self.store.deactivate_others(self.model_name, target_id)
        except Exception as e:
            self._pending[self.model_name] = target_id
            raise ReconciliationRequiredError(self.model_name, target_id, e) from e

        self._pending.pop(self.model_name, None)

        version = next(
            (v for v in self.store.list_versions(self.model_name) if v.version == target_id),
            None
        )
        if version is None:
            logger.warning(f"Reconciled version {target_id} not found in store")
            return None

        if self.active.version != version.version:
            self.active.publish(version.weights)

        log_model_decision(
            "reconciled",
            {'version_id': target_id, 'deactivated': changed},
            model_name=self.model_name
        )
        return version

    def load_active(self) -> Optional[ModelVersion]:
        """
        Publish the store's active version, if there is one.

        Repairs the store first when more than one version is active.
        """
        with _lock_for(self.model_name):
            if self.store.active_count(self.model_name) > 1:
                return self._reconcile_locked()

            version = self.store.get_active(self.model_name)
            if version is None:
                logger.info(f"No stored version of {self.model_name}; serving default weights")
                return None

            self.active.publish(version.weights)
            logger.info(f"Loaded {self.model_name} {version.version}",
                        extra={'model_name': self.model_name, 'version_id': version.version})
            return version
