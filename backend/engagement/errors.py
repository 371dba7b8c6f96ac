"""
Error types for the engagement engine.

Each error carries an error_code and an HTTP status_code so the API layer
can turn it into a JSON response without inspecting the message.
"""

from typing import Dict, Any, Optional


class EngagementError(Exception):
    """Base exception for engagement engine errors."""

    def __init__(
        self, message: str, error_code: str = "engagement_error", status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error': self.message,
            'error_code': self.error_code,
            'success': False
        }


class InsufficientDataError(EngagementError):
    """Raised when fewer training samples exist than fitting requires."""

    def __init__(self, sample_count: int, required: int = 10):
        self.sample_count = sample_count
        self.required = required
        super().__init__(
            f"Insufficient training data. Need at least {required} videos with metrics "
            f"(found {sample_count}).",
            "insufficient_data",
            422,
        )


class DegenerateBatchError(EngagementError):
    """
    Raised when every feature's correlation strength is zero.

    Internal: the weight fitter recovers from it by keeping the previous weights.
    """

    def __init__(self, sample_count: int):
        self.sample_count = sample_count
        super().__init__(
            f"All correlation weights are zero across {sample_count} samples",
            "degenerate_batch",
            500,
        )


class ModelStoreError(EngagementError):
    """Raised when the model store cannot be read or written."""

    def __init__(self, message: str, error_code: str = "model_store_error"):
        super().__init__(message, error_code, 500)


class ReconciliationRequiredError(ModelStoreError):
    """
    Raised when a new version was saved as active but older versions could
    not be deactivated. Run reconcile() for the model to finish the swap.
    """

    def __init__(self, model_name: str, version_id: str, cause: Optional[Exception] = None):
        self.model_name = model_name
        self.version_id = version_id
        self.cause = cause
        super().__init__(
            f"Version {version_id} of {model_name} saved but older versions are still "
            f"active: {cause}",
            "reconciliation_required",
        )


class RetrainTimeoutError(EngagementError):
    """Raised when a retrain exceeds its deadline before anything was persisted."""

    def __init__(self, model_name: str, elapsed_seconds: float, timeout_seconds: float):
        self.model_name = model_name
        self.elapsed_seconds = elapsed_seconds
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Retraining {model_name} abandoned after {elapsed_seconds:.2f}s "
            f"(limit {timeout_seconds:.2f}s)",
            "retrain_timeout",
            504,
        )
