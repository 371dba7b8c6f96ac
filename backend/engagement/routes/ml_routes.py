"""
Model Routes Module
===================
REST API endpoints for the model lifecycle.

Endpoints:
- POST /api/ml/retrain    - Refit weights from historical samples
- GET  /api/ml/retrain    - Current feature importance weights
- POST /api/ml/reconcile  - Finish an interrupted model swap
- GET  /api/ml/model      - Active model summary
"""

from flask import Blueprint, jsonify, current_app
import traceback

from ..errors import EngagementError
from ..logging_config import get_research_logger

logger = get_research_logger("routes.ml", log_to_file=False)

ml_bp = Blueprint('ml', __name__)


@ml_bp.route('/retrain', methods=['POST'])
def retrain_model():
    """
    Retrain the engagement model.

    Response JSON:
        {
            "success": true,
            "adopted": false,
            "version_id": "v1700000000000",
            "performance": {"accuracy": 0.5, "mean_error": 21.3, "sample_count": 40},
            "weights": {...}
        }

    A new version_id is returned even when the candidate was not adopted.
    """
    service = current_app.engagement_service
    logger.info("Starting model retraining...")

    try:
        result = service.retrain()
    except EngagementError as e:
        logger.error(f"Model retraining failed: {e.message}")
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Model retraining failed: {str(e)}")
        logger.error(traceback.format_exc())
        return jsonify({'error': 'Model retraining failed', 'success': False}), 500

    message = 'Model retrained successfully' if result.adopted else 'Candidate rejected; active model unchanged'
    logger.info(message, extra={'version_id': result.version_id, 'adopted': result.adopted})

    return jsonify({'success': True, 'message': message, **result.to_dict()}), 200


@ml_bp.route('/retrain', methods=['GET'])
def get_model_weights():
    """Current feature importance weights."""
    service = current_app.engagement_service
    return jsonify({
        'feature_importance': service.get_feature_importance(),
        'message': 'Current model feature importance weights'
    }), 200


@ml_bp.route('/reconcile', methods=['POST'])
def reconcile_model():
    """Re-run deactivation of superseded versions."""
    service = current_app.engagement_service
    try:
        version = service.reconcile()
    except EngagementError as e:
        logger.error(f"Reconciliation failed: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    return jsonify({
        'success': True,
        'active_version': version.version if version else None
    }), 200


@ml_bp.route('/model', methods=['GET'])
def model_info():
    """Active model summary."""
    return jsonify(current_app.engagement_service.model_info()), 200
