"""
Score Routes Module
===================
REST API endpoints for engagement scoring.

Endpoints:
- POST /api/score                              - Predict engagement and suggest improvements
- GET  /api/score?action=feature-importance    - Current feature importance weights
- GET  /api/score                              - Service description
"""

from flask import Blueprint, request, jsonify, current_app
import traceback

from ..models import FEATURE_ALIASES
from ..logging_config import get_research_logger

logger = get_research_logger("routes.score", log_to_file=False)

score_bp = Blueprint('score', __name__)


def validate_features(payload):
    """
    Check that every feature is present and numeric.

    Returns:
        (features dict keyed by wire name, list of problems)
    """
    if not isinstance(payload, dict):
        return None, [{'path': 'features', 'message': 'Expected an object'}]

    problems = []
    features = {}
    for wire_name, field_name in FEATURE_ALIASES.items():
        value = payload.get(wire_name, payload.get(field_name))
        if value is None:
            problems.append({'path': f'features.{wire_name}', 'message': 'Required'})
        elif isinstance(value, bool) or not isinstance(value, (int, float)):
            problems.append({'path': f'features.{wire_name}', 'message': 'Expected number'})
        else:
            features[wire_name] = value
    return features, problems


@score_bp.route('', methods=['POST'])
def score_content():
    """
    Predict engagement for a content item.

    Request JSON:
        {
            "features": {
                "avgBrightness": 80, "avgContrast": 70, "motionLevel": 60,
                "colorVariance": 55, "textCoverage": 25, "hookStrength": 0.6,
                "contentLength": 150, "duration": 10, "toneScore": 80
            },
            "targetScore": 75                  # Optional
        }

    Response JSON:
        {
            "success": true,
            "prediction": {"score": 66.1, "confidence": 1.0, "contributions": {...}},
            "improvements": {"suggestions": [...], "potential_improvement": 4.0},
            "threshold": 75
        }
    """
    try:
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({
                'error': 'Invalid feature data',
                'details': [{'path': '', 'message': 'Expected a JSON object'}]
            }), 400
        service = current_app.engagement_service

        features, problems = validate_features(data.get('features'))
        target = data.get('targetScore', data.get('target_score'))
        if target is None:
            target = service.config.advisor.default_target_score
        elif isinstance(target, bool) or not isinstance(target, (int, float)):
            problems.append({'path': 'targetScore', 'message': 'Expected number'})

        if problems:
            return jsonify({'error': 'Invalid feature data', 'details': problems}), 400

        prediction = service.predict(features)
        improvements = service.suggest_improvements(features, target)

        return jsonify({
            'success': True,
            'prediction': prediction.to_dict(),
            'improvements': improvements.to_dict(),
            'threshold': target
        }), 200

    except Exception as e:
        logger.error(f"Scoring failed: {str(e)}")
        logger.error(traceback.format_exc())
        return jsonify({'error': 'Internal server error'}), 500


@score_bp.route('', methods=['GET'])
def score_info():
    """Feature importance, or a description of the scoring endpoints."""
    service = current_app.engagement_service

    if request.args.get('action') == 'feature-importance':
        return jsonify({'feature_importance': service.get_feature_importance()}), 200

    return jsonify({
        'message': 'ML scoring service is active',
        'endpoints': {
            'predict': 'POST /api/score - Predict engagement score for video features',
            'feature_importance': 'GET /api/score?action=feature-importance - Get feature importance weights'
        }
    }), 200
