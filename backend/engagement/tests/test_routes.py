"""
API Route Tests
===============
Exercises the Flask endpoints through the test client.
"""

import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from engagement.app import create_app
from engagement.config import AppConfig, DEFAULT_FEATURE_WEIGHTS
from engagement.routes.score_routes import validate_features
from engagement.services import EngagementService
from engagement.storage import InMemoryModelStore, InMemorySampleSource


EXAMPLE_FEATURES = {
    'avgBrightness': 90,
    'avgContrast': 85,
    'motionLevel': 80,
    'colorVariance': 75,
    'textCoverage': 25,
    'hookStrength': 0.9,
    'contentLength': 150,
    'duration': 10,
    'toneScore': 85,
}


def create_records(count: int = 12):
    motion = [10, 80, 30, 60, 20, 90, 40, 70, 50, 0, 65, 35]
    return [
        {
            'features': {'hookStrength': 0.05 + 0.075 * i, 'motionLevel': motion[i % 12]},
            'engagement': 50 + 20 * (0.05 + 0.075 * i)
        }
        for i in range(count)
    ]


def create_client(records=None):
    config = AppConfig()
    service = EngagementService(
        config=config,
        store=InMemoryModelStore(),
        sample_source=InMemorySampleSource(records if records is not None else create_records())
    )
    app = create_app(config_override=config, service=service)
    app.testing = True
    return app.test_client()


# =============================================================================
# VALIDATION TESTS
# =============================================================================

def test_validate_features():
    features, problems = validate_features(EXAMPLE_FEATURES)
    assert problems == []
    assert features == EXAMPLE_FEATURES

    features, problems = validate_features({'avgBrightness': 'bright', 'hookStrength': True})
    paths = {p['path']: p['message'] for p in problems}
    assert paths['features.avgBrightness'] == 'Expected number'
    assert paths['features.hookStrength'] == 'Expected number'
    assert paths['features.duration'] == 'Required'
    assert len(problems) == 9

    _, problems = validate_features(None)
    assert problems[0]['path'] == 'features'

    print("[PASS] Feature validation test passed")


# =============================================================================
# SCORE ENDPOINT TESTS
# =============================================================================

def test_score_endpoint():
    client = create_client()

    response = client.post('/api/score', json={'features': EXAMPLE_FEATURES})
    data = response.get_json()

    assert response.status_code == 200
    assert data['success'] is True
    assert abs(data['prediction']['score'] - 67.64) < 0.01
    assert data['prediction']['confidence'] == 1.0
    assert data['threshold'] == 75.0
    assert 'suggestions' in data['improvements']

    print(f"[PASS] POST /api/score -> {data['prediction']['score']}")


def test_score_endpoint_custom_target():
    client = create_client()

    response = client.post('/api/score', json={'features': EXAMPLE_FEATURES, 'targetScore': 50})
    data = response.get_json()

    assert response.status_code == 200
    assert data['threshold'] == 50
    assert data['improvements']['suggestions'] == []

    print("[PASS] Custom target score")


def test_score_endpoint_invalid_features():
    client = create_client()

    response = client.post('/api/score', json={'features': {'avgBrightness': 'high'}})
    data = response.get_json()

    assert response.status_code == 400
    assert data['error'] == 'Invalid feature data'
    assert any(d['path'] == 'features.avgBrightness' for d in data['details'])

    response = client.post('/api/score', json={'features': EXAMPLE_FEATURES, 'targetScore': 'high'})
    assert response.status_code == 400

    response = client.post('/api/score', data='not json', content_type='text/plain')
    assert response.status_code == 400

    print("[PASS] Invalid feature data rejected")


def test_score_endpoint_non_object_body():
    client = create_client()

    for body in ([1, 2], "features", 42):
        response = client.post('/api/score', json=body)
        data = response.get_json()

        assert response.status_code == 400
        assert data['error'] == 'Invalid feature data'

    print("[PASS] Non-object JSON bodies rejected")


def test_feature_importance_endpoint():
    client = create_client()

    response = client.get('/api/score?action=feature-importance')
    assert response.status_code == 200
    assert response.get_json()['feature_importance'] == DEFAULT_FEATURE_WEIGHTS

    response = client.get('/api/score')
    assert response.status_code == 200
    assert 'endpoints' in response.get_json()

    print("[PASS] Feature importance endpoint")


# =============================================================================
# MODEL ENDPOINT TESTS
# =============================================================================

def test_retrain_endpoint():
    client = create_client()

    response = client.post('/api/ml/retrain')
    data = response.get_json()

    assert response.status_code == 200
    assert data['success'] is True
    assert data['adopted'] is True
    assert data['version_id'].startswith('v')
    assert data['performance']['sample_count'] == 12

    model = client.get('/api/ml/model').get_json()
    assert model['active_version'] == data['version_id']

    weights = client.get('/api/ml/retrain').get_json()['feature_importance']
    assert weights == data['weights']

    print(f"[PASS] POST /api/ml/retrain -> {data['version_id']}")


def test_retrain_endpoint_insufficient_data():
    client = create_client(records=create_records(5))

    response = client.post('/api/ml/retrain')
    data = response.get_json()

    assert response.status_code == 422
    assert data['success'] is False
    assert data['error_code'] == 'insufficient_data'
    assert 'found 5' in data['error']

    print("[PASS] Retrain with too few samples returns 422")


def test_reconcile_endpoint():
    client = create_client()

    response = client.post('/api/ml/reconcile')
    assert response.status_code == 200
    assert response.get_json()['active_version'] is None

    version_id = client.post('/api/ml/retrain').get_json()['version_id']
    response = client.post('/api/ml/reconcile')
    assert response.get_json()['active_version'] == version_id

    print("[PASS] Reconcile endpoint")


# =============================================================================
# CORE ROUTES
# =============================================================================

def test_health_and_errors():
    client = create_client()

    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'
    assert response.get_json()['model_version'] == 'default'

    response = client.get('/api/unknown')
    assert response.status_code == 404
    assert response.get_json()['error'] == 'Resource not found'

    response = client.delete('/api/ml/retrain')
    assert response.status_code == 405

    print("[PASS] Health check and error handlers")


def run_all_tests():
    """Run all route tests."""
    print("\n" + "="*60)
    print("API ROUTE TESTS")
    print("="*60 + "\n")

    test_validate_features()
    test_score_endpoint()
    test_score_endpoint_custom_target()
    test_score_endpoint_invalid_features()
    test_score_endpoint_non_object_body()
    test_feature_importance_endpoint()
    test_retrain_endpoint()
    test_retrain_endpoint_insufficient_data()
    test_reconcile_endpoint()
    test_health_and_errors()

    print("\n" + "="*60)
    print("ALL ROUTE TESTS PASSED")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_all_tests()
