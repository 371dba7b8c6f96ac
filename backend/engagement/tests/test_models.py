"""
Data Model Tests
================
Tests for feature vectors, weight vectors, training samples and model versions.
"""

import os
import sys
import json

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

import pytest

from engagement.models import (
    FeatureVector,
    WeightVector,
    TrainingSample,
    PerformanceSummary,
    ModelVersion,
    PredictionResult,
    ImprovementPlan,
    Suggestion,
    RetrainResult,
    FEATURE_NAMES,
    tone_to_score,
    generate_version_id,
)
from engagement.config import DEFAULT_FEATURE_WEIGHTS


# =============================================================================
# FEATURE VECTOR TESTS
# =============================================================================

def test_feature_vector_defaults():
    features = FeatureVector()

    assert features.avg_brightness == 50
    assert features.text_coverage == 20
    assert features.hook_strength == 0.5
    assert features.content_length == 100
    assert features.duration == 10
    assert features.tone_score == 85
    assert list(features.values()) == list(FEATURE_NAMES)

    print("[PASS] FeatureVector defaults test passed")


def test_feature_vector_from_raw():
    """camelCase and snake_case keys are both accepted."""
    features = FeatureVector.from_raw({
        'avgBrightness': 80,
        'motion_level': 60,
        'hookStrength': '0.7',
        'toneScore': 0,
        'unknownKey': 5,
    })

    assert features.avg_brightness == 80
    assert features.motion_level == 60
    assert features.hook_strength == 0.7
    # Zero is a real value, not "missing"
    assert features.tone_score == 0
    assert features.avg_contrast == 50

    print("[PASS] FeatureVector.from_raw test passed")


def test_feature_vector_invalid_values_default():
    features = FeatureVector.from_raw({
        'avgBrightness': None,
        'avgContrast': 'bright',
        'motionLevel': float('nan'),
        'hookStrength': True,
    })

    assert features == FeatureVector()
    assert FeatureVector.from_raw(None) == FeatureVector()

    print("[PASS] Invalid values fall back to defaults")


def test_tone_scoring():
    assert tone_to_score('energetic') == 85
    assert tone_to_score('Funny ') == 80
    assert tone_to_score('calm') == 60
    assert tone_to_score('melancholy') == 50
    assert tone_to_score(None) == 85

    assert FeatureVector.from_raw({'tone': 'educational'}).tone_score == 70
    # Explicit numeric score wins over the label
    assert FeatureVector.from_raw({'tone': 'calm', 'toneScore': 90}).tone_score == 90

    print("[PASS] Tone scoring test passed")


def test_feature_vector_replace():
    features = FeatureVector(hook_strength=0.2)
    changed = features.replace(hook_strength=0.9)

    assert changed.hook_strength == 0.9
    assert features.hook_strength == 0.2
    assert changed.get('duration') == 10
    assert changed.get('sparkle', -1) == -1

    print("[PASS] FeatureVector.replace test passed")


# =============================================================================
# WEIGHT VECTOR TESTS
# =============================================================================

def test_weight_vector_immutable():
    weights = WeightVector(DEFAULT_FEATURE_WEIGHTS)

    with pytest.raises(TypeError):
        weights['duration'] = 0.5

    source = dict(DEFAULT_FEATURE_WEIGHTS)
    copied = WeightVector(source)
    source['duration'] = 0.9
    assert copied['duration'] == 0.07

    exported = copied.to_dict()
    exported['duration'] = 0.9
    assert copied['duration'] == 0.07

    print("[PASS] WeightVector is immutable")


def test_weight_vector_validation():
    with pytest.raises(ValueError):
        WeightVector({'duration': -0.1})
    with pytest.raises(ValueError):
        WeightVector({'duration': float('inf')})
    with pytest.raises(ValueError):
        WeightVector({'duration': 'heavy'})

    print("[PASS] WeightVector validation test passed")


def test_weight_vector_version_and_equality():
    weights = WeightVector(DEFAULT_FEATURE_WEIGHTS)
    tagged = weights.with_version("v1")

    assert weights.version is None
    assert tagged.version == "v1"
    assert tagged == weights
    assert tagged.is_normalized()
    assert WeightVector.uniform().is_normalized()
    assert len(WeightVector.uniform()) == len(FEATURE_NAMES)

    print("[PASS] WeightVector version test passed")


def test_weight_vector_ranked():
    ranked = WeightVector(DEFAULT_FEATURE_WEIGHTS).ranked()

    assert [name for name, _ in ranked[:3]] == ['hook_strength', 'motion_level', 'avg_brightness']

    # Ties keep insertion order
    tied = WeightVector({'a': 0.25, 'b': 0.5, 'c': 0.25}).ranked()
    assert [name for name, _ in tied] == ['b', 'a', 'c']

    print("[PASS] WeightVector ranking test passed")


# =============================================================================
# TRAINING SAMPLE TESTS
# =============================================================================

def test_training_sample_from_record():
    sample = TrainingSample.from_record({
        'features': {'hookStrength': 0.8, 'avgBrightness': 70},
        'metrics': {'engagement': 64.5, 'views': 1200, 'completionRate': 0.41},
        'duration': 14,
        'tone': 'funny',
    })

    assert sample.engagement == 64.5
    assert sample.views == 1200
    assert sample.completion_rate == 0.41
    assert sample.features.hook_strength == 0.8
    assert sample.features.duration == 14
    assert sample.features.tone_score == 80

    print("[PASS] TrainingSample.from_record test passed")


def test_training_sample_skips_incomplete_records():
    assert TrainingSample.from_record({'engagement': 50}) is None
    assert TrainingSample.from_record({'features': {'duration': 10}}) is None
    assert TrainingSample.from_record({'features': {}, 'engagement': 50}) is None
    assert TrainingSample.from_record({'features': {'duration': 10}, 'engagement': 'high'}) is None

    print("[PASS] Incomplete records are skipped")


def test_training_sample_clamps_engagement():
    high = TrainingSample.from_record({'features': {'duration': 10}, 'engagement': 140})
    low = TrainingSample.from_record({'features': {'duration': 10}, 'engagement': -3})

    assert high.engagement == 100
    assert low.engagement == 0

    print("[PASS] Engagement clamped to [0, 100]")


# =============================================================================
# MODEL VERSION AND OUTPUT TESTS
# =============================================================================

def test_model_version_serialization():
    version = ModelVersion(
        model_name="engagement_predictor",
        version="v1700000000000",
        weights=WeightVector(DEFAULT_FEATURE_WEIGHTS),
        performance=PerformanceSummary(accuracy=0.72, mean_error=11.5, sample_count=40),
        active=True
    )

    data = json.loads(json.dumps(version.to_dict()))
    loaded = ModelVersion.from_dict(data)

    assert loaded.version == "v1700000000000"
    assert loaded.weights == version.weights
    assert loaded.weights.version == "v1700000000000"
    assert loaded.performance.accuracy == 0.72
    assert loaded.active is True
    assert loaded.created_at == version.created_at

    print("[PASS] ModelVersion serialization test passed")


def test_output_serialization():
    prediction = PredictionResult(score=67.64, confidence=1.0, contributions={'duration': 0.02})
    assert prediction.to_dict()['contributions'] == {'duration': 0.02}
    assert json.loads(prediction.to_json())["score"] == 67.64

    summary = PerformanceSummary(accuracy=0.7, mean_error=9.5, sample_count=12)
    assert PerformanceSummary.from_json(summary.to_json()) == summary

    plan = ImprovementPlan(
        suggestions=[Suggestion('hook_strength', 0.3, 0.9, 0.12, 'Strengthen the opening hook')],
        potential_improvement=12.0
    )
    assert plan.to_dict()['suggestions'][0]['suggested_value'] == 0.9

    result = RetrainResult(
        version_id="v1",
        performance=PerformanceSummary(),
        weights=WeightVector.uniform(),
        adopted=False
    )
    data = result.to_dict()
    assert data['adopted'] is False
    assert isinstance(data['weights'], dict)
    json.dumps(data)

    print("[PASS] Output serialization test passed")


def test_version_ids_strictly_increase():
    ids = [generate_version_id() for _ in range(50)]

    assert all(i.startswith("v") for i in ids)
    numbers = [int(i[1:]) for i in ids]
    assert numbers == sorted(set(numbers))

    print("[PASS] Version ids strictly increase")


# =============================================================================
# RUN ALL TESTS
# =============================================================================

def run_all_tests():
    """Run all model tests."""
    print("\n" + "="*60)
    print("DATA MODEL TESTS")
    print("="*60 + "\n")

    test_feature_vector_defaults()
    test_feature_vector_from_raw()
    test_feature_vector_invalid_values_default()
    test_tone_scoring()
    test_feature_vector_replace()

    test_weight_vector_immutable()
    test_weight_vector_validation()
    test_weight_vector_version_and_equality()
    test_weight_vector_ranked()

    test_training_sample_from_record()
    test_training_sample_skips_incomplete_records()
    test_training_sample_clamps_engagement()

    test_model_version_serialization()
    test_output_serialization()
    test_version_ids_strictly_increase()

    print("\n" + "="*60)
    print("ALL DATA MODEL TESTS PASSED")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_all_tests()
