"""
Improvement Advisor Module
==========================
Suggests bounded feature adjustments for content predicted below a target.

Only the heaviest-weighted features are considered, each nudged toward a
feature-specific band:
- Visual quality (brightness, contrast, motion, colour): below 70 -> +15, capped at 85
- Hook strength: below 0.8 -> 0.9
- Text coverage: outside [15, 35] -> 25
- Duration: outside [8, 12] seconds -> 10

Impact is weight * size of the change on the feature's normalized scale.
The summed impact is a heuristic, not a guaranteed score delta.
"""

import logging
from typing import Callable, Dict, Optional, Tuple

from .predictor import EngagementPredictor
from ..models import FeatureVector, Suggestion, ImprovementPlan
from ..config import AdvisorConfig, get_config

logger = logging.getLogger(__name__)


FEATURE_DESCRIPTIONS: Dict[str, str] = {
    'avg_brightness': 'Increase video brightness for better visibility',
    'avg_contrast': 'Enhance contrast to make content pop',
    'motion_level': 'Add more dynamic movement or transitions',
    'color_variance': 'Use more vibrant and varied colors',
    'text_coverage': 'Optimize text overlay size and positioning',
    'hook_strength': 'Strengthen the opening hook',
    'content_length': 'Adjust content length for optimal engagement',
    'duration': 'Optimize video duration',
    'tone_score': 'Consider adjusting the content tone',
}

# A rule maps (current value, weight) to (suggested value, impact)
AdjustmentRule = Callable[[float, float], Tuple[float, float]]


def _visual_quality(current: float, weight: float) -> Tuple[float, float]:
    if current < 70:
        suggested = min(85.0, current + 15)
        return suggested, weight * (suggested - current) / 100
    return current, 0.0


def _hook_strength(current: float, weight: float) -> Tuple[float, float]:
    if current < 0.8:
        suggested = 0.9
        return suggested, weight * (suggested - current)
    return current, 0.0


def _text_coverage(current: float, weight: float) -> Tuple[float, float]:
    if current < 15 or current > 35:
        suggested = 25.0
        return suggested, weight * abs(suggested - current) / 100
    return current, 0.0


def _duration(current: float, weight: float) -> Tuple[float, float]:
    if current < 8 or current > 12:
        suggested = 10.0
        return suggested, weight * abs(suggested - current) / 30
    return current, 0.0


ADJUSTMENT_RULES: Dict[str, AdjustmentRule] = {
    'avg_brightness': _visual_quality,
    'avg_contrast': _visual_quality,
    'motion_level': _visual_quality,
    'color_variance': _visual_quality,
    'hook_strength': _hook_strength,
    'text_coverage': _text_coverage,
    'duration': _duration,
}


class ImprovementAdvisor:
    """
    Proposes feature changes that should raise predicted engagement.

    Usage:
        advisor = ImprovementAdvisor(predictor)
        plan = advisor.suggest(features, target_score=75)
        for s in plan.suggestions:
            print(s.feature, s.current_value, '->', s.suggested_value)
    """

    def __init__(
        self,
        predictor: EngagementPredictor,
        config: Optional[AdvisorConfig] = None
    ):
        self.predictor = predictor
        self.config = config or get_config().advisor

    def suggest(
        self,
        features: FeatureVector,
        target_score: Optional[float] = None
    ) -> ImprovementPlan:
        """
        Suggest adjustments for the top-weighted features.

        Args:
            features: Raw features of the content item
            target_score: Score to aim for (defaults to config)

        Returns:
            ImprovementPlan; empty when the prediction already meets the target
        """
        if target_score is None:
            target_score = self.config.default_target_score

        weights = self.predictor.active.snapshot()
        prediction = self.predictor.predict(features, weights=weights)

        if prediction.score >= target_score:
            return ImprovementPlan(
                suggestions=[],
                potential_improvement=0.0,
                current_score=prediction.score,
                target_score=target_score
            )

        suggestions = []
        for feature, weight in weights.ranked()[:self.config.top_features]:
            rule = ADJUSTMENT_RULES.get(feature)
            if rule is None:
                continue

            current = features.get(feature)
            suggested, impact = rule(current, weight)
            if suggested == current:
                continue

            suggestions.append(Suggestion(
                feature=feature,
                current_value=current,
                suggested_value=suggested,
                impact=impact,
                description=FEATURE_DESCRIPTIONS.get(feature, '')
            ))

        potential = sum(s.impact * 100 for s in suggestions)

        logger.debug(
            f"Suggested {len(suggestions)} adjustments "
            f"(score {prediction.score:.2f}, target {target_score:.2f})"
        )

        return ImprovementPlan(
            suggestions=suggestions,
            potential_improvement=round(potential, 2),
            current_score=prediction.score,
            target_score=target_score
        )
