"""
Configuration Module
====================
Settings for the engagement engine, grouped into dataclass sections.

Sections:
- paths: where models, samples and logs live
- predictor: model name, starting weights, confidence formula
- training: sample minimum, error tolerance, adoption gate, retrain deadline
- advisor: default target score and how many features to advise on
- store: model store backend and file names
- flask / research: server and experiment-logging settings

Usage:
    from engagement.config import get_config
    config = get_config()

    threshold = config.training.accuracy_threshold
    model_name = config.predictor.model_name

Experiments can keep their settings in a JSON file:
    config = load_experiment_config("experiments/strict_gate.json")
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Literal
import os
import json
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================

def _default_base_dir() -> Path:
    env_dir = os.getenv("ENGAGEMENT_BASE_DIR")
    if env_dir:
        return Path(env_dir)
    return Path(__file__).parent


@dataclass
class PathConfig:
    """Configuration for file system paths."""

    # Base directory (defaults to package directory)
    base_dir: Path = field(default_factory=_default_base_dir)

    # Runtime directories
    models_dir: str = "models_store"
    data_dir: str = "data"

    # Research output directories
    logs_dir: str = "logs"
    experiments_dir: str = "experiments"

    @property
    def models(self) -> Path:
        return self.base_dir / self.models_dir

    @property
    def data(self) -> Path:
        return self.base_dir / self.data_dir

    @property
    def logs(self) -> Path:
        return self.base_dir / self.logs_dir

    @property
    def experiments(self) -> Path:
        return self.base_dir / self.experiments_dir

    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        for dir_path in [self.models, self.data, self.logs, self.experiments]:
            dir_path.mkdir(parents=True, exist_ok=True)


# Weights the engine serves before any retrain has been adopted.
DEFAULT_FEATURE_WEIGHTS: Dict[str, float] = {
    'avg_brightness': 0.15,
    'avg_contrast': 0.12,
    'motion_level': 0.18,
    'color_variance': 0.10,
    'text_coverage': 0.08,
    'hook_strength': 0.20,
    'content_length': 0.05,
    'duration': 0.07,
    'tone_score': 0.05,
}


@dataclass
class PredictorConfig:
    """
    Configuration for the engagement predictor.

    The scoring function:
        E(x) = 100 * sigmoid( Σ_f w_f * norm(x_f) )

    Since every normalized feature lies in [0, 1] and the weights sum to 1,
    the weighted sum lies in [0, 1] and the score lies in [50, ~73.1].
    """

    # Name under which model versions are persisted
    model_name: str = "engagement_predictor"

    # Starting weights (must sum to 1.0)
    default_weights: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_FEATURE_WEIGHTS)
    )

    # Confidence = base + span * completeness
    confidence_base: float = 0.2
    confidence_span: float = 0.8

    # Decimal places in reported scores
    score_precision: int = 2


@dataclass
class TrainingConfig:
    """
    Configuration for weight fitting, evaluation and adoption gating.

    NOTE: Weights come from absolute Pearson correlation, not regression.
    Only the strength of a feature's relationship with engagement matters.
    """

    # Minimum usable samples before fitting is attempted
    min_samples: int = 10

    # A prediction is "correct" if within this many points of observed engagement
    error_tolerance: float = 20.0

    # Candidate must strictly exceed this accuracy to be adopted
    accuracy_threshold: float = 0.6

    # Abandon a retrain that runs past this many seconds (None disables)
    retrain_timeout_seconds: Optional[float] = None


@dataclass
class AdvisorConfig:
    """Configuration for improvement suggestions."""

    default_target_score: float = 75.0

    # How many of the heaviest-weighted features to consider
    top_features: int = 3


@dataclass
class StoreConfig:
    """Configuration for model persistence and historical samples."""

    # Model store backend: 'json' (registry file) or 'memory'
    backend: Literal["json", "memory"] = "json"

    # Registry filename, relative to paths.models
    registry_filename: str = "model_registry.json"

    # Historical sample file (JSON list or JSONL), relative to paths.data
    samples_filename: str = "training_samples.jsonl"


@dataclass
class FlaskConfig:
    """Configuration for Flask web server."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False

    # Security
    secret_key: str = field(default_factory=lambda: os.getenv("FLASK_SECRET_KEY", "dev-secret-key"))

    # CORS
    cors_origins: list = field(default_factory=lambda: ["*"])


@dataclass
class ResearchConfig:
    """Configuration for experiment tracking and logging."""

    # Experiment identification
    experiment_name: str = "default"
    experiment_version: str = "1.0.0"

    # Logging
    log_level: str = "INFO"
    log_predictions: bool = True
    log_training: bool = True
    log_decisions: bool = True


@dataclass
class AppConfig:
    """All configuration sections. Creating one creates its directories."""

    paths: PathConfig = field(default_factory=PathConfig)
    predictor: PredictorConfig = field(default_factory=PredictorConfig)
    training: TrainingConfig = field(default_factory=TrainingConfig)
    advisor: AdvisorConfig = field(default_factory=AdvisorConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    flask: FlaskConfig = field(default_factory=FlaskConfig)
    research: ResearchConfig = field(default_factory=ResearchConfig)

    def __post_init__(self):
        self.paths.ensure_directories()

    @property
    def registry_path(self) -> Path:
        return self.paths.models / self.store.registry_filename

    @property
    def samples_path(self) -> Path:
        return self.paths.data / self.store.samples_filename

    def to_dict(self) -> dict:
        """JSON-ready dict (paths as strings)."""
        def convert(obj):
            if hasattr(obj, '__dataclass_fields__'):
                return {k: convert(v) for k, v in obj.__dict__.items()}
            elif isinstance(obj, Path):
                return str(obj)
            elif isinstance(obj, dict):
                return {k: convert(v) for k, v in obj.items()}
            return obj
        return convert(self)

    def save(self, filepath: str) -> None:
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Wrote configuration to {filepath}")

    @classmethod
    def from_dict(cls, data: dict) -> "AppConfig":
        """Inverse of to_dict(); missing sections take their defaults."""
        # base_dir comes back from JSON as a string
        paths_data = dict(data.get('paths', {}))
        if 'base_dir' in paths_data and isinstance(paths_data['base_dir'], str):
            paths_data['base_dir'] = Path(paths_data['base_dir'])

        return cls(
            paths=PathConfig(**paths_data),
            predictor=PredictorConfig(**data.get('predictor', {})),
            training=TrainingConfig(**data.get('training', {})),
            advisor=AdvisorConfig(**data.get('advisor', {})),
            store=StoreConfig(**data.get('store', {})),
            flask=FlaskConfig(**data.get('flask', {})),
            research=ResearchConfig(**data.get('research', {}))
        )

    @classmethod
    def load(cls, filepath: str) -> "AppConfig":
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
        logger.info(f"Read configuration from {filepath}")
        return cls.from_dict(data)


# =============================================================================
# GLOBAL CONFIGURATION SINGLETON
# =============================================================================

_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """The process-wide AppConfig, built with defaults on first use."""
    global _config
    if _config is None:
        _config = AppConfig()
        logger.info("Created default engagement engine configuration")
    return _config


def set_config(config: AppConfig) -> None:
    """Install `config` as the process-wide configuration."""
    global _config
    _config = config
    logger.info(
        f"Using configuration for experiment {config.research.experiment_name} "
        f"(model: {config.predictor.model_name})"
    )


def reset_config() -> None:
    """Drop the process-wide configuration; the next get_config() rebuilds it."""
    global _config
    _config = None
    logger.debug("Configuration reset")


def load_experiment_config(filepath: str) -> AppConfig:
    """
    Read an experiment's JSON configuration and make it the global one.

    Useful for trying a stricter accuracy gate or a different error
    tolerance without touching code.
    """
    config = AppConfig.load(filepath)
    set_config(config)
    return config


# =============================================================================
# ENVIRONMENT VARIABLE OVERRIDES
# =============================================================================

_SECTIONS = ('predictor', 'training', 'advisor', 'store', 'flask', 'research')


def apply_environment_overrides(config: AppConfig) -> AppConfig:
    """
    Apply environment variable overrides to configuration.

    Environment variables follow the pattern:
    ENGAGEMENT_{SECTION}_{KEY}

    Examples:
        ENGAGEMENT_TRAINING_ACCURACY_THRESHOLD=0.7
        ENGAGEMENT_FLASK_PORT=8080
        ENGAGEMENT_RESEARCH_LOG_LEVEL=DEBUG

    Also supports:
        PORT=8080 (maps to flask.port)

    Args:
        config: Base configuration to override

    Returns:
        Configuration with environment overrides applied
    """
    if os.getenv("PORT"):
        try:
            config.flask.port = int(os.getenv("PORT"))
            logger.info(f"Environment override: flask.port = {config.flask.port}")
        except ValueError:
            logger.warning(f"Ignoring non-integer PORT: {os.getenv('PORT')}")

    prefix = "ENGAGEMENT_"

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        parts = key[len(prefix):].lower().split('_', 1)
        if len(parts) != 2:
            continue

        section, attr = parts
        if section not in _SECTIONS:
            continue

        section_config = getattr(config, section, None)
        if section_config is None or not hasattr(section_config, attr):
            continue

        # Convert value to the type of the current value
        current_value = getattr(section_config, attr)
        try:
            if isinstance(current_value, bool):
                typed_value = value.lower() in ('true', '1', 'yes')
            elif isinstance(current_value, int):
                typed_value = int(value)
            elif isinstance(current_value, float):
                typed_value = float(value)
            elif isinstance(current_value, (dict, list)):
                typed_value = json.loads(value)
            elif current_value is None and attr.endswith('_seconds'):
                typed_value = float(value)
            else:
                typed_value = value

            setattr(section_config, attr, typed_value)
            logger.info(f"Environment override: {section}.{attr} = {typed_value}")

        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to apply environment override {key}: {e}")

    return config


# =============================================================================
# PRESET CONFIGURATIONS FOR COMMON SCENARIOS
# =============================================================================

def get_development_config() -> AppConfig:
    """Get configuration optimized for development."""
    config = AppConfig()
    config.flask.debug = True
    config.store.backend = "memory"
    config.research.log_level = "DEBUG"
    return config


def get_production_config() -> AppConfig:
    """Get configuration optimized for production."""
    config = AppConfig()
    config.flask.debug = False
    config.store.backend = "json"
    config.research.log_level = "INFO"
    return config
