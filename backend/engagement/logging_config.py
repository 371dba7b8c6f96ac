"""
Research Logging System
=======================
Structured logging for the engagement engine.

This module provides:
- Structured JSON logging for machine-parseable outputs
- Topic loggers for predictions, training runs, and model decisions
- Log file organization by experiment
- Console output for interactive use

Usage:
    from engagement.logging_config import get_research_logger, log_prediction

    logger = get_research_logger("training")
    logger.info("Fitted weights", extra={"sample_count": 42})

    # Convenience functions
    log_prediction(score, confidence, contributions)
    log_training_run(model_name, sample_count, performance)
    log_model_decision(decision_type, details)
"""

import sys
import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any, Union

from .config import AppConfig, get_config


# Attributes every LogRecord carries; anything else came in through extra={}
_RESERVED_ATTRS = frozenset((
    'name', 'msg', 'args', 'created', 'filename',
    'funcName', 'levelname', 'levelno', 'lineno',
    'module', 'msecs', 'pathname', 'process',
    'processName', 'relativeCreated', 'stack_info',
    'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'context', 'taskName',
))


# =============================================================================
# CUSTOM FORMATTERS
# =============================================================================

class StructuredFormatter(logging.Formatter):
    """
    One JSON object per record, for the JSONL topic files:
    {
        "timestamp": "2024-01-15T10:30:00.123456",
        "level": "INFO",
        "logger": "research.training",
        "message": "Fitted weights",
        "context": {...}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, 'context') and record.context:
            log_data['context'] = record.context

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class ConsoleFormatter(logging.Formatter):
    """
    Single-line console output with simple extras appended.

    Format: [LEVEL] logger: message (key=value, ...)
    """

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_colors and level in self.COLORS:
            level = f"{self.COLORS[level]}{level}{self.RESET}"

        msg = f"[{level}] {record.name}: {record.getMessage()}"

        extras = []
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if isinstance(value, (str, int, float, bool)):
                extras.append(f"{key}={value}")
            elif isinstance(value, dict) and len(value) < 3:
                extras.append(f"{key}={value}")

        if extras:
            msg += f" ({', '.join(extras)})"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


# =============================================================================
# LOGGER FACTORY
# =============================================================================

_loggers: Dict[str, logging.Logger] = {}
_loggers_lock = threading.Lock()
_initialized: bool = False

LOG_TOPICS = ("predictions", "training", "decisions")


def _setup_root_logger(config: AppConfig):
    """Route library loggers (logging.getLogger(__name__)) to the console, once."""
    global _initialized
    if _initialized:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.research.log_level, logging.INFO))

    root_logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(ConsoleFormatter())
    root_logger.addHandler(console_handler)

    _initialized = True


def _create_file_handler(config: AppConfig, name: str, experiment_name: Optional[str]) -> logging.Handler:
    exp_name = experiment_name or config.research.experiment_name
    log_dir = config.paths.logs / name
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d")
    log_file = log_dir / f"{exp_name}_{timestamp}.jsonl"

    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setFormatter(StructuredFormatter())
    return file_handler


def get_research_logger(
    name: str,
    log_to_file: bool = True,
    experiment_name: Optional[str] = None,
    config: Optional[AppConfig] = None
) -> logging.Logger:
    """
    Logger "research.<name>", created once per process and cached.

    The first call for a topic fixes its handlers; later calls return the
    cached logger without touching the filesystem. If the log file cannot
    be opened the logger falls back to console output only.

    Args:
        name: Topic, usually one of LOG_TOPICS; also the sub-directory of logs/
        log_to_file: Also append JSON lines to logs/<name>/<experiment>_<date>.jsonl
        experiment_name: File prefix (defaults to config.research.experiment_name)
        config: Configuration used when creating the logger (defaults to get_config())
    """
    full_name = f"research.{name}"

    cached = _loggers.get(full_name)
    if cached is not None:
        return cached

    with _loggers_lock:
        if full_name in _loggers:
            return _loggers[full_name]

        config = config or get_config()
        _setup_root_logger(config)

        logger = logging.getLogger(full_name)
        logger.setLevel(getattr(logging, config.research.log_level, logging.INFO))
        logger.propagate = False
        logger.handlers = []

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(ConsoleFormatter())
        logger.addHandler(console_handler)

        if log_to_file:
            try:
                logger.addHandler(_create_file_handler(config, name, experiment_name))
            except OSError as e:
                logger.warning(f"File logging disabled for {full_name}: {e}")

        _loggers[full_name] = logger
        return logger



def get_prediction_logger() -> logging.Logger:
    """Get a logger for individual predictions."""
    return get_research_logger("predictions")


def get_training_logger() -> logging.Logger:
    """Get a logger for fitting and evaluation runs."""
    return get_research_logger("training")


def get_decision_logger() -> logging.Logger:
    """Get a logger for model adoption decisions."""
    return get_research_logger("decisions")


# =============================================================================
# CONVENIENCE LOGGING FUNCTIONS
# =============================================================================

def log_prediction(
    score: float,
    confidence: float,
    contributions: Dict[str, float],
    model_version: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
    enabled: Optional[bool] = None
) -> None:
    """
    Log a single engagement prediction.

    Args:
        score: Predicted engagement score (0-100)
        confidence: Completeness-based confidence (0-1)
        contributions: Per-feature weighted contributions
        model_version: Version of the weights used, if known
        logger: Optional logger override
        enabled: Overrides config.research.log_predictions
    """
    if enabled is None:
        enabled = get_config().research.log_predictions
    if not enabled:
        return

    log = logger or get_prediction_logger()
    log.debug(
        f"Predicted engagement {score:.2f}",
        extra={
            'score': score,
            'confidence': confidence,
            'contributions': contributions,
            'model_version': model_version or 'default'
        }
    )


def log_training_run(
    model_name: str,
    sample_count: int,
    performance: Dict[str, Any],
    weights: Dict[str, float] = None,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Log the outcome of fitting and evaluating a candidate.

    Args:
        model_name: Name of the model being retrained
        sample_count: Number of training samples used
        performance: Evaluation summary of the candidate
        weights: Candidate weights
        logger: Optional logger override
    """
    config = get_config()
    if not config.research.log_training:
        return

    log = logger or get_training_logger()
    log.info(
        f"Training run for {model_name} on {sample_count} samples",
        extra={
            'model_name': model_name,
            'sample_count': sample_count,
            'performance': performance,
            'weights': weights or {}
        }
    )


def log_model_decision(
    decision_type: str,
    details: Dict[str, Any],
    model_name: Optional[str] = None,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Log a model lifecycle decision.

    Args:
        decision_type: Type of decision (e.g., "candidate_adopted", "candidate_rejected")
        details: Decision details
        model_name: Name of the affected model
        logger: Optional logger override
    """
    config = get_config()
    if not config.research.log_decisions:
        return

    log = logger or get_decision_logger()
    extra = {
        'decision_type': decision_type,
        'details': details
    }
    if model_name:
        extra['model_name'] = model_name

    log.info(f"Decision: {decision_type}", extra=extra)


# =============================================================================
# LOG FILE UTILITIES
# =============================================================================

def read_log_file(log_path: Union[str, Path]) -> list:
    """Parsed entries of a JSONL log file. Lines that are not JSON are skipped."""
    entries = []
    with open(log_path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if line:
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
    return entries


def get_decision_logs_for_model(model_name: str) -> list:
    """Every logged lifecycle decision for `model_name`, across experiments."""
    config = get_config()
    log_dir = config.paths.logs / "decisions"

    entries = []
    for log_file in log_dir.glob("*.jsonl"):
        for entry in read_log_file(log_file):
            if entry.get('model_name') == model_name:
                entries.append(entry)

    return entries
