"""
Logging System Tests
====================
Verifies that the research logging system works correctly.
"""

import os
import sys
import json
import logging
import tempfile
import threading
import uuid

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from engagement.logging_config import (
    get_research_logger,
    get_prediction_logger,
    get_training_logger,
    get_decision_logger,
    log_prediction,
    log_training_run,
    log_model_decision,
    read_log_file,
    get_decision_logs_for_model,
    StructuredFormatter,
    ConsoleFormatter,
)
from engagement.config import AppConfig, get_config


class ListHandler(logging.Handler):
    """Collects records for inspection."""

    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def create_capture_logger(name: str):
    logger = logging.getLogger(f"capture.{name}")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    handler = ListHandler()
    logger.handlers = [handler]
    return logger, handler


def make_record(msg="Test message", **extra):
    record = logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_get_research_logger():
    """Test creating research loggers."""
    logger = get_research_logger("test", log_to_file=False)

    assert logger is not None
    assert logger.name == "research.test"

    # Same logger on second call
    assert get_research_logger("test", log_to_file=False) is logger

    print("[PASS] get_research_logger test passed")


def test_topic_loggers():
    assert get_prediction_logger().name == "research.predictions"
    assert get_training_logger().name == "research.training"
    assert get_decision_logger().name == "research.decisions"
    print("[PASS] Topic loggers test passed")


def test_structured_formatter():
    """Test JSON formatting of log records."""
    formatter = StructuredFormatter()

    data = json.loads(formatter.format(make_record(version_id="v1", weights={'duration': 1.0})))

    assert data['level'] == 'INFO'
    assert data['logger'] == 'test.logger'
    assert data['message'] == 'Test message'
    assert data['version_id'] == 'v1'
    assert data['weights'] == {'duration': 1.0}
    assert 'timestamp' in data

    print("[PASS] StructuredFormatter test passed")


def test_structured_formatter_unserializable_extra():
    formatter = StructuredFormatter()
    data = json.loads(formatter.format(make_record(path=object())))
    assert isinstance(data['path'], str)
    print("[PASS] Unserializable extras are stringified")


def test_console_formatter():
    """Test console formatting of log records."""
    formatter = ConsoleFormatter(use_colors=False)

    formatted = formatter.format(make_record(model_name="engagement_predictor"))

    assert "[INFO]" in formatted
    assert "test.logger" in formatted
    assert "Test message" in formatted
    assert "model_name=engagement_predictor" in formatted

    print("[PASS] ConsoleFormatter test passed")


def test_log_prediction():
    logger, handler = create_capture_logger("predictions")

    log_prediction(67.64, 1.0, {'hook_strength': 0.18}, None, logger=logger)

    record = handler.records[0]
    assert record.levelno == logging.DEBUG
    assert record.score == 67.64
    assert record.model_version == 'default'

    print("[PASS] Prediction logging test passed")


def test_log_prediction_disabled():
    logger, handler = create_capture_logger("predictions_disabled")

    log_prediction(50.0, 0.2, {}, None, logger=logger, enabled=False)

    assert handler.records == []
    print("[PASS] Disabled prediction logging writes nothing")


def test_research_logger_created_once_under_concurrency():
    name = f"concurrent_{uuid.uuid4().hex[:8]}"
    barrier = threading.Barrier(8)
    loggers = []

    def worker():
        barrier.wait()
        loggers.append(get_research_logger(name, log_to_file=False))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len({id(logger) for logger in loggers}) == 1
    assert len(loggers[0].handlers) == 1

    print("[PASS] Concurrent callers share one logger")


def test_research_logger_unwritable_log_dir():
    """A topic directory that cannot be created leaves console logging only."""
    name = f"blocked_{uuid.uuid4().hex[:8]}"

    with tempfile.TemporaryDirectory() as tmp:
        config = AppConfig.from_dict({'paths': {'base_dir': tmp}})
        (config.paths.logs / name).write_text("not a directory")

        logger = get_research_logger(name, config=config)

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)
        assert not isinstance(logger.handlers[0], logging.FileHandler)

    print("[PASS] Unwritable log directory falls back to console")


def test_log_training_run():
    logger, handler = create_capture_logger("training")

    log_training_run(
        "engagement_predictor", 40,
        {'accuracy': 0.7, 'mean_error': 12.0, 'sample_count': 40},
        {'hook_strength': 1.0},
        logger=logger
    )

    record = handler.records[0]
    assert record.model_name == "engagement_predictor"
    assert record.sample_count == 40
    assert record.performance['accuracy'] == 0.7

    print("[PASS] Training run logging test passed")


def test_log_model_decision():
    logger, handler = create_capture_logger("decisions")

    log_model_decision("candidate_rejected", {'accuracy': 0.5}, model_name="m", logger=logger)

    record = handler.records[0]
    assert record.decision_type == "candidate_rejected"
    assert record.details == {'accuracy': 0.5}
    assert record.model_name == "m"

    print("[PASS] Decision logging test passed")


def test_decision_logs_for_model():
    """Decisions written to file can be read back per model."""
    model_name = f"log_test_{uuid.uuid4().hex[:8]}"

    log_model_decision("candidate_adopted", {'version_id': 'v42'}, model_name=model_name)
    log_model_decision("candidate_adopted", {'version_id': 'v43'}, model_name="other_model")

    entries = get_decision_logs_for_model(model_name)

    assert len(entries) == 1
    assert entries[0]['decision_type'] == 'candidate_adopted'
    assert entries[0]['details']['version_id'] == 'v42'

    print("[PASS] Decision logs read back by model")


def test_read_log_file_skips_bad_lines():
    config = get_config()
    test_log_path = config.paths.logs / "test" / "test_log.jsonl"
    test_log_path.parent.mkdir(parents=True, exist_ok=True)

    with open(test_log_path, 'w') as f:
        f.write(json.dumps({"level": "INFO", "message": "Test 1"}) + '\n')
        f.write("not json\n")
        f.write('\n')
        f.write(json.dumps({"level": "INFO", "message": "Test 2"}) + '\n')

    try:
        loaded = read_log_file(test_log_path)
        assert [e['message'] for e in loaded] == ['Test 1', 'Test 2']
    finally:
        os.unlink(test_log_path)

    print("[PASS] Log file reading test passed")


def run_all_tests():
    """Run all logging tests."""
    print("\n" + "="*60)
    print("LOGGING SYSTEM TESTS")
    print("="*60 + "\n")

    test_get_research_logger()
    test_topic_loggers()
    test_structured_formatter()
    test_structured_formatter_unserializable_extra()
    test_console_formatter()
    test_log_prediction()
    test_log_prediction_disabled()
    test_research_logger_created_once_under_concurrency()
    test_research_logger_unwritable_log_dir()
    test_log_training_run()
    test_log_model_decision()
    test_decision_logs_for_model()
    test_read_log_file_skips_bad_lines()

    print("\n" + "="*60)
    print("ALL LOGGING TESTS PASSED")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_all_tests()
