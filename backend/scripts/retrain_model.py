#!/usr/bin/env python3
"""
Retrain Model Script
====================
Command-line entry point for scheduled model retraining.

Intended to be run by an external scheduler (e.g. a daily cron job).

Usage:
    python scripts/retrain_model.py --samples data/training_samples.jsonl
    python scripts/retrain_model.py --samples samples.json --store models/registry.json
    python scripts/retrain_model.py --show-model
    python scripts/retrain_model.py --reconcile
"""

import argparse
import json
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from engagement.config import AppConfig, apply_environment_overrides
from engagement.errors import EngagementError
from engagement.logging_config import get_research_logger
from engagement.services import EngagementService
from engagement.storage import JsonModelStore, JsonSampleSource

logger = get_research_logger("cli", log_to_file=False)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Retrain the engagement prediction model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Retrain from the configured sample file
    python scripts/retrain_model.py

    # Retrain from a specific file into a specific registry
    python scripts/retrain_model.py --samples exports/videos.jsonl --store models/registry.json

    # Abandon the run if it takes longer than 30 seconds
    python scripts/retrain_model.py --timeout 30

    # Show the active model
    python scripts/retrain_model.py --show-model
        """
    )

    parser.add_argument(
        '--samples', '-s',
        type=str,
        default=None,
        help='Historical sample file (JSON array or JSONL)'
    )

    parser.add_argument(
        '--store',
        type=str,
        default=None,
        help='Model registry file (default: from config)'
    )

    parser.add_argument(
        '--model-name', '-m',
        type=str,
        default=None,
        help='Model name (default: engagement_predictor)'
    )

    parser.add_argument(
        '--timeout',
        type=float,
        default=None,
        help='Abandon the retrain after this many seconds if nothing was persisted'
    )

    parser.add_argument(
        '--show-model',
        action='store_true',
        help='Print the active model and exit'
    )

    parser.add_argument(
        '--reconcile',
        action='store_true',
        help='Deactivate superseded versions and exit'
    )

    args = parser.parse_args(argv)

    config = apply_environment_overrides(AppConfig())
    if args.model_name:
        config.predictor.model_name = args.model_name

    store = JsonModelStore(args.store or config.registry_path)
    samples = JsonSampleSource(args.samples or config.samples_path)

    try:
        service = EngagementService(config=config, store=store, sample_source=samples)

        if args.show_model:
            print(json.dumps(service.model_info(), indent=2))
            return 0

        if args.reconcile:
            version = service.reconcile()
            print(json.dumps({'active_version': version.version if version else None}, indent=2))
            return 0

        result = service.retrain(timeout_seconds=args.timeout)

    except EngagementError as e:
        logger.error(f"Model retraining failed: {e.message}")
        print(json.dumps(e.to_dict(), indent=2))
        return 1

    performance = result.performance
    logger.info(
        f"Model Performance: {performance.accuracy * 100:.1f}% accuracy "
        f"with {performance.sample_count} samples"
    )
    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
