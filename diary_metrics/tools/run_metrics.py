#!/usr/bin/env python3
"""
Offline metrics runner.

Re-scores an exported submission payload with the metrics engine.

Usage:
    python -m diary_metrics.tools.run_metrics --input SUBMISSION [--attention CPT] [--trail-making TMT] [--digit-span DS] [--config CONFIG]

Examples:
    python -m diary_metrics.tools.run_metrics --input submission.json
    python -m diary_metrics.tools.run_metrics --input submission.json --attention cpt.json --output metrics.json
    python -m diary_metrics.tools.run_metrics --input submission.json --workers 4
    python -m diary_metrics.tools.run_metrics --input submission.json --trail-making tmt.json --log-file run.log
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from diary_metrics.engine.metrics_engine import MetricsEngine
from diary_metrics.utils.config_loader import get_section, load_config
from diary_metrics.utils.logger import setup_logger_from_config


def _read_json(path: str) -> Any:
    with open(Path(path), 'r', encoding='utf-8') as f:
        return json.load(f)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Calculate interaction and cognitive-test metrics for one submission",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Score the interaction log of a submission:
        python -m diary_metrics.tools.run_metrics --input submission.json

    Include a CPT run and write the result to a file:
        python -m diary_metrics.tools.run_metrics --input submission.json --attention cpt.json --output out.json

    Score Trail Making and Digit Span runs, logging details to a file:
        python -m diary_metrics.tools.run_metrics --input submission.json --trail-making tmt.json \\
            --digit-span digit_span.json --log-file logs/run.log

The input file holds the interaction payload as sent by the form
(movements, interactions, keyboardEvents). Only metrics with
"calculated": true are measurements; the rest mean "insufficient data".
A cognitive test without start and end time was not performed and
scores as null.
        """
    )

    parser.add_argument(
        "--input",
        type=str,
        required=True,
        help="Path to the interaction payload JSON"
    )

    parser.add_argument(
        "--attention",
        type=str,
        default=None,
        help="Path to a CPT payload JSON (optional)"
    )

    parser.add_argument(
        "--trail-making",
        type=str,
        default=None,
        help="Path to a Trail Making payload JSON (optional)"
    )

    parser.add_argument(
        "--digit-span",
        type=str,
        default=None,
        help="Path to a Digit Span payload JSON (optional)"
    )

    parser.add_argument(
        "--config",
        type=str,
        default="config/config.yaml",
        help="Path to configuration file (default: config/config.yaml)"
    )

    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the result here instead of stdout"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Threads for per-question calculation (overrides config)"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write DEBUG logs to this file (overrides config)"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config: Dict[str, Any] = load_config(args.config)
        config_missing = False
    except FileNotFoundError:
        config = {}
        config_missing = True

    logger = setup_logger_from_config(config, log_file=args.log_file)
    if config_missing:
        logger.warning(f"Config file not found at {args.config}, using defaults")

    if args.workers is not None:
        config['engine'] = {**get_section(config, 'engine'), 'max_workers': args.workers}

    try:
        engine = MetricsEngine.from_config(config)
        payload = _read_json(args.input)
        result = engine.calculate_from_payload(
            payload,
            attention_payload=_read_json(args.attention) if args.attention else None,
            trail_making_payload=_read_json(args.trail_making) if args.trail_making else None,
            digit_span_payload=_read_json(args.digit_span) if args.digit_span else None
        )
    except (OSError, ValueError) as e:
        logger.error(f"Failed to calculate metrics: {e}")
        return 1

    output = json.dumps(result.to_dict(), indent=2)
    if args.output:
        Path(args.output).write_text(output + "\n", encoding='utf-8')
        logger.info(f"Metrics written to {args.output}")
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
