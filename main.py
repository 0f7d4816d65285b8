"""
Command line entry point for the call quality analyzer.
Reads a transcript, runs the analysis and prints the report as JSON.
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from config_system.config_loader import ConfigLoader, ConfigValidationError, AnalyzerSettings
from config_system.model_factory import ModelFactory
from core.analyzer import CallQualityAnalyzer
from core.model_client import DryRunModelClient, LangChainModelClient
from exceptions import AnalysisError, InputError
from logging_config import setup_analyzer_logging, log_error
from runtime.rate_limit import invoke_with_rate_limit_retry
from scoring.rubric import SALES_CALL_RUBRIC


def build_analyzer(settings: AnalyzerSettings, config_loader: ConfigLoader,
                   model_name: Optional[str] = None, dry_run: bool = False) -> CallQualityAnalyzer:
    """Wire an analyzer from configuration."""
    if dry_run:
        model_client = DryRunModelClient()
    else:
        llm = ModelFactory(config_loader).create_llm(model_name or settings.model)
        model_client = LangChainModelClient(llm, system_message=settings.system_message)

    return CallQualityAnalyzer(
        model_client=model_client,
        rubric=SALES_CALL_RUBRIC,
        timeout_seconds=settings.timeout_seconds,
    )


def read_transcript(args) -> str:
    """Return the transcript from --transcript or the input file."""
    if args.transcript is not None:
        return args.transcript

    input_path = Path(args.input)
    if not input_path.exists():
        raise InputError(f"Input file '{input_path}' not found.")
    try:
        return input_path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(f"Error reading file '{input_path}': {e}")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Score a sales-call transcript against the call quality rubric'
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        '-i', '--input',
        help='Text file containing the call transcript'
    )
    source.add_argument(
        '-t', '--transcript',
        help='Transcript text passed directly on the command line'
    )
    parser.add_argument(
        '--config-root',
        default='./config',
        help='Path to configuration directory (default: ./config)'
    )
    parser.add_argument(
        '--model',
        help='Model config name to use instead of the one in analyzer.yaml'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Set the logging level (default: CALLQA_LOG_LEVEL env var, then analyzer.yaml)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging (equivalent to --log-level DEBUG)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Use a canned model reply (no LLM required)'
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Run one analysis; returns the process exit code."""
    load_dotenv()
    args = parse_args(argv)

    config_loader = ConfigLoader(args.config_root)
    try:
        settings = config_loader.load_analyzer_settings()
    except ConfigValidationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 2

    setup_analyzer_logging(
        log_level=args.log_level,
        verbose=args.verbose,
        default_level=settings.log_level
    )
    logger = logging.getLogger("main")

    try:
        transcript = read_transcript(args)
        analyzer = build_analyzer(settings, config_loader, args.model, args.dry_run)
        analyzer.set_logger(logger)

        if args.dry_run:
            logger.info("Running in DRY-RUN mode - using a canned model reply", extra={
                "component": "Main",
                "data": {"mode": "dry_run"}
            })

        retry = settings.retry
        report = invoke_with_rate_limit_retry(
            lambda: asyncio.run(analyzer.analyze_async(transcript)),
            max_retries=retry.max_retries,
            initial_delay=retry.initial_delay,
            exponential_base=retry.exponential_base,
            use_header_reset=retry.use_header_reset,
        )
    except ConfigValidationError as e:
        log_error(logger, f"Configuration error: {str(e)}", "Main", e)
        return 2
    except InputError as e:
        log_error(logger, f"Input error: {str(e)}", "Main", e)
        return 1
    except AnalysisError as e:
        log_error(logger, f"Analysis failed: {e.detail}", "Main")
        print(json.dumps(e.to_dict(), indent=2, ensure_ascii=False))
        return 1

    print(json.dumps(report.to_payload(SALES_CALL_RUBRIC), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
