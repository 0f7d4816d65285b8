#!/usr/bin/env python3
"""
CLI tool for managing analyzer and model configurations.
Validates configs and provides management commands.
"""
import argparse
import logging
import sys

from config_system.config_loader import ConfigLoader, ConfigValidationError
from config_system.model_factory import ModelRegistry
from logging_config import setup_analyzer_logging, log_step_start, log_step_complete, log_error


def validate_command(args, logger):
    """Validate all configuration files."""
    try:
        log_step_start(logger, "ConfigValidator", "validation", "Starting configuration validation", {
            "config_root": args.config_root
        })

        loader = ConfigLoader(args.config_root)
        loader.validate_all_configs()

        log_step_complete(logger, "ConfigValidator", "validation", "Configuration validation completed", {
            "status": "success",
            "config_root": args.config_root
        })
        return True
    except ConfigValidationError as e:
        log_error(logger, f"Configuration validation failed: {str(e)}", "ConfigValidator", e)
        return False


def list_command(args, logger):
    """List available model configurations."""
    loader = ConfigLoader(args.config_root)
    models = loader.list_available_models()

    log_step_complete(logger, "ConfigLister", "listing", "Configuration listing completed", {
        "models": models,
        "models_count": len(models)
    })
    for model in models:
        print(model)
    return True


def check_command(args, logger):
    """Check a specific model configuration without instantiating it."""
    try:
        loader = ConfigLoader(args.config_root)
        model_name = args.model or loader.load_analyzer_settings().model
        model_config = loader.load_model_config(model_name)
        module_name, class_name = ModelRegistry.resolve_class_path(model_config)

        log_step_complete(logger, "ConfigChecker", "checking", "Configuration check completed", {
            "name": model_name,
            "provider": model_config.provider,
            "model_name": model_config.model_name,
            "llm_class": f"{module_name}.{class_name}",
            "parameters": model_config.parameters,
            "credential_keys": sorted(model_config.credentials),
            "status": "valid"
        })
        return True
    except ConfigValidationError as e:
        log_error(logger, f"Configuration check failed: {str(e)}", "ConfigChecker", e)
        return False


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Call Quality Analyzer Configuration Management CLI",
        epilog="Examples:\n"
               "  %(prog)s validate                       # Validate all configurations\n"
               "  %(prog)s list                           # List available models\n"
               "  %(prog)s check --model gemini_flash     # Check specific model\n"
               "  %(prog)s --config-root ./my-configs validate  # Use custom config directory",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--config-root",
        default="./config",
        help="Root directory for configuration files (default: ./config)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set the logging level (default: INFO)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging (equivalent to --log-level DEBUG)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser("validate", help="Validate all configuration files")
    subparsers.add_parser("list", help="List available models")
    check_parser = subparsers.add_parser(
        "check",
        help="Check a model configuration (defaults to the analyzer's model)"
    )
    check_parser.add_argument("--model", help="Model name to check")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_analyzer_logging(
        log_level=args.log_level,
        verbose=args.verbose
    )
    logger = logging.getLogger("cli_config")

    commands = {
        "validate": validate_command,
        "list": list_command,
        "check": check_command,
    }
    try:
        success = commands[args.command](args, logger)
    except Exception as e:
        log_error(logger, f"Unexpected error: {str(e)}", "CLI", e)
        return 1

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
