"""
CLI entry point for email collation.
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from typing import List, Optional

from dotenv import load_dotenv

from .collator import EmailCollator
from .config import (
    CollationSettings,
    EXIT_COLLATION_FAILED,
    EXIT_CONFIGURATION_ERROR,
    EXIT_INVALID_INPUT,
    EXIT_SUCCESS,
    PROVIDER_GEMINI,
)
from .document_io import load_documents, save_result
from .errors import ConfigurationError, InvalidInputError, UnsupportedProviderError
from .infra.logging_config import setup_logging
from .infra.progress import EVENT_PROGRESS, ProgressEvent

logger = logging.getLogger("email_collation")


def print_progress(event: ProgressEvent) -> None:
    """Progress listener writing one line per event to stderr."""
    if event.type == EVENT_PROGRESS:
        print(f"[{event.percentage:3d}%] {event.message}", file=sys.stderr)
    else:
        print(f"[{event.type}] {event.message}", file=sys.stderr)


def build_settings(args: argparse.Namespace) -> CollationSettings:
    """
    Environment settings overridden by command line options.

    Raises:
        ConfigurationError: If a value is invalid
    """
    settings = CollationSettings.from_env()

    if args.provider:
        settings = replace(settings, provider=args.provider)
    if args.model:
        if settings.provider == PROVIDER_GEMINI:
            settings.gemini_model = args.model
        else:
            settings.ollama_model = args.model
    if args.endpoint:
        settings.ollama_endpoint = args.endpoint
    if args.threshold is not None:
        settings.similarity_threshold = args.threshold

    return settings.validate()


def cmd_run(args: argparse.Namespace) -> int:
    """
    Collate messages from a JSON file.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    try:
        documents = load_documents(args.input)
    except InvalidInputError as e:
        logger.error(f"[CLI] Invalid input: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    try:
        settings = build_settings(args)
        collator = EmailCollator(settings)
    except (ConfigurationError, UnsupportedProviderError) as e:
        logger.error(f"[CLI] Configuration error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR

    logger.info(f"[CLI] === Collation Started ({len(documents)} messages) ===")
    logger.info(f"[CLI] Settings: {settings.to_dict()}")

    collator.progress_reporter.add_listener(print_progress)
    try:
        result = collator.collate(documents)
    except Exception as e:
        logger.error(f"[CLI] Collation failed: {e}", exc_info=True)
        print(f"Error: collation failed: {e}", file=sys.stderr)
        return EXIT_COLLATION_FAILED
    finally:
        collator.close()

    if args.output:
        path = save_result(result, args.output, include_embeddings=args.include_embeddings)
        print(f"Unique messages: {result.unique_count} of {result.total_messages}")
        print(f"Output: {path}")
    else:
        data = result.to_dict(include_embeddings=args.include_embeddings)
        print(json.dumps(data, ensure_ascii=False, indent=2))

    logger.info("[CLI] === Collation Complete ===")
    return EXIT_SUCCESS


def create_parser() -> argparse.ArgumentParser:
    """
    Create argument parser.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="email-collation",
        description="Email Collation - Remove near-duplicate messages using AI embeddings",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--log-dir",
        default=os.getenv("LOG_DIR", "logs"),
        help="Directory for daily log files (default: logs)"
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Log to the console only"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    run_parser = subparsers.add_parser("run", help="Collate messages from a JSON file")
    run_parser.add_argument(
        "input",
        help="JSON file with an array of messages (id, body, date, subject, from)"
    )
    run_parser.add_argument(
        "-o", "--output",
        help="Write the result to this JSON file instead of stdout"
    )
    run_parser.add_argument(
        "-p", "--provider",
        help="Embedding provider: ollama (local) or gemini (cloud)"
    )
    run_parser.add_argument(
        "-m", "--model",
        help="Embedding model for the selected provider"
    )
    run_parser.add_argument(
        "--endpoint",
        help="Ollama server URL (default: http://localhost:11434)"
    )
    run_parser.add_argument(
        "-t", "--threshold",
        type=float,
        help="Similarity threshold for duplicates (default: 0.95)"
    )
    run_parser.add_argument(
        "--include-embeddings",
        action="store_true",
        help="Include embedding vectors in the output"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    log_level = "DEBUG" if args.verbose else os.getenv("LOG_LEVEL", "INFO")
    setup_logging(log_level, log_dir=None if args.no_log_file else args.log_dir)

    if args.command == "run":
        return cmd_run(args)
    else:
        parser.print_help()
        return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
