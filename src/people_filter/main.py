"""Command line entry point.

Commands:
  - filter: read a CSV of people, filter them against a description, write a CSV
  - serve: start the tool endpoint HTTP server
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from people_filter.api.main import serve
from people_filter.config import PipelineOptions, Settings, Strategy, get_settings
from people_filter.exceptions import ConfigurationError, VerificationFailed
from people_filter.llm import OpenAIModelClient
from people_filter.pipeline import filter_candidates
from people_filter.storage import read_candidates, write_results
from people_filter.utils import setup_logger

DEFAULT_DESCRIPTION = (
    "Looking for a person responsible for conversion optimization, "
    "(CRO, Conversion Optimization, UX, Digital Conversion, Marketing, Product) "
    "and join to team recently (up 6 month)"
)


def _options(settings: Settings, args: argparse.Namespace) -> PipelineOptions:
    """YAML pipeline config with command line overrides applied."""
    overrides: dict[str, Any] = {
        "strategy": args.strategy,
        "exclude_terms": args.exclude,
        "min_rating": args.min_rating,
        "max_concurrency": args.concurrency,
        "use_scorer": False if args.no_score else None,
        "use_verifier": False if args.no_verify else None,
        "tolerate_verification_errors": True if args.tolerate_errors else None,
    }
    base = settings.load_config().pipeline
    return PipelineOptions.model_validate(
        base.model_dump() | {k: v for k, v in overrides.items() if v is not None}
    )


async def filter_main(
    settings: Settings,
    input_file: Path,
    description: str,
    output_file: Path,
    options: PipelineOptions,
) -> int:
    """Filter phase: CSV in, model-assisted filtering, CSV out. Returns an exit code."""
    client = OpenAIModelClient(
        settings.llm_config(),
        profile_log=settings.logs_dir / "api_profile.jsonl",
    )
    candidates = read_candidates(input_file)

    exit_code = 0
    try:
        results = await filter_candidates(candidates, description, options, client=client)
    except VerificationFailed as e:
        logger.error(f"{e}; writing the {len(e.results)} verified match(es) only")
        results = e.results
        exit_code = 1

    write_results(output_file, [r.to_record() for r in results])
    logger.info(f"Search complete. Found {len(results)} matches. Results saved to {output_file}")
    return exit_code


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="people-filter",
        description="Filter people in a CSV by a free-text search description",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # filter
    filter_parser = subparsers.add_parser("filter", help="Filter a CSV of people")
    filter_parser.add_argument("input", type=Path, help="Input CSV with at least a 'title' column")
    filter_parser.add_argument("description", nargs="?", default=DEFAULT_DESCRIPTION, help="Search description")
    filter_parser.add_argument("--output", type=Path, default=Path("output.csv"), help="Output CSV path")
    filter_parser.add_argument("--strategy", choices=[s.value for s in Strategy], help="Title filtering strategy")
    filter_parser.add_argument("--exclude", nargs="*", help="Exclude terms, replacing the inferred ones")
    filter_parser.add_argument("--min-rating", type=int, help="Drop candidates rated below this")
    filter_parser.add_argument("--concurrency", type=int, help="Max simultaneous model calls")
    filter_parser.add_argument("--no-score", action="store_true", help="Skip the 0-100 rating stage")
    filter_parser.add_argument("--no-verify", action="store_true", help="Skip the MATCH/NO_MATCH stage")
    filter_parser.add_argument(
        "--tolerate-errors", action="store_true", help="Treat verifier errors as no match"
    )

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the tool endpoint server")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=3000)

    return parser.parse_args(argv)


async def main(args: argparse.Namespace) -> int:
    """Main async entry point."""
    settings = get_settings()
    setup_logger(settings.log_level, settings.logs_dir, settings.sentry_dsn, settings.sentry_environment)

    match args.command:
        case "filter":
            return await filter_main(
                settings,
                input_file=args.input,
                description=args.description,
                output_file=args.output,
                options=_options(settings, args),
            )
        case _:
            logger.error("Unknown command. Use: filter or serve")
            return 2


def cli() -> None:
    """CLI entry point."""
    args = parse_args()

    if not args.command:
        parse_args(["--help"])

    if args.command == "serve":
        serve(args.host, args.port)
        return

    try:
        sys.exit(asyncio.run(main(args)))
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(2)


if __name__ == "__main__":
    cli()
