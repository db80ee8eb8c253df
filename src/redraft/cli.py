"""Command-line entry point.

Examples:
  redraft rewrite article.html -o rewritten.html
  redraft rewrite article.html --directive "Be enthusiastic" --batch-size 20
  redraft health --api-url http://127.0.0.1:8787/api/rewrite
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional, Sequence

from .api_client import RewriteClient
from .config import Settings, load_settings
from .exceptions import ConfigurationError
from .logging_config import setup_logging
from .pipeline import RewritePipeline


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="redraft",
        description="Rewrite the prose of an HTML document through a rewrite service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="Override the rewrite service endpoint (REDRAFT_REWRITE_API_URL)",
    )
    # Also accepted after the subcommand; SUPPRESS keeps a top-level value.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--api-url",
        default=argparse.SUPPRESS,
        help="Override the rewrite service endpoint (REDRAFT_REWRITE_API_URL)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    rewrite = subparsers.add_parser("rewrite", parents=[common], help="Rewrite an HTML fragment")
    rewrite.add_argument("input", type=Path, help="HTML file to rewrite ('-' for stdin)")
    rewrite.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Where to write the rewritten HTML (default: stdout)",
    )
    rewrite.add_argument(
        "--directive",
        default=None,
        help="Steering instruction sent with every batch",
    )
    rewrite.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Segments per request (REDRAFT_MAX_BATCH_SIZE)",
    )
    rewrite.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Maximum parallel requests (REDRAFT_MAX_CONCURRENCY)",
    )

    subparsers.add_parser("health", parents=[common], help="Check that the rewrite service is up")
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.api_url:
        overrides["rewrite_api_url"] = args.api_url
    if getattr(args, "batch_size", None) is not None:
        overrides["max_batch_size"] = args.batch_size
    if getattr(args, "concurrency", None) is not None:
        overrides["max_concurrency"] = args.concurrency
    return load_settings(**overrides)


def _print_progress(percent: int) -> None:
    print(f"[Progress] {percent}%", file=sys.stderr)


async def _run_rewrite(args: argparse.Namespace, settings: Settings) -> int:
    if str(args.input) == "-":
        html = sys.stdin.read()
    else:
        try:
            html = args.input.read_text(encoding="utf-8")
        except OSError as e:
            print(f"[Error] Cannot read {args.input}: {e}", file=sys.stderr)
            return 1

    async with RewriteClient.from_settings(settings) as client:
        pipeline = RewritePipeline(client, settings)
        result = await pipeline.rewrite_html(
            html, directive=args.directive, on_progress=_print_progress,
        )

    if args.output:
        try:
            args.output.write_text(result.html, encoding="utf-8")
        except OSError as e:
            print(f"[Error] Cannot write {args.output}: {e}", file=sys.stderr)
            return 1
    else:
        sys.stdout.write(result.html)

    print(
        f"[Done] {result.segment_count} segments in {result.batch_count} batches "
        f"({result.segments_rewritten} by service, {result.segments_fallback} locally) "
        f"in {result.duration_seconds:.1f}s",
        file=sys.stderr,
    )
    print(result.outcome.value, file=sys.stderr)
    return 0


async def _run_health(settings: Settings) -> int:
    async with RewriteClient.from_settings(settings) as client:
        healthy = await client.health_check()
        url = client.health_url()
    print(f"{url}: {'ok' if healthy else 'unreachable'}", file=sys.stderr)
    return 0 if healthy else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = _build_parser().parse_args(argv)

    try:
        settings = _settings_from_args(args)
    except ConfigurationError as e:
        print(f"[Config] {e.message}", file=sys.stderr)
        return 2

    setup_logging(settings.log_level, settings.log_format)

    if args.command == "health":
        return asyncio.run(_run_health(settings))
    return asyncio.run(_run_rewrite(args, settings))


if __name__ == "__main__":
    sys.exit(main())
