# src/main.py — v2
"""CLI entry point — normalize, cache commands.

Usage:
    transnorm normalize <file> --language de --project-id 7 [--file-id 12]
    transnorm cache show --language de --project-id 7 [--file-id 12]
    transnorm cache clear --language de --project-id 7 [--file-id 12]
    transnorm cache list
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from transnorm.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args)
    except Exception as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def cli() -> None:
    """Console-script wrapper."""
    sys.exit(main())


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="transnorm",
        description=f"transnorm v{__version__} — translation payload normalizer",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--cache-root", type=Path, default=None,
        help="Cache directory (default: TRANSNORM_CACHE_ROOT or ~/.transnorm/cache)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- normalize ---
    p_norm = subparsers.add_parser(
        "normalize", help="Normalize a downloaded translation payload",
    )
    p_norm.add_argument("file", type=Path, help="Path to the payload file")
    _add_scope_arguments(p_norm)
    p_norm.add_argument(
        "-o", "--output-dir", type=Path, default=None,
        help="Mirror the normalized record under this directory",
    )
    p_norm.add_argument(
        "--no-cache", action="store_true",
        help="Do not read or write the cache snapshot",
    )
    p_norm.add_argument(
        "--print", dest="print_result", action="store_true",
        help="Print the full normalized record as JSON",
    )
    p_norm.set_defaults(func=_cmd_normalize)

    # --- cache ---
    p_cache = subparsers.add_parser("cache", help="Inspect or clear cache snapshots")
    cache_sub = p_cache.add_subparsers(dest="cache_command")

    p_show = cache_sub.add_parser("show", help="Print a scope's snapshot")
    _add_scope_arguments(p_show)
    p_show.set_defaults(func=_cmd_cache_show)

    p_clear = cache_sub.add_parser("clear", help="Delete a scope's snapshot")
    _add_scope_arguments(p_clear)
    p_clear.set_defaults(func=_cmd_cache_clear)

    p_list = cache_sub.add_parser("list", help="List cached scopes")
    p_list.set_defaults(func=_cmd_cache_list)

    return parser


def _add_scope_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--language", required=True, help="Language code, e.g. de")
    parser.add_argument("--project-id", type=int, required=True, help="Project id")
    parser.add_argument("--file-id", type=int, default=None, help="File id (optional)")


def _load_settings(args: argparse.Namespace):
    """Build Settings from .env plus CLI overrides."""
    from transnorm.config.settings import load_settings

    overrides: dict[str, object] = {}
    if args.cache_root is not None:
        overrides["cache_root"] = args.cache_root
    if getattr(args, "output_dir", None) is not None:
        overrides["output_dir"] = args.output_dir
        overrides["mirror_output"] = True
    if getattr(args, "no_cache", False):
        overrides["cache_enabled"] = False
    return load_settings(**overrides)


def _scope_from_args(args: argparse.Namespace):
    from transnorm.pipeline.normalizer import build_scope

    return build_scope(
        language_code=args.language, project_id=args.project_id, file_id=args.file_id,
    )


async def _cmd_normalize(args: argparse.Namespace, settings) -> int:
    """Normalize one payload file."""
    from transnorm.api.facade import create_normalizer

    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return 1

    scope = _scope_from_args(args)
    normalizer = create_normalizer(settings)
    result = await normalizer.normalize(file_path.read_bytes(), scope)

    if args.print_result:
        print(json.dumps(result.to_json_dict(), indent=2, ensure_ascii=False))
    else:
        _print_result_summary(result)
    return 0


async def _cmd_cache_show(args: argparse.Namespace, settings) -> int:
    """Print the snapshot stored for a scope."""
    from transnorm.cache.cache_factory import create_cache_store
    from transnorm.cache.snapshot import dump_snapshot

    store = create_cache_store(settings)
    snapshot = await store.load(_scope_from_args(args))
    print(dump_snapshot(snapshot))
    return 0


async def _cmd_cache_clear(args: argparse.Namespace, settings) -> int:
    """Delete the snapshot stored for a scope."""
    from transnorm.cache.cache_factory import create_cache_store

    scope = _scope_from_args(args)
    store = create_cache_store(settings)
    await store.delete(scope)
    print(f"Cleared cache for {scope}")
    return 0


async def _cmd_cache_list(args: argparse.Namespace, settings) -> int:
    """List storage identifiers of cached scopes."""
    from transnorm.cache.cache_factory import create_cache_store

    store = create_cache_store(settings)
    for storage_id in await store.list_scopes():
        print(storage_id)
    return 0


def _print_result_summary(result) -> None:
    """Print a brief summary of a normalized record."""
    meta = result.metadata
    print(f"\nNormalized {meta.language_code} (project {meta.project_id}"
          + (f", file {meta.file_id}" if meta.file_id is not None else "") + ")")
    print(f"  Format:     {meta.data_format.value}")
    if isinstance(result.content, list):
        changed = sum(1 for r in result.content if r.updated_at == meta.downloaded_at)
        print(f"  Records:    {len(result.content)}")
        print(f"  Touched:    {changed}")
    else:
        print("  Records:    none (passthrough)")


def _setup_logging(settings, verbose: bool) -> None:
    """Configure logging from settings; -v forces DEBUG text output."""
    from transnorm.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format="text" if verbose else settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
