# SPDX-License-Identifier: MIT
"""Command-line interface for preparing persistent build caches."""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any, Callable, Coroutine

import logfire
from pydantic_core import to_json

from core.canonical import canonical_dependencies
from core.collector import collect_build_dependencies, resolve_tsconfig_path
from core.errors import BuildCacheError
from core.version import cache_version
from engine.build_cache import prepare_environments, resolve_options
from models import BuildCacheOptions, EnvironmentConfig, EnvironmentContext
from observability import telemetry
from observability.monitoring import init_logfire
from runtime.settings import Settings, load_settings
from utils import LocalPathChecker, PathExistenceChecker

LOG_LEVELS = ["fatal", "error", "warn", "notice", "info", "debug", "trace"]


def _print_version() -> None:
    """Print the installed package version."""
    try:
        pkg_version = version("buildcache-gate")
    except PackageNotFoundError:  # pragma: no cover - fallback for source checkouts
        pkg_version = "unknown"
    print(f"buildcache-gate {pkg_version}")


def _configure_logging(args: argparse.Namespace, settings: Settings) -> None:
    """Configure Logfire based on settings and verbosity flags."""
    base = (
        LOG_LEVELS.index(settings.log_level) if settings.log_level in LOG_LEVELS else 2
    )
    index = base + args.verbose - args.quiet
    index = max(0, min(len(LOG_LEVELS) - 1, index))
    init_logfire(settings.logfire_token, LOG_LEVELS[index])  # type: ignore[arg-type]


def _selected_environments(
    args: argparse.Namespace, settings: Settings
) -> list[EnvironmentConfig]:
    """Return configured environments, narrowed or extended by ``--env``."""
    names = getattr(args, "env", None)
    if not names:
        return list(settings.environments)
    configured = {env.name: env for env in settings.environments}
    return [configured.get(name) or EnvironmentConfig(name=name) for name in names]


async def _environment_contexts(
    args: argparse.Namespace,
    settings: Settings,
    checker: PathExistenceChecker,
) -> tuple[list[EnvironmentContext], dict[str, Any]]:
    """Return environment contexts and per-environment cache overrides."""
    project = settings.project()
    contexts: list[EnvironmentContext] = []
    overrides: dict[str, Any] = {}
    for env in _selected_environments(args, settings):
        configured = Path(args.tsconfig) if args.tsconfig else env.tsconfig_path
        tsconfig = await resolve_tsconfig_path(project.root_path, configured, checker)
        contexts.append(
            EnvironmentContext(
                name=env.name,
                mode=settings.mode,
                tsconfig_path=tsconfig,
                config_file_path=settings.config_file_path,
            )
        )
        if env.build_cache is not None:
            overrides[env.name] = env.build_cache
    return contexts, overrides


async def _cmd_prepare(args: argparse.Namespace, settings: Settings) -> None:
    """Validate caches for every environment and print bundler configs."""
    checker = LocalPathChecker()
    contexts, overrides = await _environment_contexts(args, settings, checker)
    descriptors = await prepare_environments(
        settings.project(),
        contexts,
        settings.build_cache,
        overrides=overrides,
        checker=checker,
        on_corrupt=settings.corrupt_metadata,
    )
    payload = {
        name: descriptor.to_bundler_config() if descriptor else None
        for name, descriptor in descriptors.items()
    }
    print(to_json(payload, indent=2).decode("utf-8"))


async def _cmd_collect(args: argparse.Namespace, settings: Settings) -> None:
    """Print the canonical dependency set of each environment."""
    checker = LocalPathChecker()
    contexts, _ = await _environment_contexts(args, settings, checker)
    project = settings.project()
    for context in contexts:
        dependencies = await collect_build_dependencies(project, context, checker)
        print(f"{context.name}\t{canonical_dependencies(dependencies)}")


async def _cmd_version(args: argparse.Namespace, settings: Settings) -> None:
    """Print the cache version of each environment with caching enabled."""
    project = settings.project()
    for env in _selected_environments(args, settings):
        setting = env.build_cache
        if setting is None:
            setting = settings.build_cache
        options = resolve_options(setting, project)
        if options is None:
            print(f"{env.name}: build cache disabled", file=sys.stderr)
            continue
        print(cache_version(env.name, settings.mode, options.cache_digest))


def _add_common_args(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """Add CLI options shared across subcommands."""
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file (default config/build-cache.yaml)",
    )
    parser.add_argument("--root", type=str, default=None, help="Project root")
    parser.add_argument(
        "--bundler",
        choices=["rspack", "webpack"],
        default=None,
        help="Active bundler",
    )
    parser.add_argument("--mode", type=str, default=None, help="Build mode")
    parser.add_argument(
        "--env",
        action="append",
        default=None,
        help="Environment name; repeat for several environments",
    )
    parser.add_argument(
        "--tsconfig",
        type=str,
        default=None,
        help="Type-checker config relative to the root (default tsconfig.json)",
    )
    parser.add_argument(
        "--cache-dir",
        type=str,
        default=None,
        help="Cache directory, absolute or relative to the root",
    )
    parser.add_argument(
        "--digest",
        action="append",
        default=None,
        help="Extra cache digest token; repeat to add more, order matters",
    )
    parser.add_argument(
        "--build-cache",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Force the persistent cache on or off",
    )
    parser.add_argument(
        "--on-corrupt",
        choices=["invalidate", "raise"],
        default=None,
        help="Reaction to unreadable dependency metadata",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase verbosity"
    )
    parser.add_argument(
        "-q", "--quiet", action="count", default=0, help="Decrease verbosity"
    )
    return parser


def _build_parser() -> argparse.ArgumentParser:
    """Return an argument parser configured with subcommands."""
    parser = argparse.ArgumentParser(
        prog="build-cache",
        description=(
            "Invalidate persistent bundler caches when untracked build inputs "
            "change and print the resulting cache configuration."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print the buildcache-gate version and exit.",
    )
    common = _add_common_args(argparse.ArgumentParser(add_help=False))
    subparsers = parser.add_subparsers(dest="command")
    commands: list[tuple[str, str, Callable[..., Any]]] = [
        ("prepare", "Validate caches and print bundler cache configs", _cmd_prepare),
        ("collect", "Print the collected build dependencies", _cmd_collect),
        ("version", "Print the cache version", _cmd_version),
    ]
    for name, help_text, func in commands:
        sub = subparsers.add_parser(
            name,
            parents=[common],
            formatter_class=argparse.ArgumentDefaultsHelpFormatter,
            help=help_text,
            description=help_text,
        )
        sub.set_defaults(func=func)
    return parser


def _apply_build_cache_args(args: argparse.Namespace, settings: Settings) -> None:
    """Merge ``--build-cache``, ``--cache-dir`` and ``--digest`` into settings."""
    if args.build_cache is False:
        settings.build_cache = False
        return
    if args.cache_dir is None and args.digest is None:
        if args.build_cache:
            settings.build_cache = settings.build_cache or True
        return
    current = settings.build_cache
    options = (
        current.model_copy()
        if isinstance(current, BuildCacheOptions)
        else BuildCacheOptions()
    )
    if args.cache_dir is not None:
        options.cache_directory = Path(args.cache_dir)
    if args.digest is not None:
        options.cache_digest = list(args.digest)
    settings.build_cache = options


def _apply_args_to_settings(args: argparse.Namespace, settings: Settings) -> None:
    """Override settings fields based on CLI arguments."""
    arg_mapping: dict[str, tuple[str, Callable[[Any], Any] | None]] = {
        "root": ("root", Path),
        "bundler": ("bundler", None),
        "mode": ("mode", None),
        "on_corrupt": ("corrupt_metadata", None),
    }
    for arg_name, (attr, converter) in arg_mapping.items():
        value = getattr(args, arg_name, None)
        if value is not None:  # branch: override settings when flag provided
            setattr(settings, attr, converter(value) if converter else value)
    _apply_build_cache_args(args, settings)


def _run_async_with_signals(coro: Coroutine[Any, Any, Any]) -> Any:
    """Execute ``coro`` and cancel on SIGINT or SIGTERM.

    Args:
        coro: Coroutine to run.

    Returns:
        Result of the coroutine.

    Raises:
        asyncio.CancelledError: Propagated when a termination signal is received.
    """

    async def _runner() -> Any:
        loop = asyncio.get_running_loop()
        task = asyncio.create_task(coro)
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, task.cancel)
        try:
            return await task
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)

    return asyncio.run(_runner())


def _execute_subcommand(args: argparse.Namespace, settings: Settings) -> int:
    """Dispatch to the chosen subcommand and return an exit code."""
    _configure_logging(args, settings)
    telemetry.reset()
    try:
        _run_async_with_signals(args.func(args, settings))
    except BuildCacheError as exc:
        logfire.error(
            "Cache preparation failed",
            error=str(exc),
            error_type=type(exc).__name__,
            path=str(exc.path) if exc.path else None,
        )
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        if args.command == "prepare":
            telemetry.print_summary(file=sys.stderr)
        logfire.force_flush()
    return 0


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and dispatch to the requested subcommand."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.version:
        _print_version()
        return
    if args.command is None:
        parser.print_help()
        raise SystemExit(1)
    settings = load_settings(args.config)
    _apply_args_to_settings(args, settings)
    code = _execute_subcommand(args, settings)
    if code:
        raise SystemExit(code)


if __name__ == "__main__":
    # Allow module to be executed as a standalone script
    main()
