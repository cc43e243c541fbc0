"""Command line entry point for regenerating ``config.edn``."""

from __future__ import annotations

import argparse
import sys
from importlib import metadata
from pathlib import Path
from typing import Sequence

from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.table import Table

from confgen.core import config_templates
from confgen.core.config import ConfigFileError
from confgen.core.config_templates import ConfigTemplateError
from confgen.core.logging import configure_logger

from .generate import DiscoveryError, GenerationResult, discover, generate_config_file
from .loader import ConfigSourceError, load_config_source, unset_env_refs
from .registry import REGISTRY, UnboundConfigError
from .settings import (
    SETTINGS_FILENAME,
    SettingsError,
    SettingsOverrides,
    load_settings,
)

_STRICT_FLAGS = {"strict", ":strict"}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="confgen",
        description=(
            "Reconcile declared config vars with the current config file and "
            "regenerate it with unbound, unused and used entries annotated."
        ),
        epilog=(
            "Run `confgen init` to scaffold a confgen.toml settings file."
        ),
    )
    parser.add_argument(
        "flags",
        nargs="*",
        metavar="strict",
        help="Pass `strict` (or `:strict`) to fail on unbound config vars.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Exit non-zero after writing when config vars remain unbound.",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        help=f"Path to a settings TOML (defaults to ./{SETTINGS_FILENAME}).",
    )
    parser.add_argument(
        "--source",
        type=Path,
        help="Config file to reconcile (defaults to ./config.edn).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Where to write the regenerated file (defaults to the source).",
    )
    parser.add_argument(
        "-m",
        "--module",
        dest="modules",
        action="append",
        help="Module to import so its config vars are declared (repeatable).",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level for the JSON log file (defaults to INFO).",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        help="Directory for log files (defaults to ~/.confgen/logs).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Echo log messages to stderr.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {_version()}",
    )
    return parser


def _version() -> str:
    try:
        return metadata.version("confgen")
    except metadata.PackageNotFoundError:
        return "unknown"


def main(argv: Sequence[str] | None = None) -> int:
    args_list = list(argv) if argv is not None else list(sys.argv[1:])

    if args_list[:1] == ["init"]:
        return _handle_init(args_list[1:])

    parser = _build_parser()
    args = parser.parse_args(args_list)

    unknown = [flag for flag in args.flags if flag not in _STRICT_FLAGS]
    if unknown:
        parser.error(f"Unknown flag(s): {' '.join(unknown)}")
    strict = True if (args.strict or args.flags) else None

    overrides = SettingsOverrides(
        source=args.source,
        output=args.output,
        modules=args.modules,
        strict=strict,
        log_level=args.log_level,
        log_dir=args.log_dir,
    )
    try:
        settings = load_settings(
            settings_path=args.settings, overrides=overrides
        ).settings
    except SettingsError as exc:
        parser.error(str(exc))

    logger, log_path = configure_logger(
        "confgen",
        log_dir=settings.log_dir,
        level=settings.log_level,
        verbose=args.verbose,
    )
    logger.debug("confgen CLI invoked", extra={"argv": args_list})

    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)
        logger.debug("Loaded environment from %s", dotenv_path)

    try:
        discover(settings.modules, search_paths=settings.search_paths)
        configured = load_config_source(settings.source)
    except (DiscoveryError, ConfigSourceError) as exc:
        logger.error("%s", exc)
        sys.stderr.write(str(exc) + "\n")
        return 1

    for name in unset_env_refs(configured):
        logger.warning("Environment variable for %s is not set", name)
        sys.stderr.write(f"warning: environment variable for {name} is not set\n")

    try:
        result = generate_config_file(
            settings.output,
            configured,
            REGISTRY,
            strict=settings.strict,
            logger=logger,
        )
    except UnboundConfigError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1
    except ConfigFileError as exc:
        logger.error("%s", exc)
        sys.stderr.write(str(exc) + "\n")
        return 1

    _print_summary(result, log_path)
    return 0


def _print_summary(result: GenerationResult, log_path: Path) -> None:
    console = Console()
    console.print(f"Generated {result.path.name}", highlight=False, markup=False)
    table = Table(show_header=True)
    table.add_column("Section")
    table.add_column("Entries", justify="right")
    counts = result.reconciliation.counts
    table.add_row("unbound", str(counts["unbound"]))
    table.add_row("unused", str(counts["unused"]))
    table.add_row("used", str(counts["used"]))
    console.print(table)
    console.print(f"output:   {result.path}", highlight=False, markup=False)
    console.print(f"log file: {log_path}", highlight=False, markup=False)


def _build_init_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="confgen init",
        description="Write the default confgen.toml settings template.",
    )
    parser.add_argument(
        "--path",
        type=Path,
        default=Path(SETTINGS_FILENAME),
        help=f"Destination for the settings file (defaults to ./{SETTINGS_FILENAME}).",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the destination if it already exists.",
    )
    return parser


def _handle_init(argv: Sequence[str]) -> int:
    args = _build_init_parser().parse_args(list(argv))

    target = args.path.expanduser()
    if not target.is_absolute():
        target = (Path.cwd() / target).resolve()

    template = config_templates.get_template("settings")
    try:
        written = template.write(target, overwrite=args.force)
    except ConfigTemplateError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    sys.stdout.write(f"Wrote confgen settings to {written}\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
