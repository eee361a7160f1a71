"""runnergen CLI — generate a Unity test runner from the command line.

Usage::

    runnergen [project.yml] test/TestFoo.c [build/TestFoo_Runner.c] [Types.h ...] [options]

Options::

    --config FILE         CMock/Unity YAML (or TOML) configuration file
    --framework NAME      Framework header to include (default: unity)
    --cexception          Wrap tests in CException Try/Catch
    --coverage            Flush Bullseye coverage data before exit
    --order               Enable CMock strict call-order tracking
    --verbose / -v        Enable verbose logging

A positional ``.yml``, ``.yaml`` or ``.toml`` argument is taken as the
configuration file, wherever it appears.  Options may be placed between
positional arguments.  The single-dash forms ``-cexception``, ``-coverage``
and ``-order`` are accepted as well.
"""

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from runnergen.generator import GenerationError, RunnerGenerator
from runnergen.options import ConfigError, resolve_options

# Positional arguments with these suffixes are configuration files
CONFIG_SUFFIXES = (".yml", ".yaml", ".toml")


@dataclass
class PositionalArgs:
    """Positional arguments, sorted into their roles."""

    input_file: Path
    output_file: Optional[Path] = None
    includes: list[str] = field(default_factory=list)
    config: Optional[Path] = None


def split_positionals(paths: list[str]) -> PositionalArgs:
    """Pull a configuration file out of *paths*; the rest are input, output, includes.

    Raises:
        ConfigError: More than one configuration file, or no input file.
    """
    configs = [p for p in paths if p.lower().endswith(CONFIG_SUFFIXES)]
    rest = [p for p in paths if not p.lower().endswith(CONFIG_SUFFIXES)]
    if len(configs) > 1:
        raise ConfigError(f"More than one configuration file given: {', '.join(configs)}")
    if not rest:
        raise ConfigError("No input test file given")
    return PositionalArgs(
        input_file=Path(rest[0]),
        output_file=Path(rest[1]) if len(rest) > 1 else None,
        includes=rest[2:],
        config=Path(configs[0]) if configs else None,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="runnergen",
        description=(
            "Generate a Unity test runner for a C test file.\n\n"
            "Finds every 'void testXxx(void)' function and every mock header "
            "included by the file, and writes a runner that calls them."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument(
        "paths",
        nargs="+",
        metavar="PATH",
        help=(
            "[config.yml] input test file, then optional runner file "
            "(default: <input>_Runner.c) and extra headers"
        ),
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML or TOML configuration file with a 'unity' or 'cmock' section",
    )
    parser.add_argument(
        "--framework",
        default=None,
        help="Framework header to include (default: unity)",
    )
    parser.add_argument(
        "--cexception", "-cexception",
        action="store_true",
        default=False,
        help="Include CException support",
    )
    parser.add_argument(
        "--coverage", "-coverage",
        action="store_true",
        default=False,
        help="Include Bullseye coverage support",
    )
    parser.add_argument(
        "--order", "-order",
        action="store_true",
        default=False,
        help="Include CMock order-enforcement support",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        default=False,
        help="Enable verbose logging",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.  Returns exit code (0=success, 1=failure)."""
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    # Config file first, then command-line flags on top
    try:
        positionals = split_positionals(args.paths)
        if positionals.config and args.config:
            raise ConfigError(
                f"Configuration given twice: {positionals.config} and --config {args.config}"
            )
        options = resolve_options(positionals.config or args.config)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    overrides: dict = {}
    if args.framework:
        overrides["framework_name"] = args.framework
    if args.cexception:
        overrides["enable_exception_wrapper"] = True
    if args.coverage:
        overrides["enable_coverage_flush"] = True
    if args.order:
        overrides["enable_order_enforcement"] = True
    if positionals.includes:
        overrides["extra_includes"] = options.extra_includes + tuple(positionals.includes)
    if overrides:
        options = options.with_overrides(**overrides)

    generator = RunnerGenerator(options)
    try:
        result = generator.run(positionals.input_file, positionals.output_file)
    except (GenerationError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Creating test runner for {os.path.basename(positionals.input_file)}...")
    if args.verbose:
        for path in result.files_used:
            print(f"  {path}")
    return 0
