"""runnergen — Unity test-runner generator for C test files."""

from runnergen.emitter import RunnerEmitter, emit_runner
from runnergen.generator import (
    GenerationError,
    GenerationResult,
    RunnerGenerator,
    collect_files_used,
    default_output_path,
)
from runnergen.includes import find_includes, find_mocks
from runnergen.options import (
    ConfigError,
    GenerationOptions,
    RunnerGenError,
    load_config_file,
    resolve_options,
)
from runnergen.scanner import TestCase, find_tests, read_source, strip_comments

__all__ = [
    # Source Scanner
    "TestCase",
    "find_tests",
    "read_source",
    "strip_comments",
    # Include Resolver
    "find_includes",
    "find_mocks",
    # Generation Options
    "GenerationOptions",
    "resolve_options",
    "load_config_file",
    "RunnerGenError",
    "ConfigError",
    # Runner Emitter
    "RunnerEmitter",
    "emit_runner",
    # Generator
    "RunnerGenerator",
    "GenerationResult",
    "GenerationError",
    "collect_files_used",
    "default_output_path",
]
