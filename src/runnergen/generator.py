"""Runner Generator — reads a test file and writes its Unity runner.

Wires Options → Source Scanner → Include Resolver → Runner Emitter, then
writes the result next to (or wherever the caller puts) the runner file.
The output is written through a temporary file and renamed into place,
so a failed run never leaves a half-written runner behind.

Also reports every file the runner needs at build time, for build
systems that want to compile and link it.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from runnergen.emitter import RunnerEmitter
from runnergen.includes import find_includes, find_mocks
from runnergen.options import GenerationOptions, RunnerGenError, resolve_options
from runnergen.scanner import TestCase, find_tests, read_source

logger = logging.getLogger(__name__)

# ── Constants ──

RUNNER_SUFFIX = "_Runner.c"
SOURCE_SUFFIX = ".c"


# ── Exceptions ──


class GenerationError(RunnerGenError):
    """The runner file could not be produced."""


# ── Data Classes ──


@dataclass
class GenerationResult:
    """Outcome of one generation run.

    Attributes:
        input_file: The test source, as given.
        output_file: The runner that was written.
        tests: Discovered tests, in source order.
        includes: Local includes, in source order with duplicates.
        mocks: Mock modules among the includes.
        files_used: Every file needed to build the runner, de-duplicated.
        runner_text: The generated C source.
    """

    input_file: str
    output_file: str
    tests: list[TestCase] = field(default_factory=list)
    includes: list[str] = field(default_factory=list)
    mocks: list[str] = field(default_factory=list)
    files_used: list[str] = field(default_factory=list)
    runner_text: str = field(default="", repr=False)

    @property
    def test_names(self) -> list[str]:
        return [t.name for t in self.tests]


# ── Helpers ──


def default_output_path(input_file: str | Path) -> str:
    """``TestFoo.c`` → ``TestFoo_Runner.c``; other names get the suffix appended."""
    name = str(input_file)
    if name.endswith(SOURCE_SUFFIX):
        return name[: -len(SOURCE_SUFFIX)] + RUNNER_SUFFIX
    return name + RUNNER_SUFFIX


def collect_files_used(
    input_file: str,
    output_file: str,
    includes: list[str],
    options: GenerationOptions,
) -> list[str]:
    """List the runner's build inputs, keeping first-seen order."""
    candidates = [input_file, output_file]
    candidates.extend(include + SOURCE_SUFFIX for include in includes)
    candidates.extend(options.extra_includes)
    return list(dict.fromkeys(candidates))


def _write_atomic(path: Path, text: str) -> None:
    """Write *text* to *path* via a sibling temp file and rename."""
    directory = path.parent if str(path.parent) else Path(".")
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=directory,
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


def _check_output_is_not_test_source(path: Path) -> None:
    """Refuse to replace an existing C file that still holds tests.

    A runner never matches the test signature itself, so regenerating over
    an old runner is allowed.
    """
    if not path.name.endswith(SOURCE_SUFFIX) or not path.is_file():
        return
    if find_tests(read_source(path)):
        raise GenerationError(
            f"Refusing to overwrite {path}: it contains test functions"
        )


# ── Generator ──


class RunnerGenerator:
    """Generates Unity test runners.

    Usage::

        generator = RunnerGenerator("project.yml")
        result = generator.run("test/TestFoo.c")
        print(result.output_file, result.files_used)

    Options are resolved once, when the generator is built; a bad
    configuration fails here, before any test file is read.
    """

    def __init__(self, options: Any = None) -> None:
        self._options = resolve_options(options)

    @property
    def options(self) -> GenerationOptions:
        return self._options

    def generate_text(self, source: str, source_identifier: str) -> GenerationResult:
        """Scan *source* and build the runner text without touching the disk."""
        tests = find_tests(source)
        includes = find_includes(source)
        mocks = find_mocks(includes)
        text = RunnerEmitter(self._options).emit(tests, mocks, source_identifier)
        return GenerationResult(
            input_file=source_identifier,
            output_file="",
            tests=tests,
            includes=includes,
            mocks=mocks,
            runner_text=text,
        )

    def run(
        self,
        input_file: str | Path,
        output_file: Optional[str | Path] = None,
    ) -> GenerationResult:
        """Generate the runner for *input_file*.

        Raises:
            GenerationError: The output path is the input, or an existing C
                file that declares tests of its own.
            OSError: The input cannot be read or the output cannot be written.
        """
        input_name = str(input_file)
        output_name = str(output_file) if output_file else default_output_path(input_name)
        if Path(output_name).resolve() == Path(input_name).resolve():
            raise GenerationError(f"Runner would overwrite its own test source: {input_name}")
        _check_output_is_not_test_source(Path(output_name))

        source = read_source(input_name)
        result = self.generate_text(source, input_name)

        _write_atomic(Path(output_name), result.runner_text)

        result.output_file = output_name
        result.files_used = collect_files_used(
            input_name, output_name, result.includes, self._options,
        )
        logger.info(
            "Wrote %s (%d test(s), %d mock(s))",
            output_name, len(result.tests), len(result.mocks),
        )
        return result
