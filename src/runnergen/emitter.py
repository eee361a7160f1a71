"""Runner Emitter — writes the Unity test-runner translation unit.

Takes discovered tests, mock modules, and :class:`GenerationOptions`, and
returns the text of a C file that:

  - includes the framework, CMock, CException, coverage and mock headers
    that the options and mocks call for
  - declares ``setUp``/``tearDown`` and every test
  - wraps the mocks' ``_Init``/``_Verify``/``_Destroy`` hooks
  - defines ``runTest``, which runs one test inside ``TEST_PROTECT()``
  - defines ``resetTest`` and ``main``

The emitter only produces text.  Pass/fail is decided by the generated
code at run time.

Per test, ``runTest`` walks::

    CMock_Init -> setUp -> test -> CMock_Verify    (protected)
    CMock_Destroy                                  (unprotected, always)
    tearDown                                       (own protection, unless ignored)
"""

import logging
from typing import Sequence

from runnergen.options import GenerationOptions
from runnergen.scanner import TestCase

logger = logging.getLogger(__name__)

# ── Constants ──

GENERATED_MARKER = "/* AUTOGENERATED FILE. DO NOT EDIT. */"
CMOCK_HEADER = "cmock"
CEXCEPTION_HEADER = "CException"
COVERAGE_HEADER = "BullseyeCoverage"
MESSAGE_BUFFER_SIZE = 50
UNHANDLED_EXCEPTION_MESSAGE = "Unhandled Exception!"

_HEADER_SUFFIX = ".h"


def _header_name(name: str) -> str:
    """Normalize ``foo`` or ``foo.h`` to ``foo``."""
    if name.endswith(_HEADER_SUFFIX):
        return name[: -len(_HEADER_SUFFIX)]
    return name


def _c_string(text: str) -> str:
    """Quote *text* as a C string literal."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class RunnerEmitter:
    """Builds the runner source for one set of generation options.

    Usage::

        emitter = RunnerEmitter(GenerationOptions(enable_order_enforcement=True))
        text = emitter.emit(tests, mocks, "test/TestFoo.c")
    """

    def __init__(self, options: GenerationOptions | None = None) -> None:
        self._options = options or GenerationOptions()

    @property
    def options(self) -> GenerationOptions:
        return self._options

    def emit(
        self,
        tests: Sequence[TestCase],
        mocks: Sequence[str],
        source_identifier: str,
    ) -> str:
        """Return the complete runner source text."""
        lines: list[str] = []
        self._create_header(lines, mocks)
        self._create_externs(lines, tests)
        self._create_mock_management(lines, mocks)
        self._create_runtest(lines, mocks)
        self._create_reset(lines, mocks)
        self._create_main(lines, tests, source_identifier)
        logger.debug(
            "Emitted runner for %s: %d test(s), %d mock(s)",
            source_identifier, len(tests), len(mocks),
        )
        return "\n".join(lines) + "\n"

    # ── Sections ──

    def _create_header(self, lines: list[str], mocks: Sequence[str]) -> None:
        opts = self._options
        lines.append(GENERATED_MARKER)
        lines.append(f'#include "{_header_name(opts.framework_name)}.h"')
        if mocks:
            lines.append(f'#include "{CMOCK_HEADER}.h"')
        for include in opts.extra_includes:
            lines.append(f'#include "{_header_name(include)}.h"')
        lines.append("#include <setjmp.h>")
        lines.append("#include <stdio.h>")
        if opts.enable_exception_wrapper:
            lines.append(f'#include "{CEXCEPTION_HEADER}.h"')
        if opts.enable_coverage_flush:
            lines.append(f'#include "{COVERAGE_HEADER}.h"')
        for mock in mocks:
            lines.append(f'#include "{_header_name(mock)}.h"')
        lines.append("")
        lines.append(f"char MessageBuffer[{MESSAGE_BUFFER_SIZE}];")
        if opts.enable_order_enforcement:
            lines.append("int GlobalExpectCount;")
            lines.append("int GlobalVerifyOrder;")
            lines.append("char* GlobalOrderError;")

    def _create_externs(self, lines: list[str], tests: Sequence[TestCase]) -> None:
        lines.append("")
        lines.append("extern void setUp(void);")
        lines.append("extern void tearDown(void);")
        lines.append("")
        for test in tests:
            lines.append(f"extern void {test.name}(void);")
        lines.append("")

    def _create_mock_management(self, lines: list[str], mocks: Sequence[str]) -> None:
        if not mocks:
            return

        lines.append("static void CMock_Init(void)")
        lines.append("{")
        if self._options.enable_order_enforcement:
            lines.append("  GlobalExpectCount = 0;")
            lines.append("  GlobalVerifyOrder = 0;")
            lines.append("  GlobalOrderError = NULL;")
        for mock in mocks:
            lines.append(f"  {mock}_Init();")
        lines.append("}")

        for hook in ("Verify", "Destroy"):
            lines.append(f"static void CMock_{hook}(void)")
            lines.append("{")
            for mock in mocks:
                lines.append(f"  {mock}_{hook}();")
            lines.append("}")

    def _create_runtest(self, lines: list[str], mocks: Sequence[str]) -> None:
        cexception = self._options.enable_exception_wrapper
        lines.append("static void runTest(UnityTestFunction test)")
        lines.append("{")
        lines.append("  if (TEST_PROTECT())")
        lines.append("  {")
        if cexception:
            lines.append("    CEXCEPTION_T e;")
            lines.append("    Try {")
        if mocks:
            lines.append("      CMock_Init();")
        lines.append("      setUp();")
        lines.append("      test();")
        if mocks:
            lines.append("      CMock_Verify();")
        if cexception:
            lines.append(
                "    } Catch(e) { TEST_ASSERT_EQUAL_HEX32_MESSAGE(CEXCEPTION_NONE, e, "
                f"{_c_string(UNHANDLED_EXCEPTION_MESSAGE)}); }}"
            )
        lines.append("  }")
        if mocks:
            lines.append("  CMock_Destroy();")
        lines.append("  if (TEST_PROTECT() && !TEST_IS_IGNORED)")
        lines.append("  {")
        lines.append("    tearDown();")
        lines.append("  }")
        lines.append("}")

    def _create_reset(self, lines: list[str], mocks: Sequence[str]) -> None:
        lines.append("void resetTest()")
        lines.append("{")
        if mocks:
            lines.append("  CMock_Verify();")
            lines.append("  CMock_Destroy();")
        lines.append("  tearDown();")
        if mocks:
            lines.append("  CMock_Init();")
        lines.append("  setUp();")
        lines.append("}")

    def _create_main(
        self,
        lines: list[str],
        tests: Sequence[TestCase],
        source_identifier: str,
    ) -> None:
        lines.append("")
        lines.append("")
        lines.append("int main(void)")
        lines.append("{")
        lines.append(f"  Unity.TestFile = {_c_string(source_identifier)};")
        lines.append("  UnityBegin();")
        lines.append("")
        lines.append("  // RUN_TEST calls runTest")
        for test in tests:
            lines.append(f"  RUN_TEST({test.name}, {test.line_number});")
        lines.append("")
        lines.append("  UnityEnd();")
        if self._options.enable_coverage_flush:
            lines.append("  cov_write();")
        lines.append("  return 0;")
        lines.append("}")


def emit_runner(
    tests: Sequence[TestCase],
    mocks: Sequence[str],
    options: GenerationOptions | None,
    source_identifier: str,
) -> str:
    """Convenience wrapper around :meth:`RunnerEmitter.emit`."""
    return RunnerEmitter(options).emit(tests, mocks, source_identifier)
