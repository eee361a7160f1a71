"""Source Scanner — discovers test functions in a C test source file.

Heuristic, not a C parser.  Comments are stripped from a working copy, the
copy is cut into logical segments at ``;``, ``{``, ``}`` and preprocessor
lines, and each segment is matched against the one signature shape a test
may take::

    void testSomething(void)

Line numbers are looked up afterwards in the *original* text with a cursor
that only moves forward, so a test whose name is a prefix of a later one
(``testFoo`` / ``testFooExtended``) keeps its own line.

Pure Python. No compiler dependency.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# ── Encoding-safe file reading ──

# BOM signatures for UTF-16 variants
_UTF16_LE_BOM = b"\xff\xfe"
_UTF16_BE_BOM = b"\xfe\xff"

# ── Patterns ──

TEST_PREFIX = "test"

_LINE_COMMENT_RE = re.compile(r"//.*$", re.MULTILINE)

# Non-nesting, and blind to delimiters inside string or char literals
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)

# A preprocessor directive line, or one of ; { }
_SEGMENT_BOUNDARY_RE = re.compile(r"^\s*#.*$|[;{}]", re.MULTILINE)

# void test<Name>(void), starting on any line of the segment
_TEST_SIGNATURE_RE = re.compile(
    r"^\s*void\s+" + TEST_PREFIX + r"(\w*)\s*\(\s*void\s*\)",
    re.MULTILINE,
)


# ── Data Classes ──


@dataclass(frozen=True)
class TestCase:
    """A discovered test function.

    Attributes:
        name: Function identifier, always starting with ``test``.
        line_number: 1-based line in the unstripped source.
    """

    __test__ = False  # keep pytest from collecting this class

    name: str
    line_number: int


# ── Helpers ──


def read_source(path: str | Path) -> str:
    """Read a C source file, handling UTF-8, UTF-16 (BOM), and latin-1.

    Raises OSError if the file cannot be read at all.
    """
    raw = Path(path).read_bytes()
    if raw[:2] in (_UTF16_LE_BOM, _UTF16_BE_BOM):
        return raw.decode("utf-16")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def strip_comments(source: str) -> str:
    """Remove ``//`` line comments, then ``/* ... */`` block comments.

    Line comments go first, so a ``//`` inside a block comment truncates
    that line of it.  Neither pass knows about string literals.
    """
    scrubbed = _LINE_COMMENT_RE.sub("", source)
    return _BLOCK_COMMENT_RE.sub("", scrubbed)


def split_segments(scrubbed: str) -> list[str]:
    """Cut comment-free source into logical segments."""
    return _SEGMENT_BOUNDARY_RE.split(scrubbed)


def _find_test_names(scrubbed: str) -> list[str]:
    names: list[str] = []
    for segment in split_segments(scrubbed):
        m = _TEST_SIGNATURE_RE.search(segment)
        if m:
            names.append(TEST_PREFIX + m.group(1))
    return names


def _assign_line_numbers(names: list[str], source: str) -> list[TestCase]:
    """Attach original line numbers using a forward-only cursor.

    Each name is searched as a literal substring starting at the line where
    the previous name was found.  A name with no such line is dropped.
    """
    source_lines = source.split("\n")
    cursor = 0
    tests: list[TestCase] = []

    for name in names:
        for index in range(cursor, len(source_lines)):
            if name in source_lines[index]:
                cursor = index
                tests.append(TestCase(name=name, line_number=cursor + 1))
                break
        else:
            logger.debug(
                "Test %s not found in original source after line %d; skipped",
                name, cursor + 1,
            )

    return tests


# ── Public API ──


def find_tests(source: str) -> list[TestCase]:
    """Return the tests declared in *source*, in order of appearance.

    Empty input, or input with no matching signature, gives an empty list.
    Duplicated definitions are kept; each one is reported.
    """
    if not source:
        return []
    names = _find_test_names(strip_comments(source))
    tests = _assign_line_numbers(names, source)
    logger.debug("Discovered %d test(s)", len(tests))
    return tests
