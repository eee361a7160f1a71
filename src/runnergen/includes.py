"""Include Resolver — local includes and the mock modules among them.

Only double-quoted includes of a ``.h`` header count; system includes in
angle brackets are ignored.  An include whose base name starts with
``mock`` (any case) names a mock module generated by CMock.
"""

import logging
import posixpath
import re

logger = logging.getLogger(__name__)

MOCK_PREFIX = "mock"

# #include "name.h" at the very start of a line
_LOCAL_INCLUDE_RE = re.compile(r'^#include\s+"\s*([^"]+)\.h\s*"')


def find_includes(source: str) -> list[str]:
    """Return the names of local includes, without the ``.h`` suffix.

    Scans the raw text line by line.  Order and duplicates are kept.
    """
    includes: list[str] = []
    for line in source.split("\n"):
        m = _LOCAL_INCLUDE_RE.match(line)
        if m:
            includes.append(m.group(1))
    return includes


def find_mocks(includes: list[str]) -> list[str]:
    """Filter *includes* down to mock modules, as base names."""
    mocks: list[str] = []
    for include in includes:
        base = posixpath.basename(include.replace("\\", "/"))
        if base.lower().startswith(MOCK_PREFIX):
            mocks.append(base)
    if mocks:
        logger.debug("Mock modules: %s", ", ".join(mocks))
    return mocks
