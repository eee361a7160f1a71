"""Generation Options — what the runner emitter is allowed to vary.

Options come from one of four places: nothing at all (defaults), a
configuration file shared with CMock (YAML, or TOML), a plain mapping, or
an already-built :class:`GenerationOptions`.  Anything else is rejected
before the test source is touched.

YAML layout, as written for CMock::

    :cmock:
      :plugins: [cexception]
      :enforce_strict_ordering: true
      :framework: unity
      :includes: [Types.h]

A ``unity`` section is preferred over ``cmock`` when both exist.
"""

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

# Try tomllib (Python 3.11+) then tomli for .toml configuration files
try:
    import tomllib
except ImportError:
    try:
        import tomli as tomllib  # type: ignore[no-redefine]
    except ImportError:
        tomllib = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

# ── Constants ──

DEFAULT_FRAMEWORK = "unity"

_YAML_SUFFIXES = frozenset({".yml", ".yaml"})
_TOML_SUFFIXES = frozenset({".toml"})

# Sections searched in a configuration file, in order of preference
_CONFIG_SECTIONS = ("unity", "cmock")

# Spellings accepted for on/off options given as strings
_TRUE_WORDS = frozenset({"true", "yes", "on", "1"})
_FALSE_WORDS = frozenset({"false", "no", "off", "0", ""})

# Short option names used by older callers
_OPTION_ALIASES = {
    "framework": "framework_name",
    "cexception": "enable_exception_wrapper",
    "coverage": "enable_coverage_flush",
    "order": "enable_order_enforcement",
    "includes": "extra_includes",
}


# ── Exceptions ──


class RunnerGenError(Exception):
    """Base exception for runner generation errors."""


class ConfigError(RunnerGenError):
    """Configuration could not be resolved into generation options."""


# ── Data Class ──


@dataclass(frozen=True)
class GenerationOptions:
    """Options for a single generation run.

    Attributes:
        framework_name: Primary header to include, without ``.h``.
        enable_exception_wrapper: Wrap each test in CException ``Try``/``Catch``.
        enable_coverage_flush: Call ``cov_write()`` before exiting.
        enable_order_enforcement: Declare and reset the CMock call-order
            tracking globals.
        extra_includes: Additional headers, with or without ``.h``.
    """

    framework_name: str = DEFAULT_FRAMEWORK
    enable_exception_wrapper: bool = False
    enable_coverage_flush: bool = False
    enable_order_enforcement: bool = False
    extra_includes: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Accept any iterable of names but store a tuple
        object.__setattr__(self, "extra_includes", tuple(self.extra_includes))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GenerationOptions":
        """Build options from field names or their short aliases."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ConfigError(f"Unknown generation option: {key!r}")
            kwargs[name] = value

        if "framework_name" in kwargs:
            kwargs["framework_name"] = str(kwargs["framework_name"] or DEFAULT_FRAMEWORK)
        for flag in (
            "enable_exception_wrapper",
            "enable_coverage_flush",
            "enable_order_enforcement",
        ):
            if flag in kwargs:
                kwargs[flag] = _as_flag(kwargs[flag], flag)
        if "extra_includes" in kwargs:
            kwargs["extra_includes"] = _as_name_list(kwargs["extra_includes"])
        return cls(**kwargs)

    def with_overrides(self, **changes: Any) -> "GenerationOptions":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


# ── Helpers ──


def _as_flag(value: Any, name: str) -> bool:
    """Read an on/off option; only booleans, 0/1, and yes/no words count."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ConfigError(f"Option {name!r} must be true or false, got {value!r}")


def _as_name_list(value: Any) -> list[str]:
    """Flatten a string, list, or nested list of names into a list."""
    if value is None:
        return []
    if isinstance(value, (str, os.PathLike)):
        return [str(value)]
    if isinstance(value, (list, tuple)):
        names: list[str] = []
        for item in value:
            names.extend(_as_name_list(item))
        return names
    raise ConfigError(f"Expected a name or list of names, got {type(value).__name__}")


def _strip_symbol_keys(value: Any) -> Any:
    """Drop the leading ``:`` that Ruby symbols leave on YAML keys and values."""
    if isinstance(value, dict):
        return {
            _strip_symbol_keys(k): _strip_symbol_keys(v) for k, v in value.items()
        }
    if isinstance(value, list):
        return [_strip_symbol_keys(v) for v in value]
    if isinstance(value, str) and value.startswith(":"):
        return value[1:]
    return value


def _parse_config_text(path: Path, text: str) -> Any:
    suffix = path.suffix.lower()
    if suffix in _YAML_SUFFIXES:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if suffix in _TOML_SUFFIXES:
        if tomllib is None:
            raise ConfigError(f"Cannot read {path}: no TOML parser available")
        try:
            return tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
    raise ConfigError(
        f"Unsupported configuration file type {path.suffix!r} "
        "(expected .yml, .yaml or .toml)"
    )


def options_from_config(document: Any) -> GenerationOptions:
    """Translate a parsed ``unity``/``cmock`` configuration document."""
    if not isinstance(document, dict):
        raise ConfigError("Configuration must be a mapping")
    document = _strip_symbol_keys(document)

    section: Optional[dict] = None
    for name in _CONFIG_SECTIONS:
        candidate = document.get(name)
        if candidate:
            section = candidate
            break
    if not isinstance(section, dict):
        raise ConfigError(
            "Configuration has no 'unity' or 'cmock' section"
        )

    plugins = [str(p).lower() for p in _as_name_list(section.get("plugins"))]
    return GenerationOptions(
        framework_name=str(section.get("framework") or DEFAULT_FRAMEWORK),
        enable_exception_wrapper="cexception" in plugins,
        enable_coverage_flush=_as_flag(section.get("coverage"), "coverage"),
        enable_order_enforcement=_as_flag(
            section.get("enforce_strict_ordering"), "enforce_strict_ordering",
        ),
        extra_includes=_as_name_list(section.get("includes")),
    )


def load_config_file(path: str | Path) -> GenerationOptions:
    """Load generation options from a YAML or TOML configuration file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc
    options = options_from_config(_parse_config_text(path, text))
    logger.debug("Loaded generation options from %s: %s", path, options)
    return options


# ── Public API ──


def resolve_options(config: Any = None) -> GenerationOptions:
    """Resolve *config* into :class:`GenerationOptions`.

    Accepts ``None`` (or an empty string), a path to a configuration file,
    a mapping of option names, or a :class:`GenerationOptions`.

    Raises:
        ConfigError: For any other shape, or an unusable file or mapping.
    """
    if config is None:
        return GenerationOptions()
    if isinstance(config, GenerationOptions):
        return config
    if isinstance(config, (str, os.PathLike)):
        if not str(config):
            return GenerationOptions()
        return load_config_file(config)
    if isinstance(config, Mapping):
        return GenerationOptions.from_mapping(config)
    raise ConfigError(
        "Options must be a configuration file path or a mapping of options, "
        f"not {type(config).__name__}"
    )
