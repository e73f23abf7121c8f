from __future__ import annotations
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Tuple
import codecs
import re
import yaml

from .errors import ConfigurationError
from .window import (
    ByteCount,
    ByteCountFromStart,
    LineCount,
    LineCountFromStart,
    TailMode,
)

# Multiplier suffixes accepted after a byte or line count.
_SUFFIXES: Dict[str, int] = {"b": 512}
for _power, _letter in enumerate("KMGTPEZY", start=1):
    _SUFFIXES[_letter] = 1024 ** _power
    _SUFFIXES[_letter + "B"] = 1000 ** _power
_SUFFIXES["kB"] = _SUFFIXES.pop("KB")

_COUNT = re.compile(r"^(?P<sign>[+-]?)(?P<num>\d+)(?P<suffix>[A-Za-z]*)$")


@dataclass
class TailOptions:
    files: List[str] = field(default_factory=list)
    bytes: Optional[str] = None
    lines: Optional[str] = None
    follow: bool = False
    notifier: str = "event"
    sleep_interval: float = 1.0
    quiet: bool = False
    verbose: bool = False
    encoding: str = "utf-8"
    stop_on_error: bool = False
    log_level: str = "WARNING"
    log_file: Optional[str] = None


# Keys a YAML defaults file may set, with the type each must have.
_FILE_KEYS: Dict[str, Tuple[type, ...]] = {
    "bytes": (str, int),
    "lines": (str, int),
    "follow": (bool,),
    "notifier": (str,),
    "sleep_interval": (int, float),
    "encoding": (str,),
    "stop_on_error": (bool,),
    "log_level": (str,),
    "log_file": (str,),
}


def parse_count(text: str) -> Tuple[int, bool]:
    """
    Parse a count such as ``20``, ``+5`` or ``10kB``.

    Returns ``(count, from_start)``. A leading ``+`` counts from the start of
    the file; no sign or ``-`` counts from the end. Suffixes: b 512, kB 1000,
    K 1024, MB 1000*1000, M 1024*1024, and so on for G, T, P, E, Z, Y.
    """
    m = _COUNT.match(str(text).strip())
    if not m:
        raise ConfigurationError(f"Invalid number: {text!r}")
    suffix = m.group("suffix")
    if suffix and suffix not in _SUFFIXES:
        raise ConfigurationError(f"Invalid suffix {suffix!r} in {text!r}")
    count = int(m.group("num")) * _SUFFIXES.get(suffix, 1)
    return count, m.group("sign") == "+"


def resolve_mode(options: TailOptions) -> TailMode:
    """Bytes win over lines; without either the last 10 lines are shown."""
    if options.bytes is not None:
        count, from_start = parse_count(options.bytes)
        return ByteCountFromStart(count) if from_start else ByteCount(count)
    if options.lines is not None:
        count, from_start = parse_count(options.lines)
        return LineCountFromStart(count) if from_start else LineCount(count)
    return LineCount()


def show_headers(options: TailOptions) -> bool:
    if options.quiet and options.verbose:
        raise ConfigurationError("--verbose and --quiet are mutually exclusive")
    if options.verbose:
        return True
    if options.quiet:
        return False
    return len(options.files) > 1


def validate(options: TailOptions) -> None:
    """Check everything that can be checked without touching the files."""
    if not options.files:
        raise ConfigurationError("No files given")
    if options.notifier not in ("event", "poll"):
        raise ConfigurationError(f"Unknown notifier {options.notifier!r}, use 'event' or 'poll'")
    if options.sleep_interval <= 0:
        raise ConfigurationError(f"Sleep interval must be positive, got {options.sleep_interval}")
    try:
        codecs.lookup(options.encoding)
    except LookupError:
        raise ConfigurationError(f"Unknown encoding: {options.encoding}")
    show_headers(options)
    resolve_mode(options)


def load_config(path: str, *, required: bool = True) -> Dict[str, Any]:
    """
    Read option defaults from a YAML file. Returns a dict of TailOptions
    field values; a missing file yields ``{}`` unless ``required``.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        if not required:
            return {}
        raise ConfigurationError(
            f"Configuration file not found: {path}\n"
            f"Please ensure the file exists or specify a different config with --config"
        )
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")

    values: Dict[str, Any] = {}
    for key, value in data.items():
        key = str(key).replace("-", "_")
        if key not in _FILE_KEYS:
            raise ConfigurationError(f"Unknown setting '{key}' in {path}")
        expected = _FILE_KEYS[key]
        # bool is an int subclass, do not let `true` pass as a number
        if not isinstance(value, expected) or (isinstance(value, bool) and bool not in expected):
            names = " or ".join(t.__name__ for t in expected)
            raise ConfigurationError(f"Setting '{key}' in {path} must be {names}, got {value!r}")
        if key in ("bytes", "lines"):
            value = str(value)
        values[key] = value
    return values


def merge(defaults: Dict[str, Any], **overrides: Any) -> TailOptions:
    """Build TailOptions from file defaults; ``None`` overrides keep the default."""
    known = {f.name for f in fields(TailOptions)}
    values = {k: v for k, v in defaults.items() if k in known}
    values.update({k: v for k, v in overrides.items() if v is not None})
    return TailOptions(**values)
