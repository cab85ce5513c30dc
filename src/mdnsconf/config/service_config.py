"""Service description files for mdnsconf.

Brief:
  Reads the small line-oriented ``*.service`` files that describe one DNS-SD
  service per file:

    # comment
    type _http._tcp
    name My Printer
    port 631
    txt  rp=printers/lab

  Parsing is deliberately lenient. Unknown keywords, directives without an
  argument, non-numeric ports and TXT overflow are absorbed (logged at debug)
  instead of being reported. Only failing to open the file is an error.

Inputs:
  - Path to a service file.

Outputs:
  - ServiceDescription instances.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, TextIO, Tuple

logger = logging.getLogger(__name__)

# Maximum number of `txt` directives kept per service file.
TXT_CAPACITY = 42

# Longest line (in characters, newline excluded) kept from a service file;
# longer lines are cut and the remainder discarded.
MAX_LINE_LENGTH = 255

_SEPARATOR_RE = re.compile(r"[ \t]+")
_ATOI_RE = re.compile(r"\s*([+-]?\d+)")


class ConfigError(Exception):
    """Brief: Base class for configuration errors raised by mdnsconf."""


class FileAccessError(ConfigError):
    """
    Brief: A service file could not be opened for reading.

    Inputs:
      - path: Path that failed to open.
      - cause: Underlying OSError.

    Outputs:
      - Exception instance; fatal for the announcement of that file.
    """

    def __init__(self, path: str, cause: OSError) -> None:
        self.path = path
        self.cause = cause
        reason = cause.strerror or str(cause)
        super().__init__(f"Failed reading {path}: {reason}")


class ConfigSyntaxError(ConfigError):
    """
    Brief: A malformed service file line, raised only in strict mode.

    Inputs:
      - path: Source file.
      - lineno: 1-based line number.
      - message: Description of the problem.

    Outputs:
      - Exception instance.
    """

    def __init__(self, path: str, lineno: int, message: str) -> None:
        self.path = path
        self.lineno = lineno
        super().__init__(f"{path}:{lineno}: {message}")


@dataclass
class ServiceDescription:
    """Brief: One service as declared in a service file.

    Inputs:
      - service_type: DNS-SD service type label (e.g. `_http._tcp`) or None.
      - instance_name: Instance name or None (the hostname is used).
      - port: Service port; 0 when absent or invalid.
      - txt_entries: Raw `key=value` candidates in file order.

    Outputs:
      - ServiceDescription instance.
    """

    service_type: Optional[str] = None
    instance_name: Optional[str] = None
    port: int = 0
    txt_entries: List[str] = field(default_factory=list)

    def add_txt(self, entry: str) -> bool:
        """Brief: Append a TXT candidate while capacity remains.

        Inputs:
          - entry: Raw `key=value` string.

        Outputs:
          - bool: True when stored, False when the entry was dropped.
        """

        if len(self.txt_entries) >= TXT_CAPACITY:
            return False
        self.txt_entries.append(entry)
        return True


def parse_port(text: str) -> int:
    """Brief: Convert a port argument the way C ``atoi`` does.

    Inputs:
      - text: Directive argument.

    Outputs:
      - int: Leading (optionally signed) decimal digits after optional
        whitespace, or 0 when there are none.

    Example:
      >>> parse_port("8080")
      8080
      >>> parse_port(" 631 # ipp")
      631
      >>> parse_port("http")
      0
    """

    m = _ATOI_RE.match(text)
    if not m:
        return 0
    return int(m.group(1))


def _set_type(desc: ServiceDescription, arg: str) -> Optional[str]:
    desc.service_type = arg
    return None


def _set_name(desc: ServiceDescription, arg: str) -> Optional[str]:
    desc.instance_name = arg
    return None


def _set_port(desc: ServiceDescription, arg: str) -> Optional[str]:
    desc.port = parse_port(arg)
    if _ATOI_RE.match(arg):
        return None
    return f"non-numeric port {arg!r}, using 0"


def _add_txt(desc: ServiceDescription, arg: str) -> Optional[str]:
    if not desc.add_txt(arg):
        return f"more than {TXT_CAPACITY} txt entries, dropping {arg!r}"
    return None


# Directive handlers return a description of any absorbed anomaly.
_DIRECTIVES: Dict[str, Callable[[ServiceDescription, str], Optional[str]]] = {
    "type": _set_type,
    "name": _set_name,
    "port": _set_port,
    "txt": _add_txt,
}


def _anomaly(path: str, lineno: int, message: str, strict: bool) -> None:
    if strict:
        raise ConfigSyntaxError(path, lineno, message)
    logger.debug("%s:%d: skipping, %s", path, lineno, message)


def read_line(
    desc: ServiceDescription,
    line: str,
    *,
    path: str = "<string>",
    lineno: int = 0,
    strict: bool = False,
) -> None:
    """Brief: Apply one physical service file line to a description.

    Inputs:
      - desc: ServiceDescription being populated (mutated in place).
      - line: Line text, trailing newline(s) included or not.
      - path: Source label used in log and error messages.
      - lineno: 1-based line number used in log and error messages.
      - strict: Raise ConfigSyntaxError instead of absorbing anomalies.

    Outputs:
      - None.
    """

    line = line.rstrip("\n")
    logger.debug("Got line: %r", line)

    if not line or line.startswith("#"):
        return

    parts = _SEPARATOR_RE.split(line, maxsplit=1)
    keyword = parts[0]
    arg = parts[1] if len(parts) > 1 else ""
    if not keyword or not arg:
        _anomaly(path, lineno, f"missing argument in {line!r}", strict)
        return

    handler = _DIRECTIVES.get(keyword)
    if handler is None:
        _anomaly(path, lineno, f"unknown keyword {keyword!r}", strict)
        return

    problem = handler(desc, arg)
    if problem:
        _anomaly(path, lineno, problem, strict)


def _read_lines(fp: TextIO) -> Iterator[Tuple[str, bool]]:
    """Brief: Yield (line, truncated) pairs reading at most MAX_LINE_LENGTH
    characters per line; the rest of an oversized line is read and discarded.
    """

    while True:
        line = fp.readline(MAX_LINE_LENGTH)
        if not line:
            return
        truncated = False
        if not line.endswith("\n"):
            while True:
                rest = fp.readline(MAX_LINE_LENGTH)
                if not rest:
                    break
                if rest != "\n":
                    truncated = True
                if rest.endswith("\n"):
                    break
        yield line, truncated


def parse(path: str, *, strict: bool = False) -> ServiceDescription:
    """
    Brief: Read a service file into a ServiceDescription.

    Inputs:
      - path: Service file path.
      - strict: When True, malformed lines raise ConfigSyntaxError.

    Outputs:
      - ServiceDescription with every directive found in the file applied.

    Raises:
      - FileAccessError: the file could not be opened.
      - ConfigSyntaxError: strict mode only.

    Example:
      >>> desc = parse("/etc/mdns.d/http.service")  # doctest: +SKIP
      >>> desc.port
      80
    """

    desc = ServiceDescription()
    try:
        fp = open(path, "r", encoding="utf-8", errors="surrogateescape")
    except OSError as exc:
        raise FileAccessError(str(path), exc) from exc

    with fp:
        for lineno, (raw_line, truncated) in enumerate(_read_lines(fp), start=1):
            if truncated:
                _anomaly(
                    str(path),
                    lineno,
                    f"line longer than {MAX_LINE_LENGTH} characters truncated",
                    strict,
                )
            read_line(desc, raw_line, path=str(path), lineno=lineno, strict=strict)

    logger.debug("Finished reading %s ...", path)
    return desc
