from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "crit": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

_TAGS = {
    logging.DEBUG: "[debug]",
    logging.INFO: "[info]",
    logging.WARNING: "[warn]",
    logging.ERROR: "[error]",
    logging.CRITICAL: "[crit]",
}


def _level_tag(levelno: int) -> str:
    return _TAGS.get(levelno, f"[lvl{levelno}]")


class SyslogFormatter(logging.Formatter):
    """Formatter for syslog output; syslog supplies the timestamp and tag."""

    def __init__(self, tag: str = "mdnsconf") -> None:
        super().__init__()
        self.tag = tag

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        return f"{self.tag}: {record.level_tag} {record.name}: {record.getMessage()}"


class BracketLevelFormatter(logging.Formatter):
    """Formatter with bracketed lowercase level tags and UTC timestamps."""

    def formatTime(self, record, datefmt=None):
        """Format the record's creation time as UTC ISO-8601 with Z suffix."""
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return created.strftime(datefmt or "%Y-%m-%dT%H:%M:%SZ")

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        return super().format(record)


def parse_level(value: Any, default: int = logging.INFO) -> int:
    """
    Brief: Map a level name (debug, info, warn, error, crit) to a logging level.

    Inputs:
      - value: Level name, case-insensitive; None or unknown names fall back.
      - default: Level returned for unknown names.

    Outputs:
      - int: logging level constant.
    """

    if value is None:
        return default
    return _LEVELS.get(str(value).strip().lower(), default)


def init_logging(cfg: Optional[Dict[str, Any]], level: Optional[str] = None) -> None:
    """
    Initialize root logging for mdnsconf.

    Args:
        cfg: Logging configuration dictionary with optional keys:
            - level: debug, info, warn, error, crit (default: info)
            - stderr: boolean to log to stderr (default: True)
            - file: path to a log file (optional)
            - syslog: boolean or dict enabling syslog output (optional):
                - address: Unix socket path (default: /dev/log) or [host, port]
                - facility: syslog facility name (default: DAEMON)
                - tag: program identifier (default: mdnsconf)
        level: Optional level name overriding cfg["level"] (e.g. from the CLI).

    Example config:
        {
            "level": "info",
            "stderr": True,
            "file": "/var/log/mdnsconf.log",
            "syslog": {"tag": "mdnsconf"}
        }
    """
    cfg = cfg or {}

    root = logging.getLogger()
    root.setLevel(parse_level(level or cfg.get("level", "info")))

    for h in list(root.handlers):
        root.removeHandler(h)

    formatter = BracketLevelFormatter(fmt="%(asctime)s %(level_tag)s %(name)s: %(message)s")

    if cfg.get("stderr", True):
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(formatter)
        root.addHandler(stderr_handler)

    file_path = cfg.get("file")
    if isinstance(file_path, str) and file_path.strip():
        path = os.path.abspath(os.path.expanduser(file_path.strip()))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    syslog_cfg = cfg.get("syslog")
    if syslog_cfg:
        opts = syslog_cfg if isinstance(syslog_cfg, dict) else {}
        address = opts.get("address", "/dev/log")
        if isinstance(address, list):
            address = tuple(address)
        facility = getattr(
            logging.handlers.SysLogHandler,
            f"LOG_{str(opts.get('facility', 'DAEMON')).upper()}",
            logging.handlers.SysLogHandler.LOG_DAEMON,
        )
        try:
            syslog_handler = logging.handlers.SysLogHandler(
                address=address, facility=facility
            )
        except (OSError, ValueError) as e:  # pragma: no cover - environment specific
            root.warning("Failed to configure syslog: %s", e)
        else:
            syslog_handler.setFormatter(SyslogFormatter(str(opts.get("tag", "mdnsconf"))))
            root.addHandler(syslog_handler)

    logging.captureWarnings(True)
