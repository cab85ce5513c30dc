"""Runtime settings for the mdnsconf command line tool.

Brief:
  Loads an optional YAML settings file and validates it with pydantic. The
  settings select which service files to announce, how to identify the local
  host, whether parsing is strict, and how logging is configured.

Inputs:
  - YAML settings file path (optional).

Outputs:
  - Settings model instances.

Example settings.yaml:

  service_files:
    - /etc/mdns.d/http.service
  strict: false
  identity:
    hostname: myhost
    address: 192.0.2.10
  logging:
    level: info
"""

from __future__ import annotations

import ipaddress
import logging
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, validator

from .service_config import ConfigError

logger = logging.getLogger(__name__)


class SettingsError(ConfigError):
    """Brief: The settings file is unreadable, not YAML, or fails validation."""


class IdentityConfig(BaseModel):
    """Brief: Overrides for the advertised host identity.

    Inputs:
      - hostname: Host name used for `<host>.local.` and default instance names.
      - address: IPv4 address for the A record.

    Outputs:
      - IdentityConfig; unset fields are detected at runtime.
    """

    hostname: Optional[str] = None
    address: Optional[ipaddress.IPv4Address] = None

    class Config:
        extra = "forbid"


class Settings(BaseModel):
    """Brief: Typed settings model for mdnsconf.

    Inputs:
      - service_files: Service files to announce when none are given on the
        command line. A single string is accepted.
      - strict: Reject malformed service file lines instead of skipping them.
      - output: "zone" for zone-file text, "wire" for a hex mDNS response.
      - identity: IdentityConfig overrides.
      - logging: Mapping passed to init_logging().

    Outputs:
      - Settings instance.
    """

    service_files: List[str] = Field(default_factory=list)
    strict: bool = False
    output: Literal["zone", "wire"] = "zone"
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    logging: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        extra = "forbid"

    @validator("service_files", pre=True)
    def _normalize_service_files(cls, v):  # type: ignore[no-untyped-def]
        """Brief: Accept a single path or None in place of a list.

        Inputs:
          - v: Raw YAML value.

        Outputs:
          - list: List of paths.
        """

        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @validator("logging", pre=True)
    def _normalize_logging(cls, v):  # type: ignore[no-untyped-def]
        return v or {}


def load_settings(path: Optional[str]) -> Settings:
    """
    Brief: Read and validate a YAML settings file.

    Inputs:
      - path: Settings file path, or None for defaults.

    Outputs:
      - Settings instance.

    Raises:
      - SettingsError: unreadable file, invalid YAML, or validation failure.
    """

    if not path:
        return Settings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as exc:
        raise SettingsError(f"Failed reading {path}: {exc.strerror or exc}") from exc
    except yaml.YAMLError as exc:
        raise SettingsError(f"Invalid YAML in {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise SettingsError(f"{path}: settings root must be a mapping")

    try:
        settings = Settings(**raw)
    except ValidationError as exc:
        raise SettingsError(f"Invalid settings in {path}: {exc}") from exc

    logger.debug("Loaded settings from %s", path)
    return settings
