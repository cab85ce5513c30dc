"""
Brief: Tests for mdnsconf.config.settings.

Inputs:
  - None

Outputs:
  - None
"""

import ipaddress

import pytest

from mdnsconf.config.service_config import ConfigError
from mdnsconf.config.settings import Settings, SettingsError, load_settings


def test_load_settings_none_returns_defaults():
    """
    Brief: No settings path yields default Settings.

    Inputs:
      - None

    Outputs:
      - None: Asserts defaults
    """
    s = load_settings(None)
    assert s.service_files == []
    assert s.strict is False
    assert s.output == "zone"
    assert s.identity.hostname is None
    assert s.logging == {}


def test_load_settings_full_file(tmp_path):
    """
    Brief: A complete YAML file is parsed and typed.

    Inputs:
      - settings.yaml with every section

    Outputs:
      - None: Asserts parsed values
    """
    path = tmp_path / "settings.yaml"
    path.write_text(
        "service_files:\n"
        "  - /etc/mdns.d/http.service\n"
        "strict: true\n"
        "output: wire\n"
        "identity:\n"
        "  hostname: myhost\n"
        "  address: 192.0.2.10\n"
        "logging:\n"
        "  level: debug\n"
    )
    s = load_settings(str(path))
    assert s.service_files == ["/etc/mdns.d/http.service"]
    assert s.strict is True
    assert s.output == "wire"
    assert s.identity.hostname == "myhost"
    assert s.identity.address == ipaddress.IPv4Address("192.0.2.10")
    assert s.logging == {"level": "debug"}


def test_service_files_accepts_single_string():
    """
    Brief: A scalar service_files value becomes a one-element list.

    Inputs:
      - None

    Outputs:
      - None: Asserts normalization
    """
    assert Settings(service_files="a.service").service_files == ["a.service"]
    assert Settings(service_files=None).service_files == []


def test_empty_yaml_file_is_defaults(tmp_path):
    """
    Brief: An empty settings file is equivalent to no settings.

    Inputs:
      - empty file

    Outputs:
      - None: Asserts defaults
    """
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_settings(str(path)).service_files == []


@pytest.mark.parametrize(
    "text,fragment",
    [
        ("- just\n- a list\n", "must be a mapping"),
        ("service_files: [\n", "Invalid YAML"),
        ("unknown_key: 1\n", "Invalid settings"),
        ("identity:\n  address: 2001:db8::1\n", "Invalid settings"),
        ("output: json\n", "Invalid settings"),
    ],
)
def test_invalid_settings_raise(tmp_path, text, fragment):
    """
    Brief: Malformed settings raise SettingsError with a helpful message.

    Inputs:
      - text: settings content
      - fragment: expected message fragment

    Outputs:
      - None: Asserts SettingsError
    """
    path = tmp_path / "bad.yaml"
    path.write_text(text)
    with pytest.raises(SettingsError, match=fragment):
        load_settings(str(path))


def test_missing_settings_file_raises(tmp_path):
    """
    Brief: A missing settings file is a SettingsError (a ConfigError).

    Inputs:
      - nonexistent path

    Outputs:
      - None: Asserts exception hierarchy
    """
    with pytest.raises(ConfigError, match="Failed reading"):
        load_settings(str(tmp_path / "missing.yaml"))
