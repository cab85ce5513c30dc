"""
Brief: Tests for mdnsconf.identity.

Inputs:
  - None

Outputs:
  - None
"""

import ipaddress

import pytest

from mdnsconf import identity as ident_mod
from mdnsconf.identity import LocalIdentity, detect_local_identity


def test_create_from_string_and_bytes():
    """
    Brief: LocalIdentity.create accepts dotted quads and 4 raw bytes.

    Inputs:
      - None

    Outputs:
      - None: Asserts equal identities and packed form
    """
    a = LocalIdentity.create("h", "192.0.2.1")
    b = LocalIdentity.create("h", b"\xc0\x00\x02\x01")
    assert a == b
    assert a.packed_address == b"\xc0\x00\x02\x01"


def test_create_rejects_ipv6():
    """
    Brief: Only IPv4 addresses are accepted.

    Inputs:
      - None

    Outputs:
      - None: Asserts ValueError
    """
    with pytest.raises(ValueError):
        LocalIdentity.create("h", "2001:db8::1")


def test_detect_uses_overrides_without_probing(monkeypatch):
    """
    Brief: Explicit overrides bypass hostname and route lookups.

    Inputs:
      - monkeypatched socket helpers that fail if called

    Outputs:
      - None: Asserts overrides are used
    """

    def _boom(*a, **k):
        raise AssertionError("should not be called")

    monkeypatch.setattr(ident_mod.socket, "gethostname", _boom)
    monkeypatch.setattr(ident_mod, "_route_address", _boom)
    got = detect_local_identity(hostname="box", address="203.0.113.5")
    assert got == LocalIdentity("box", ipaddress.IPv4Address("203.0.113.5"))


def test_detect_falls_back_to_gethostbyname(monkeypatch):
    """
    Brief: Without a route, the address comes from gethostbyname(hostname).

    Inputs:
      - monkeypatched socket functions

    Outputs:
      - None: Asserts detected identity
    """
    monkeypatch.setattr(ident_mod.socket, "gethostname", lambda: "lab")
    monkeypatch.setattr(ident_mod, "_route_address", lambda: None)
    monkeypatch.setattr(ident_mod.socket, "gethostbyname", lambda name: "10.1.2.3")
    got = detect_local_identity()
    assert got.hostname == "lab"
    assert str(got.address) == "10.1.2.3"


def test_detect_prefers_route_address(monkeypatch):
    """
    Brief: The interface routing towards the mDNS group wins when available.

    Inputs:
      - monkeypatched _route_address

    Outputs:
      - None: Asserts routed address
    """
    monkeypatch.setattr(ident_mod.socket, "gethostname", lambda: "lab")
    monkeypatch.setattr(ident_mod, "_route_address", lambda: "192.168.1.20")
    assert str(detect_local_identity().address) == "192.168.1.20"


def test_route_address_handles_socket_errors(monkeypatch):
    """
    Brief: _route_address returns None when the socket cannot connect.

    Inputs:
      - fake socket raising OSError on connect

    Outputs:
      - None: Asserts None and that the socket was closed
    """
    closed = []

    class FakeSocket:
        def __init__(self, *a, **k):
            pass

        def connect(self, addr):
            raise OSError("Network is unreachable")

        def close(self):
            closed.append(True)

    monkeypatch.setattr(ident_mod.socket, "socket", FakeSocket)
    assert ident_mod._route_address() is None
    assert closed == [True]
