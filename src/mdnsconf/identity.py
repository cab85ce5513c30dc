"""Local host identity advertised in DNS-SD records.

Brief:
  The host name supplies default instance names and `<host>.local.`; the
  primary IPv4 address goes into the A record. Both are passed around as a
  LocalIdentity value and only detected from the machine as a fallback.

Inputs:
  - Optional hostname/address overrides.

Outputs:
  - LocalIdentity instances.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
from dataclasses import dataclass
from typing import Optional, Union

logger = logging.getLogger(__name__)

# The IPv4 mDNS group; connecting a UDP socket to it selects the interface
# used for multicast without sending anything.
MDNS_GROUP = "224.0.0.251"
MDNS_PORT = 5353


@dataclass(frozen=True)
class LocalIdentity:
    """Brief: Name and primary IPv4 address advertised for the local host.

    Inputs:
      - hostname: Host name used for default instance names and `<host>.local.`.
      - address: IPv4 address published in the A record.

    Outputs:
      - LocalIdentity instance.
    """

    hostname: str
    address: ipaddress.IPv4Address

    @classmethod
    def create(
        cls, hostname: str, address: Union[str, bytes, ipaddress.IPv4Address]
    ) -> "LocalIdentity":
        """Brief: Build an identity from a dotted-quad string or 4 raw bytes."""

        return cls(hostname=hostname, address=ipaddress.IPv4Address(address))

    @property
    def packed_address(self) -> bytes:
        return self.address.packed


def _route_address() -> Optional[str]:
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        s.connect((MDNS_GROUP, MDNS_PORT))
        addr = s.getsockname()[0]
    except OSError as exc:
        logger.debug("No route to %s: %s", MDNS_GROUP, exc)
        return None
    finally:
        s.close()
    if not addr or addr == "0.0.0.0":
        return None
    return addr


def detect_local_identity(
    hostname: Optional[str] = None,
    address: Optional[Union[str, ipaddress.IPv4Address]] = None,
) -> LocalIdentity:
    """
    Brief: Detect the local host's name and primary IPv4 address.

    Inputs:
      - hostname: Optional override for the host name.
      - address: Optional override for the IPv4 address.

    Outputs:
      - LocalIdentity; missing parts come from socket.gethostname() and the
        interface routing towards the mDNS group, then gethostbyname(), then
        127.0.0.1.
    """

    if not hostname:
        try:
            hostname = socket.gethostname()
        except OSError:  # pragma: no cover - environment specific
            hostname = ""
        hostname = hostname or "localhost"

    if address is None:
        address = _route_address()
        if address is None:
            try:
                address = socket.gethostbyname(hostname)
            except OSError:  # pragma: no cover - environment specific
                address = "127.0.0.1"

    identity = LocalIdentity.create(hostname, address)
    logger.debug(
        "Local identity: hostname=%s address=%s", identity.hostname, identity.address
    )
    return identity
