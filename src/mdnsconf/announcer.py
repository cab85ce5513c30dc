"""DNS-SD record construction for a parsed service description.

Brief:
  Derives the canonical DNS-SD names for a ServiceDescription and registers
  the five records that advertise it with an AnnouncementEngine, in this
  order:

    _services._dns-sd._udp.local.  PTR  <name>.<type>.local.   (shared, 120s)
    <name>.<type>.local.           PTR  <name>.<type>.local.   (shared, 120s)
    <name>.<type>.local.           SRV  0 0 <port> <name>.local. (unique, 600s)
    <name>.local.                  A    <local IPv4>           (unique, 600s)
    <name>.<type>.local.           TXT  <key=value ...>        (unique, 600s)

Inputs:
  - AnnouncementEngine, ServiceDescription, optional LocalIdentity.

Outputs:
  - Announcement summarizing the registered records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from dnslib import QTYPE

from .config.service_config import ServiceDescription, parse
from .engine import AnnouncementEngine, MdnsRecord, dns_name
from .identity import LocalIdentity, detect_local_identity
from .txt import encode_txt, stage_txt_entries

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_TYPE = "_http._tcp"
SERVICES_ENUMERATION_NAME = "_services._dns-sd._udp.local."
SHARED_TTL = 120
UNIQUE_TTL = 600


@dataclass
class Announcement:
    """Brief: Result of one announce() pass.

    Inputs:
      - instance_fqdn: `<name>.<type>.local.` in presentation form (spaces and
        bytes outside `!`..`~` escaped as `\\ddd`).
      - host_fqdn: `<name>.local.`, same form.
      - port: Port published in the SRV record.
      - txt_payload: Encoded TXT rdata.
      - records: Registered records in registration order.

    Outputs:
      - Announcement instance.
    """

    instance_fqdn: str
    host_fqdn: str
    port: int
    txt_payload: bytes
    records: List[MdnsRecord] = field(default_factory=list)


def effective_type(desc: ServiceDescription) -> str:
    return desc.service_type or DEFAULT_SERVICE_TYPE


def effective_name(desc: ServiceDescription, identity: LocalIdentity) -> str:
    return desc.instance_name or identity.hostname


def effective_port(desc: ServiceDescription) -> int:
    """Brief: Port as carried by the 16-bit SRV field (wraps like a C cast)."""

    return int(desc.port) & 0xFFFF


def instance_fqdn(name: str, service_type: str) -> str:
    return f"{name}.{service_type}.local."


def host_fqdn(name: str) -> str:
    return f"{name}.local."


def on_conflict(name: str, rtype: str, context: Any) -> None:
    """Brief: Conflict callback for unique records; resolution is left to the engine."""

    logger.warning("Name conflict reported for %s record %s", rtype, name)


def announce(
    engine: AnnouncementEngine,
    desc: ServiceDescription,
    identity: Optional[LocalIdentity] = None,
) -> Announcement:
    """
    Brief: Register the DNS-SD records describing one service.

    Inputs:
      - engine: AnnouncementEngine receiving the registrations.
      - desc: Parsed ServiceDescription (not modified).
      - identity: LocalIdentity supplying the default instance name; detected
        when omitted.

    Outputs:
      - Announcement with the derived names and the five registered records.

    Example:
      >>> from mdnsconf.engine import RecordTable
      >>> ident = LocalIdentity.create("myhost", "192.0.2.10")
      >>> desc = ServiceDescription("_http._tcp", "myhost", 8080, ["path=/"])
      >>> announce(RecordTable(ident), desc, ident).instance_fqdn
      'myhost._http._tcp.local.'
    """

    if identity is None:
        identity = detect_local_identity()

    service_type = effective_type(desc)
    name = effective_name(desc, identity)
    port = effective_port(desc)

    # Everything is built before the first registration so a description
    # either lands as all five records or raises before touching the engine.
    enumeration = dns_name(SERVICES_ENUMERATION_NAME)
    hlocal = dns_name(instance_fqdn(name, service_type))
    nlocal = dns_name(host_fqdn(name))
    address = engine.resolve_local_address().packed
    payload = encode_txt(stage_txt_entries(desc.txt_entries))
    records: List[MdnsRecord] = []

    # Announce that we have a $type service
    r = engine.create_shared(enumeration, QTYPE.PTR, SHARED_TTL)
    engine.set_record_target(r, hlocal)
    records.append(r)

    r = engine.create_shared(hlocal, QTYPE.PTR, SHARED_TTL)
    engine.set_record_target(r, hlocal)
    records.append(r)

    r = engine.create_unique(hlocal, QTYPE.SRV, UNIQUE_TTL, on_conflict, None)
    engine.set_record_service_info(r, 0, 0, port, nlocal)
    records.append(r)

    r = engine.create_unique(nlocal, QTYPE.A, UNIQUE_TTL, on_conflict, None)
    engine.set_record_raw_data(r, address)
    records.append(r)

    r = engine.create_unique(hlocal, QTYPE.TXT, UNIQUE_TTL, on_conflict, None)
    engine.set_record_raw_data(r, payload)
    records.append(r)

    logger.info("Announced %s on %s port %d", hlocal, nlocal, port)
    return Announcement(
        instance_fqdn=str(hlocal),
        host_fqdn=str(nlocal),
        port=port,
        txt_payload=payload,
        records=records,
    )


def announce_file(
    engine: AnnouncementEngine,
    path: str,
    identity: Optional[LocalIdentity] = None,
    *,
    strict: bool = False,
) -> Announcement:
    """
    Brief: Parse a service file and announce it.

    Inputs:
      - engine: AnnouncementEngine receiving the registrations.
      - path: Service file path.
      - identity: Optional LocalIdentity (see announce()).
      - strict: Passed to the service file parser.

    Outputs:
      - Announcement.

    Raises:
      - FileAccessError: before any record is registered.
    """

    desc = parse(path, strict=strict)
    logger.debug("Parsed %s: %r", path, desc)
    return announce(engine, desc, identity)
