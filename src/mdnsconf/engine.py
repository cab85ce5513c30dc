"""Announcement engine interface and an in-memory record table.

Brief:
  The announcer talks to an mDNS responder through the narrow
  AnnouncementEngine protocol below. RecordTable is an in-process
  implementation that keeps the registered records as dnslib resource
  records so they can be rendered, packed into an mDNS response, and checked
  for conflicts against records observed from other hosts.

Inputs:
  - Record registrations from mdnsconf.announcer.

Outputs:
  - MdnsRecord objects, zone text, and packed mDNS responses.
"""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Union

from dnslib import A, PTR, QTYPE, RD, RR, SRV, TXT, DNSHeader, DNSLabel, DNSRecord

from .identity import LocalIdentity, detect_local_identity
from .txt import split_txt, to_wire_bytes

logger = logging.getLogger(__name__)

# Called with (owner name, record type name, context) on a name conflict.
ConflictHandler = Callable[[str, str, Any], None]

# Wire limits: 63 bytes per label, 253 bytes for the dotted name.
MAX_LABEL_LENGTH = 63
MAX_NAME_LENGTH = 253

Name = Union[str, DNSLabel]


def dns_name(name: Name) -> DNSLabel:
    """
    Brief: Build a DNSLabel that always packs, without IDNA encoding.

    Inputs:
      - name: Dotted name text (possibly holding surrogate-escaped bytes), or
        an existing DNSLabel which is returned unchanged.

    Outputs:
      - DNSLabel of UTF-8 byte labels. Empty labels are dropped, labels over
        63 bytes are truncated, and the leftmost labels are shortened until
        the name fits in 253 bytes. Any change is logged at debug level.

    Example:
      >>> str(dns_name("_http._tcp..local."))
      '_http._tcp.local.'
    """

    if isinstance(name, DNSLabel):
        return name

    labels: List[bytes] = []
    changed = False
    for part in name.rstrip(".").split("."):
        label = to_wire_bytes(part)
        if not label:
            changed = changed or bool(name.strip("."))
            continue
        if len(label) > MAX_LABEL_LENGTH:
            label = label[:MAX_LABEL_LENGTH]
            changed = True
        labels.append(label)

    while labels and len(b".".join(labels)) > MAX_NAME_LENGTH:
        overflow = len(b".".join(labels)) - MAX_NAME_LENGTH
        changed = True
        if len(labels[0]) > overflow:
            labels[0] = labels[0][: len(labels[0]) - overflow]
        else:
            labels.pop(0)

    label = DNSLabel(tuple(labels))
    if changed:
        logger.debug("Adjusted DNS name %r to %s", name, label)
    return label


@dataclass(eq=False)
class MdnsRecord:
    """Brief: One record registered with an engine.

    Inputs:
      - owner: Owner name as a DNSLabel (see dns_name()).
      - rtype: Numeric DNS record type (dnslib QTYPE value).
      - ttl: Time to live in seconds.
      - shared: True for shared records, False for unique (defended) ones.
      - conflict_handler: Callback for unique records, or None.
      - context: Opaque value passed back to conflict_handler.

    Outputs:
      - MdnsRecord; rdata/raw are filled in by the engine's set_* operations.
    """

    owner: DNSLabel
    rtype: int
    ttl: int
    shared: bool
    conflict_handler: Optional[ConflictHandler] = None
    context: Any = None
    rdata: Optional[RD] = None
    raw: Optional[bytes] = None
    conflicted: bool = False

    @property
    def rtype_name(self) -> str:
        return str(QTYPE.get(self.rtype, self.rtype))

    def to_rr(self) -> RR:
        """Brief: Return this record as a dnslib RR (class IN)."""

        return RR(self.owner, rtype=self.rtype, ttl=self.ttl, rdata=self.rdata)


class AnnouncementEngine(Protocol):
    """Brief: Operations an mDNS responder offers for record registration."""

    def create_shared(self, owner: Name, rtype: int, ttl: int) -> MdnsRecord: ...

    def create_unique(
        self,
        owner: Name,
        rtype: int,
        ttl: int,
        conflict_handler: ConflictHandler,
        context: Any = None,
    ) -> MdnsRecord: ...

    def set_record_target(self, record: MdnsRecord, hostname: Name) -> None: ...

    def set_record_service_info(
        self, record: MdnsRecord, priority: int, weight: int, port: int, target: Name
    ) -> None: ...

    def set_record_raw_data(self, record: MdnsRecord, data: bytes) -> None: ...

    def resolve_local_address(self) -> ipaddress.IPv4Address: ...


class RecordTable:
    """
    Brief: In-memory AnnouncementEngine keeping records in registration order.

    Inputs:
      - identity: LocalIdentity answering resolve_local_address(); detected
        from the host when omitted.

    Outputs:
      - RecordTable instance.

    Example:
      >>> table = RecordTable(LocalIdentity.create("myhost", "192.0.2.10"))
      >>> r = table.create_shared("_services._dns-sd._udp.local.", QTYPE.PTR, 120)
      >>> table.set_record_target(r, "myhost._http._tcp.local.")
      >>> len(table)
      1
    """

    def __init__(self, identity: Optional[LocalIdentity] = None) -> None:
        self.identity = identity or detect_local_identity()
        self.records: List[MdnsRecord] = []

    def __len__(self) -> int:
        return len(self.records)

    def _add(self, record: MdnsRecord) -> MdnsRecord:
        self.records.append(record)
        logger.debug(
            "Registered %s %s record %s ttl=%d",
            "shared" if record.shared else "unique",
            record.rtype_name,
            record.owner,
            record.ttl,
        )
        return record

    def create_shared(self, owner: Name, rtype: int, ttl: int) -> MdnsRecord:
        record = MdnsRecord(dns_name(owner), int(rtype), int(ttl), shared=True)
        return self._add(record)

    def create_unique(
        self,
        owner: Name,
        rtype: int,
        ttl: int,
        conflict_handler: ConflictHandler,
        context: Any = None,
    ) -> MdnsRecord:
        return self._add(
            MdnsRecord(
                dns_name(owner),
                int(rtype),
                int(ttl),
                shared=False,
                conflict_handler=conflict_handler,
                context=context,
            )
        )

    def set_record_target(self, record: MdnsRecord, hostname: Name) -> None:
        record.rdata = PTR(dns_name(hostname))
        record.raw = None

    def set_record_service_info(
        self, record: MdnsRecord, priority: int, weight: int, port: int, target: Name
    ) -> None:
        record.rdata = SRV(
            priority=priority, weight=weight, port=port, target=dns_name(target)
        )
        record.raw = None

    def set_record_raw_data(self, record: MdnsRecord, data: bytes) -> None:
        """Brief: Store raw rdata, decoding it for the record types we know.

        Inputs:
          - record: Target record.
          - data: Raw rdata bytes (4 bytes for A, TXT wire format for TXT).

        Outputs:
          - None; record.raw holds a copy of data and record.rdata a dnslib
            A, TXT or generic RD object.
        """

        raw = bytes(data)
        record.raw = raw
        if record.rtype == QTYPE.A and len(raw) == 4:
            record.rdata = A(str(ipaddress.IPv4Address(raw)))
        elif record.rtype == QTYPE.TXT:
            record.rdata = TXT(split_txt(raw))
        else:
            record.rdata = RD(raw)

    def resolve_local_address(self) -> ipaddress.IPv4Address:
        return self.identity.address

    def find(self, owner: Name, rtype: int) -> List[MdnsRecord]:
        """Brief: Records registered at owner with the given type (case-insensitive)."""

        key = dns_name(owner)
        return [r for r in self.records if r.rtype == int(rtype) and r.owner == key]

    def observe(self, rr: RR) -> List[MdnsRecord]:
        """
        Brief: Check a record heard from another host against our unique records.

        Inputs:
          - rr: dnslib RR received from the network.

        Outputs:
          - list[MdnsRecord]: Unique records that conflict (same owner and type,
            different rdata). Their conflict handlers are invoked and they are
            marked conflicted. Shared records never conflict.
        """

        conflicts: List[MdnsRecord] = []
        for record in self.find(rr.rname, rr.rtype):
            if record.shared or record.rdata is None:
                continue
            if record.rdata == rr.rdata:
                continue
            record.conflicted = True
            conflicts.append(record)
            logger.info(
                "Conflict on %s %s: peer sent %s",
                record.owner,
                record.rtype_name,
                rr.rdata.toZone() if rr.rdata is not None else None,
            )
            if record.conflict_handler is not None:
                record.conflict_handler(
                    str(record.owner), record.rtype_name, record.context
                )
        return conflicts

    def to_rrs(self) -> List[RR]:
        return [r.to_rr() for r in self.records if r.rdata is not None]

    def to_zone(self) -> List[str]:
        """Brief: Render every record with rdata as a zone-file line."""

        return [rr.toZone() for rr in self.to_rrs()]

    def pack_response(self) -> bytes:
        """Brief: Pack all records as answers of one mDNS response message.

        Inputs:
          - None.

        Outputs:
          - bytes: Wire-format DNS message with id 0, QR=1 and AA=1.
        """

        reply = DNSRecord(DNSHeader(id=0, qr=1, aa=1), rr=self.to_rrs())
        return reply.pack()
