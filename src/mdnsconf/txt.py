"""DNS-SD TXT record staging and wire encoding.

Brief:
  Turns the raw `key=value` candidates of a service description into TXT
  rdata: candidates are staged in an ordered map (last write wins), then
  packed as length-prefixed character-strings with dnslib.

Inputs:
  - Raw TXT candidate strings.

Outputs:
  - TxtMap instances, TXT rdata bytes, decoded (key, value) pairs.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from dnslib import TXT
from dnslib.label import DNSBuffer

logger = logging.getLogger(__name__)

# A DNS character-string carries at most 255 bytes after its length byte.
TXT_STRING_MAX = 255


class TxtMap:
    """Brief: Ordered string-keyed staging map for DNS-SD TXT key/value pairs.

    Inputs:
      - capacity_hint: Expected number of keys (informational only).

    Outputs:
      - TxtMap instance. Setting an existing key replaces its value but keeps
        the original position.
    """

    def __init__(self, capacity_hint: int = 11) -> None:
        self.capacity_hint = capacity_hint
        self._items: Dict[str, str] = {}

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._items.get(key, default)

    def items(self) -> List[Tuple[str, str]]:
        return list(self._items.items())

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items


def stage_txt_entries(entries: Iterable[str]) -> TxtMap:
    """
    Brief: Turn raw `key=value` candidates into a TxtMap.

    Inputs:
      - entries: Raw strings in file order.

    Outputs:
      - TxtMap: entries without `=` are dropped; the rest are split at the
        first `=`; later duplicates of a key win.

    Example:
      >>> stage_txt_entries(["path=/", "junk", "path=/x"]).items()
      [('path', '/x')]
    """

    txt_map = TxtMap()
    for entry in entries:
        key, sep, value = entry.partition("=")
        if not sep:
            logger.debug("Dropping TXT entry without '=': %r", entry)
            continue
        txt_map.set(key, value)
    return txt_map


def to_wire_bytes(text: str) -> bytes:
    """Brief: UTF-8 encode text, restoring bytes smuggled in as surrogates.

    Inputs:
      - text: Text decoded with errors="surrogateescape" (or any str).

    Outputs:
      - bytes: Original bytes for escaped surrogates; other lone surrogates
        become "?".
    """

    try:
        return text.encode("utf-8", errors="surrogateescape")
    except UnicodeEncodeError:
        return text.encode("utf-8", errors="replace")


def encode_txt(txt_map: TxtMap) -> bytes:
    """
    Brief: Encode a TxtMap into DNS TXT rdata.

    Inputs:
      - txt_map: Staged key/value pairs.

    Outputs:
      - bytes: Concatenated length-prefixed `key=value` strings in map order.
        An empty map yields a single empty string (b"\\x00").

    Notes:
      - Strings longer than 255 bytes are truncated to 255 bytes.

    Example:
      >>> m = TxtMap(); m.set("path", "/")
      >>> encode_txt(m)
      b'\\x06path=/'
    """

    strings: List[bytes] = []
    for key, value in txt_map.items():
        item = to_wire_bytes(f"{key}={value}")
        if len(item) > TXT_STRING_MAX:
            logger.debug("Truncating TXT string for key %r to 255 bytes", key)
            item = item[:TXT_STRING_MAX]
        strings.append(item)
    if not strings:
        strings = [b""]

    buffer = DNSBuffer()
    TXT(strings).pack(buffer)
    return bytes(buffer.data)


def split_txt(payload: bytes) -> List[bytes]:
    """Brief: Split TXT rdata into its character-strings.

    Inputs:
      - payload: Raw TXT rdata.

    Outputs:
      - list[bytes]: One entry per length-prefixed string. A truncated final
        string is returned with the bytes that are present.
    """

    out: List[bytes] = []
    offset = 0
    while offset < len(payload):
        length = payload[offset]
        offset += 1
        out.append(bytes(payload[offset : offset + length]))
        offset += length
    return out


def decode_txt(payload: bytes) -> List[Tuple[str, Optional[str]]]:
    """
    Brief: Decode TXT rdata into (key, value) pairs.

    Inputs:
      - payload: Raw TXT rdata as produced by encode_txt().

    Outputs:
      - list of (key, value); value is None for a boolean attribute (no `=`).
        Empty strings are skipped.
    """

    pairs: List[Tuple[str, Optional[str]]] = []
    for raw in split_txt(payload):
        if not raw:
            continue
        text = raw.decode("utf-8", errors="surrogateescape")
        key, sep, value = text.partition("=")
        pairs.append((key, value if sep else None))
    return pairs
