"""mdnsconf package"""

from .announcer import Announcement, announce, announce_file
from .config.service_config import (
    FileAccessError,
    ServiceDescription,
    TXT_CAPACITY,
    parse,
)
from .engine import AnnouncementEngine, RecordTable
from .identity import LocalIdentity, detect_local_identity

__all__ = [
    "Announcement",
    "AnnouncementEngine",
    "FileAccessError",
    "LocalIdentity",
    "RecordTable",
    "ServiceDescription",
    "TXT_CAPACITY",
    "announce",
    "announce_file",
    "detect_local_identity",
    "parse",
]
