"""Lock file model and store."""

from jxdeps.lock.document import LOCK_FORMAT_VERSION, LockDocument, LockEntryModel, LockMetadataModel
from jxdeps.lock.store import DEFAULT_LOCK_FILENAME, LockMetadata, LockStore, format_timestamp, utc_now

__all__ = [
    "DEFAULT_LOCK_FILENAME",
    "LOCK_FORMAT_VERSION",
    "LockDocument",
    "LockEntryModel",
    "LockMetadata",
    "LockMetadataModel",
    "LockStore",
    "format_timestamp",
    "utc_now",
]
