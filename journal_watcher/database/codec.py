"""
Key and value encoding for stored events.

Keys are 8-byte big-endian unsigned integers so that bytewise ordering of
keys equals numeric ordering of timestamps. Values are versioned JSON
documents compressed with zstd.
"""

import json
import struct
import zstd
from typing import Any, Dict

from ..errors import StorageError
from ..models.event import Event, MAX_TIMESTAMP

KEY_FORMAT = ">Q"
KEY_SIZE = struct.calcsize(KEY_FORMAT)


class EventCodec:
    """Serializes events and timestamp keys for the event store."""

    COMPRESSION_LEVEL = 3
    VERSION = 1

    @staticmethod
    def encode_key(timestamp: int) -> bytes:
        """
        Encode a timestamp as an order-preserving key.

        Raises:
            StorageError: If the timestamp is outside the unsigned 64-bit range
        """
        if not isinstance(timestamp, int) or not (0 <= timestamp <= MAX_TIMESTAMP):
            raise StorageError(f"Timestamp out of range: {timestamp!r}")
        return struct.pack(KEY_FORMAT, timestamp)

    @staticmethod
    def decode_key(key: bytes) -> int:
        """Decode a key produced by encode_key."""
        if len(key) != KEY_SIZE:
            raise StorageError(f"Invalid key length {len(key)}, expected {KEY_SIZE}")
        return struct.unpack(KEY_FORMAT, key)[0]

    def encode_event(self, event: Event) -> bytes:
        """
        Serialize and compress an event.

        Raises:
            StorageError: If the event is not representable as UTF-8 JSON
        """
        document: Dict[str, Any] = {"v": self.VERSION, **event.to_dict()}
        try:
            serialized = json.dumps(document, ensure_ascii=False, sort_keys=True).encode("utf-8")
        except (UnicodeEncodeError, TypeError, ValueError) as e:
            raise StorageError(f"Cannot encode event at {event.timestamp}: {e}") from e
        return zstd.compress(serialized, self.COMPRESSION_LEVEL)

    def decode_event(self, data: bytes) -> Event:
        """
        Decompress and deserialize an event.

        Raises:
            StorageError: If the blob is corrupt or of an unknown version
        """
        try:
            document = json.loads(zstd.decompress(data).decode("utf-8"))
        except (zstd.Error, UnicodeDecodeError, ValueError) as e:
            raise StorageError(f"Corrupt event payload: {e}") from e

        version = document.get("v") if isinstance(document, dict) else None
        if version != self.VERSION:
            raise StorageError(f"Unsupported event payload version: {version!r}")

        try:
            return Event.from_dict(document)
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Malformed event payload: {e}") from e
